"""
Doctors Portal - appointment booking backend for a clinic.
"""

__version__ = "1.0.0"
