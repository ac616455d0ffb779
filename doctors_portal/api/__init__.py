"""
HTTP layer for the Doctors Portal.
"""
