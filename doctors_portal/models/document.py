"""
Base model for records persisted in the document store.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class StoredDocument(BaseModel):
    """
    A record as held by the store.

    The store identifies records by an opaque string under ``_id``;
    field names on the wire and in the store use their aliases.
    """

    id: Optional[str] = Field(default=None, alias="_id", description="Store identifier")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def to_document(self) -> Dict[str, Any]:
        """Serialize for insertion, leaving identifier assignment to the store."""
        document = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        document.pop("_id", None)
        return document

    @classmethod
    def from_document(cls, document: Dict[str, Any]):
        return cls.model_validate(document)
