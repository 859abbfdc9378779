"""Document schemas for API responses."""

from pydantic import BaseModel, ConfigDict, Field

from pds.models.document import Document


class DocumentResponse(BaseModel):
    """Catalog entry as returned by the listing endpoint."""

    id: int = Field(..., description="Document identifier")
    name: str = Field(..., description="Document file name")
    keys: str = Field(..., description="Opaque key material supplied on upload")
    ownerId: int = Field(..., description="Owning account id")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"id": 1, "name": "a.pdf", "keys": "k1", "ownerId": 1}
        }
    )

    @classmethod
    def from_document(cls, document: Document) -> "DocumentResponse":
        return cls(
            id=document.id,
            name=document.name,
            keys=document.keys,
            ownerId=document.owner_id,
        )
