from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """Catalog entry for one stored blob."""

    id: int = Field(..., gt=0, description="Store-assigned document identifier")
    name: str = Field(..., min_length=1, description="Blob file name, unique per owner")
    keys: str = Field(..., min_length=1, description="Opaque key material")
    owner_id: int = Field(..., gt=0, description="Owning account id")

    model_config = ConfigDict(from_attributes=True, frozen=True)

    def __repr__(self) -> str:
        return (
            f"<Document(id={self.id}, name='{self.name}', owner_id={self.owner_id})>"
        )
