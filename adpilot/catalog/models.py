from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class Product(_FrozenModel):
    """Snapshot of a catalog item. The catalog owns the real record."""

    id: str
    name: str
    sku: str = ""
    price: str = ""
    description: str = ""
    permalink: str = ""
    image_url: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> str:
        return str(v)

    @property
    def display_name(self) -> str:
        return self.name

    def summary_line(self) -> str:
        return f"{self.name} - ${self.price}" if self.price else self.name


class EntityCandidate(_FrozenModel):
    entity: Product
    score: float
