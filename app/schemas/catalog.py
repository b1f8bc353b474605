"""Request/response schemas for the pet and product catalogs."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl


class ItemRecord(BaseModel):
    """Fields every catalog row shares. owner_id None means held by the store."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str = ""
    price: float
    image: str
    owner_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PetRead(ItemRecord):
    breed: str
    age: int
    gender: str
    sterilized: bool = False


class ProductRead(ItemRecord):
    stock: int
    category: str
    brand: str = ""
    mass: float = 0.0


class _ItemWrite(BaseModel):
    """Validation shared by create payloads."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=500)
    price: float = Field(..., gt=0)
    image: HttpUrl | None = None
    owner_id: int | None = Field(
        default=None,
        ge=1,
        description="Owning account id; omit or null to place the item in the store.",
    )


class PetCreate(_ItemWrite):
    breed: str = Field(..., min_length=2, max_length=50)
    age: int = Field(..., ge=0, le=30)
    gender: Literal["male", "female"]
    sterilized: bool = False


class ProductCreate(_ItemWrite):
    stock: int = Field(..., ge=0)
    category: str = Field(..., min_length=2, max_length=50)
    brand: str = Field(default="", max_length=50)
    mass: float = Field(default=0.0, ge=0)


class PetUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    price: float | None = Field(default=None, gt=0)
    image: HttpUrl | None = None
    owner_id: int | None = Field(default=None, ge=1)
    breed: str | None = Field(default=None, min_length=2, max_length=50)
    age: int | None = Field(default=None, ge=0, le=30)
    gender: Literal["male", "female"] | None = None
    sterilized: bool | None = None


class ProductUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    price: float | None = Field(default=None, gt=0)
    image: HttpUrl | None = None
    owner_id: int | None = Field(default=None, ge=1)
    stock: int | None = Field(default=None, ge=0)
    category: str | None = Field(default=None, min_length=2, max_length=50)
    brand: str | None = Field(default=None, max_length=50)
    mass: float | None = Field(default=None, ge=0)

