"""Response schema for the stats endpoint."""

from pydantic import BaseModel, Field


class StatsResponse(BaseModel):
    """Catalog and account counters. Owned rows of products count units, not stock."""

    users: int = Field(..., ge=0)
    total_pets: int = Field(..., ge=0)
    store_pets: int = Field(..., ge=0)
    owned_pets: int = Field(..., ge=0)
    total_products: int = Field(..., ge=0)
    store_products: int = Field(..., ge=0)
    owned_products: int = Field(..., ge=0)
