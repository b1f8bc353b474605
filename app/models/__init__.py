"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.pet import Pet
from app.models.product import Product
from app.models.user import User

__all__ = ["Base", "Pet", "Product", "User"]
