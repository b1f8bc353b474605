"""ORM model for pets: non-divisible catalog items."""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)

from app.models.base import Base


class Pet(Base):
    """
    A single animal. owner_id NULL means the pet is in the store and can be bought;
    buying rewrites owner_id on this row.
    """

    __tablename__ = "pets"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_pets_price_positive"),
        CheckConstraint("age >= 0", name="ck_pets_age_non_negative"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    breed = Column(String(50), nullable=False)
    age = Column(Integer, nullable=False, default=0)
    gender = Column(String(10), nullable=False)
    sterilized = Column(Boolean, nullable=False, default=False)
    image = Column(String(2048), nullable=False, default="default-pet.jpg")
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
