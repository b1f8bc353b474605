"""API v1 routes."""

from fastapi import APIRouter

from app.api.v1 import admin, auth, health, stats, users
from app.api.v1.catalog import pets_router, products_router

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, prefix="/auth", tags=["auth"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
router.include_router(pets_router, prefix="/pets", tags=["pets"])
router.include_router(products_router, prefix="/products", tags=["products"])
router.include_router(stats.router, prefix="/stats", tags=["stats"])
