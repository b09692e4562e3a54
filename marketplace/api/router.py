from fastapi import APIRouter
from marketplace.api.routes import health, products

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["Health"])
api_router.include_router(products.router, prefix="/api/products", tags=["Products"])
