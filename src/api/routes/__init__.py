"""API route registration."""

from fastapi import FastAPI

from src.api.routes import (
    admin_brands,
    admin_products,
    categories,
    products,
    recommendations,
    search,
    system,
)


def include_api_routes(app: FastAPI) -> None:
    """Attach all API routers to the application."""

    app.include_router(system.router)
    app.include_router(products.router)
    app.include_router(search.router)
    app.include_router(categories.router)
    app.include_router(recommendations.router)
    app.include_router(admin_products.router)
    app.include_router(admin_brands.router)
