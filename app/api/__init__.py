# app/api/__init__.py
from fastapi import FastAPI

from app.api.routers import carts, catalog, enrollments, health, payments, users


def include_routers(app: FastAPI) -> FastAPI:
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(catalog.router)
    app.include_router(carts.router)
    app.include_router(payments.router)
    app.include_router(enrollments.router)
    return app
