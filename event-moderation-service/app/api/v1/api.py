# app/api/v1/api.py

from fastapi import APIRouter
from app.api.v1.endpoints import admin_events, events, health

# Main router for the v1 API; main.py mounts it under /api/v1.
api_router = APIRouter()

api_router.include_router(health.router)
api_router.include_router(events.router)
api_router.include_router(admin_events.router)
