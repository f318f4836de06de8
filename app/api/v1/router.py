"""API v1 router aggregation."""

from fastapi import APIRouter

from app.api.v1 import auth, todos

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(todos.router, prefix="/todos", tags=["Todos"])
