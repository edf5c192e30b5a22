# cloudos/api/v1/router.py
from fastapi import APIRouter
from cloudos.api.v1 import (
    health,
    auth,
    dashboard,
    users,
)

api_router = APIRouter()

# -------- public --------
api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router,      prefix="/auth",      tags=["auth"])

# -------- bearer --------
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(users.router,     prefix="/users",     tags=["users"])
