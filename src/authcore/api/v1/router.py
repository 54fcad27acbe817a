from fastapi import APIRouter

from src.authcore.api.v1 import audit, auth

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(audit.router)
