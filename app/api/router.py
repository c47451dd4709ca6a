# app/api/router.py
from fastapi import APIRouter

from app.core.config import get_settings
from app.api import auth as auth_api
from app.api import dealers as dealers_api
from app.api import concesionarios as concesionarios_api
from app.api import clients as clients_api
from app.api import vehicles as vehicles_api
from app.api import contracts as contracts_api
from app.api import insurance as insurance_api

api_router = APIRouter()
settings = get_settings()

@api_router.get("/health", tags=["health"])
async def health_check():
    return {
        "status": "ok",
        "env": settings.ENV,
        "version": "0.1.0",
        "service": settings.PROJECT_NAME,
    }

api_router.include_router(auth_api.router)
api_router.include_router(dealers_api.router)
api_router.include_router(concesionarios_api.router)
api_router.include_router(clients_api.router)
api_router.include_router(vehicles_api.router)
api_router.include_router(contracts_api.router)
api_router.include_router(insurance_api.router)
