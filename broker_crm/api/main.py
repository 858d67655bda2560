from fastapi import APIRouter

from broker_crm.api.routes import directorio, health

api_router = APIRouter()

api_router.include_router(health.router, prefix="", tags=["Health"])
api_router.include_router(directorio.router, prefix="/directorio", tags=["Directorio"])
