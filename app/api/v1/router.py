from fastapi import APIRouter
from app.api.v1.endpoints import auth, appointments, types, settings, data, public, dashboard

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["appointments"])
api_router.include_router(types.router, prefix="/types", tags=["types"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(data.router, prefix="/data", tags=["data"])
api_router.include_router(public.router, prefix="/public", tags=["public"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
