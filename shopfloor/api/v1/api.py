from fastapi import APIRouter
from shopfloor.api.v1.routes.auth import router as auth_router
from shopfloor.api.v1.routes.schedules import router as schedules_router
from shopfloor.api.v1.routes.admin import router as admin_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth_router)
api_router.include_router(schedules_router)
api_router.include_router(admin_router)
