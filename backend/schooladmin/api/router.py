from fastapi import APIRouter
from schooladmin.api import settings

api_router = APIRouter()

api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
