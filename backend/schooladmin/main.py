import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schooladmin.config import settings
from schooladmin.database import init_database, close_database
from schooladmin.api.router import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL))
    logger.info("Starting school admin settings backend...")
    if settings.PROVISION_ON_STARTUP:
        # Raises ProvisioningError, which aborts startup.
        await init_database()
    logger.info(f"Settings backend ready on port {settings.API_PORT}")
    yield
    await close_database()
    logger.info("Shutting down settings backend...")


app = FastAPI(
    title="School Admin Settings API",
    description="System settings store for the school administration platform",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")
