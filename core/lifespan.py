import logging
from contextlib import asynccontextmanager

from esign.database.manager import create_database_manager_from_env
from fastapi import FastAPI
from services.delivery_client import create_delivery_client_from_env
from services.s3_client import create_s3_client_from_env
from services.sendgrid_client import create_sendgrid_client_from_env

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""

    logger.info("Initializing database connection pool...")
    try:
        db_manager = create_database_manager_from_env()
        await db_manager.connect()
        app.state.db_manager = db_manager
        logger.info("Database pool ready")
    except Exception as e:
        logger.error(f"Database pool initialization failed: {e}", exc_info=True)
        logger.warning("Application will continue without database connectivity")
        app.state.db_manager = None

    logger.info("Initializing document storage client...")
    try:
        app.state.s3_client = create_s3_client_from_env()
    except Exception as e:
        logger.error(f"S3 client initialization failed: {e}", exc_info=True)
        app.state.s3_client = None

    app.state.delivery_client = create_delivery_client_from_env()
    app.state.sendgrid_client = create_sendgrid_client_from_env()
    if not app.state.sendgrid_client.configured:
        logger.warning("SENDGRID_API_KEY not set; send-email will return 500")

    yield

    if getattr(app.state, "db_manager", None):
        logger.info("Closing database connection pool...")
        await app.state.db_manager.disconnect()
