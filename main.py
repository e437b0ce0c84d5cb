"""FastAPI application entry point."""

from dotenv import load_dotenv

load_dotenv()

import logging

from api.routes import health, notifications, signature_requests, signing
from core.error_handlers import (
    handle_app_error,
    handle_http_error,
    handle_pydantic_error,
    handle_unknown_error,
    handle_validation_error,
)
from core.lifespan import lifespan
from core.middleware import trace_id_middleware
from core.openapi import custom_openapi
from core.settings import app_settings
from core.validation import validate_all_settings
from esign.core.exceptions import BaseError
from esign.core.logging_config import configure_structured_logging
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from pydantic_core import ValidationError as PydanticCoreValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

# Configure logging
configure_structured_logging(level=app_settings.LOG_LEVEL, json_format=app_settings.LOG_JSON)
logger = logging.getLogger(__name__)

# Validate environment before starting application
validate_all_settings()

import urllib3

# S3 uses self-signed certs in dev
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

app = FastAPI(
    title="eSignature Request API",
    version="1.0.0",
    description="Maps signature fields onto the document page and dispatches signing invitations",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.openapi = lambda: custom_openapi(app)

# 1. Register Middleware
app.middleware("http")(trace_id_middleware)

# 2. Register Exception Handlers
app.add_exception_handler(RequestValidationError, handle_validation_error)
app.add_exception_handler(PydanticCoreValidationError, handle_pydantic_error)
app.add_exception_handler(StarletteHTTPException, handle_http_error)
app.add_exception_handler(BaseError, handle_app_error)
app.add_exception_handler(Exception, handle_unknown_error)

# Routes
app.include_router(health.router)
app.include_router(signature_requests.router)
app.include_router(signing.router)
app.include_router(notifications.router)
