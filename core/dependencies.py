"""FastAPI dependency injection functions.

Clients are created once in the lifespan and stored on ``app.state``; routes
receive them through these providers so tests can override each one.
"""

from core.settings import app_settings
from esign.database.manager import DatabaseManager
from esign.database.repository import SignatureRepository
from esign.dispatch.sequencer import DispatchSequencer
from fastapi import Depends, HTTPException, Request, status
from services.delivery_client import DeliveryClient
from services.s3_client import S3Client
from services.sendgrid_client import SendGridClient
from services.signature_requests import SignatureRequestService
from services.signing import SigningService


def _from_state(request: Request, name: str, label: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{label} unavailable",
        )
    return value


async def get_db_manager(request: Request) -> DatabaseManager:
    """Get database manager from app state.

    Raises:
        HTTPException: 503 if the database pool could not be created
    """
    return _from_state(request, "db_manager", "Database")


async def get_delivery_client(request: Request) -> DeliveryClient:
    return _from_state(request, "delivery_client", "Delivery client")


async def get_sendgrid_client(request: Request) -> SendGridClient:
    return _from_state(request, "sendgrid_client", "SendGrid client")


async def get_s3_client(request: Request) -> S3Client:
    return _from_state(request, "s3_client", "Document storage")


async def get_repository(
    db: DatabaseManager = Depends(get_db_manager),
) -> SignatureRepository:
    return SignatureRepository(db)


async def get_signature_request_service(
    repository: SignatureRepository = Depends(get_repository),
    storage: S3Client = Depends(get_s3_client),
    delivery: DeliveryClient = Depends(get_delivery_client),
) -> SignatureRequestService:
    sequencer = DispatchSequencer(
        notifier=delivery, signing_url_base=app_settings.signing_url_base
    )
    return SignatureRequestService(
        repository=repository, storage=storage, sequencer=sequencer
    )


async def get_signing_service(
    repository: SignatureRepository = Depends(get_repository),
) -> SigningService:
    return SigningService(repository)
