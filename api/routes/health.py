from api.schemas import HealthResponse
from core.dependencies import get_db_manager
from esign.database.manager import DatabaseManager
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

router = APIRouter()

SERVICE_NAME = "esign-api"
SERVICE_VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check(db: DatabaseManager = Depends(get_db_manager)):
    db_health = await db.health_check()
    healthy = db_health["healthy"]

    body = HealthResponse(
        status="healthy" if healthy else "unhealthy",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        database={
            "status": "connected" if healthy else "disconnected",
            "latency_ms": db_health.get("latency_ms"),
            "error": db_health.get("error"),
        },
    )
    return JSONResponse(status_code=200 if healthy else 503, content=body.model_dump())
