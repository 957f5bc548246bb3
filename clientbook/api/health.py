from fastapi import APIRouter

router = APIRouter()

HEALTH_MESSAGE = "Client tracker API is running"


@router.get("/health", tags=["System"])
async def get_system_health():
    """Liveness check, no authentication required."""
    return {"status": "OK", "message": HEALTH_MESSAGE}
