import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from languaro.core.dependencies import get_telemetry_client
from languaro.core.responses import NO_CACHE_HEADERS, error_response
from languaro.services.telemetry_service import TelemetryClient, TelemetryError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Metrics"])


@router.get("/metrics")
async def metrics(client: TelemetryClient = Depends(get_telemetry_client)):
    """Proxy the telemetry backend's overall analytics, never cached."""
    try:
        data = await client.fetch_overall()
    except TelemetryError as e:
        logger.error(f"Metrics fetch error: {e}")
        return error_response("Failed to fetch metrics", status=500, headers=NO_CACHE_HEADERS, details=str(e))

    return JSONResponse(content=data, headers=NO_CACHE_HEADERS)
