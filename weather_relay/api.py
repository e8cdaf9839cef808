"""HTTP API that relays current weather for a coordinate pair."""

import math

from fastapi import APIRouter, Depends, HTTPException, Request, status

from . import open_meteo_client
from .config import Settings
from .models import WeatherReading
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="weather_relay/api")

COORDINATES_HINT = "Latitude and Longitude required e.g /weather/51.5074/-0.1278"

# Every method reaches the handlers so the GET check runs before path validation.
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

GENERIC_TRANSPORT_ERROR = "Upstream weather request failed"
GENERIC_DECODE_ERROR = "Upstream weather response could not be decoded"

router = APIRouter()


def get_settings(request: Request) -> Settings:
    """Return the settings the running app was created with."""
    return request.app.state.settings


def require_get(request: Request) -> None:
    """Reject anything but GET with 405."""
    if request.method != "GET":
        logger.debug("Rejected method", extra={"method": request.method, "path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            detail="Method not allowed",
            headers={"Allow": "GET"},
        )


def parse_coordinate(raw: str, name: str) -> float:
    """Parse a path segment as a finite float or fail with 400 naming the coordinate."""
    # float() also takes digit separators and padding; a path segment must not.
    if "_" in raw or raw != raw.strip():
        value = math.nan
    else:
        try:
            value = float(raw)
        except ValueError:
            value = math.nan
    if not math.isfinite(value):
        logger.debug("Invalid coordinate", extra={"coordinate": name, "value": raw})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {name}")
    return value


@router.api_route(
    "/weather/{lat}/{lon}",
    methods=ALL_METHODS,
    response_model=WeatherReading,
    dependencies=[Depends(require_get)],
)
@router.api_route(
    "/weather/{lat}/{lon}/{rest:path}",
    methods=ALL_METHODS,
    response_model=WeatherReading,
    include_in_schema=False,
    dependencies=[Depends(require_get)],
)
def get_weather(lat: str, lon: str, settings: Settings = Depends(get_settings)) -> WeatherReading:
    """Fetch the current weather at (lat, lon) from the upstream API and relay it."""
    latitude = parse_coordinate(lat, "latitude")
    longitude = parse_coordinate(lon, "longitude")

    try:
        return open_meteo_client.fetch_current_weather(
            latitude,
            longitude,
            base_url=settings.upstream_url,
            timeout=settings.upstream_timeout_seconds,
        )
    except open_meteo_client.UpstreamTransportError as exc:
        logger.warning("Upstream weather request failed", extra={"error": str(exc)})
        detail = str(exc) if settings.expose_upstream_errors else GENERIC_TRANSPORT_ERROR
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail) from exc
    except open_meteo_client.UpstreamDecodeError as exc:
        logger.warning("Upstream weather response could not be decoded", extra={"error": str(exc)})
        detail = str(exc) if settings.expose_upstream_errors else GENERIC_DECODE_ERROR
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail) from exc


@router.api_route("/weather", methods=ALL_METHODS, include_in_schema=False, dependencies=[Depends(require_get)])
@router.api_route("/weather/{rest:path}", methods=ALL_METHODS, include_in_schema=False,
                  dependencies=[Depends(require_get)])
def missing_coordinates(rest: str = "") -> None:
    """Anything under /weather without two non-empty leading segments."""
    logger.debug("Missing coordinates", extra={"path": rest})
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=COORDINATES_HINT)
