"""Helper for fetching the current weather for a coordinate pair from Open-Meteo."""
from __future__ import annotations

from typing import Optional

import requests
from pydantic import ValidationError

from weather_relay.config import DEFAULT_UPSTREAM_URL
from weather_relay.models import WeatherReading
from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="open_meteo_client")

session = requests.Session()

# Fixed units; the relay never lets callers change them.
FORECAST_PARAMS = {
    "current_weather": "true",
    "temperature_unit": "celsius",
    "windspeed_unit": "kmh",
    "precipitation_unit": "mm",
    "timezone": "auto",
}


class UpstreamError(Exception):
    """Base class for failures talking to the upstream weather API."""


class UpstreamTransportError(UpstreamError):
    """The request never produced a usable response (DNS, refused, timeout, HTTP error)."""


class UpstreamDecodeError(UpstreamError):
    """The response body did not decode into a WeatherReading."""


def format_coordinate(value: float) -> str:
    """Render a coordinate as a plain fixed-point decimal (six places, never exponent form)."""
    return f"{value:f}"


def build_forecast_params(latitude: float, longitude: float) -> dict[str, str]:
    """Return the query parameters for a current-weather forecast request."""
    params = {
        "latitude": format_coordinate(latitude),
        "longitude": format_coordinate(longitude),
    }
    params.update(FORECAST_PARAMS)
    return params


def fetch_current_weather(latitude: float,
                          longitude: float,
                          *,
                          base_url: str = DEFAULT_UPSTREAM_URL,
                          timeout: Optional[float] = None,
                          ) -> WeatherReading:
    """Issue one GET to Open-Meteo and decode the body into a WeatherReading.

    Raises UpstreamTransportError when no usable response arrives and
    UpstreamDecodeError when the body does not match the schema. Nothing is
    retried.
    """
    params = build_forecast_params(latitude, longitude)
    logger.debug("Fetching current weather", extra={"url": base_url, "params": params})

    try:
        resp = session.get(base_url, params=params, timeout=timeout)
        resp.raise_for_status()
        body = resp.content
    except requests.RequestException as exc:
        raise UpstreamTransportError(str(exc)) from exc

    try:
        return WeatherReading.model_validate_json(body)
    except ValidationError as exc:
        raise UpstreamDecodeError(str(exc)) from exc
