"""Pydantic schemas for the current-weather snapshot relayed from Open-Meteo."""

from pydantic import BaseModel, ConfigDict, Field


class CurrentWeather(BaseModel):
    """The `current_weather` block of an Open-Meteo forecast response."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    temperature: float  # °C
    wind_speed: float = Field(alias="windspeed")  # km/h
    wind_direction: float = Field(alias="winddirection")  # degrees
    weather_code: int = Field(alias="weathercode")  # WMO code
    observation_time: str = Field(alias="time")


class WeatherReading(BaseModel):
    """Forecast snapshot for one coordinate pair, built fresh per request.

    Field aliases are the upstream wire names; dump with ``by_alias=True`` to
    hand the caller the same shape Open-Meteo returned.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    latitude: float
    longitude: float
    current_conditions: CurrentWeather = Field(alias="current_weather")
