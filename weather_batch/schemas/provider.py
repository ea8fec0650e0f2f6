"""
Provider payload schemas.

Typed view of the OpenWeatherMap current-weather response. Only the fields
the collection job copies are declared; everything else is ignored.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ProviderSchema(BaseModel):
    """Base for provider payload blocks; unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ProviderMain(ProviderSchema):
    """`main` block: temperatures, pressure and humidity."""
    temp: float
    feels_like: Optional[float] = None
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    pressure: Optional[int] = None
    humidity: Optional[int] = Field(None, ge=0, le=100)


class ProviderCondition(ProviderSchema):
    """One element of the `weather` array."""
    main: str
    description: Optional[str] = None


class ProviderWind(ProviderSchema):
    speed: Optional[float] = None
    deg: Optional[int] = None


class ProviderClouds(ProviderSchema):
    all: Optional[int] = None


class ProviderPrecipitation(ProviderSchema):
    """`rain` / `snow` block; the provider keys the hourly amount as "1h"."""
    one_hour: Optional[float] = Field(None, alias="1h")


class ProviderWeather(ProviderSchema):
    """
    Current weather for one city.

    The `weather` array must hold at least one condition; the first one is
    the observation's weather class.
    """
    weather: List[ProviderCondition] = Field(..., min_length=1)
    main: ProviderMain
    wind: Optional[ProviderWind] = None
    clouds: Optional[ProviderClouds] = None
    rain: Optional[ProviderPrecipitation] = None
    snow: Optional[ProviderPrecipitation] = None
    visibility: Optional[int] = None
    name: Optional[str] = None

    @property
    def condition(self) -> ProviderCondition:
        return self.weather[0]

    @property
    def rain_1h(self) -> Optional[float]:
        return self.rain.one_hour if self.rain else None

    @property
    def snow_1h(self) -> Optional[float]:
        return self.snow.one_hour if self.snow else None
