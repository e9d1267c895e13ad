"""
SkyChecker Weather Service

Cloud cover, visibility and an observing rating from Open-Meteo.
"""

from .open_meteo import (
    CloudCondition,
    HourlyWeather,
    OpenMeteoClient,
    WeatherData,
    parse_current_weather,
    parse_hourly_weather,
)

__all__ = [
    "CloudCondition",
    "HourlyWeather",
    "OpenMeteoClient",
    "WeatherData",
    "parse_current_weather",
    "parse_hourly_weather",
]
