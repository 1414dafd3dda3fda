"""
Weather Agent
=============

Condenses an hourly forecast into the compact statistics used for crop
recommendations. Does NOT recommend crops - only provides weather insights.

Features:
- Accepts Open-Meteo hourly series (temperature_2m, precipitation,
  wind_speed_10m, uv_index)
- Analysis window capped at 7 days (168 hours) even if more is supplied
- Temperature / rainfall banding into a human-readable conditions label
- Season classification (wet, moderate wet, transition, dry)
- Optional live forecast fetch from Open-Meteo (free, no API key)
"""

import json
import urllib.request
import urllib.error
from typing import Dict, Any, Optional, Sequence

from cropsync.config import FORECAST_WINDOW_HOURS
from cropsync.models import SeasonClass, WeatherSummary
from cropsync.utils.logger import logger


HOURLY_VARIABLES = ["temperature_2m", "precipitation", "wind_speed_10m", "uv_index"]

# (lower bound exclusive, label)
TEMPERATURE_BANDS = [(28, "Hot"), (23, "Warm"), (18, "Mild")]
RAINFALL_BANDS = [
    (70, "Very Wet", SeasonClass.WET),
    (40, "Moderate", SeasonClass.MODERATE_WET),
    (20, "Light", SeasonClass.TRANSITION),
]


class InsufficientDataError(ValueError):
    """Raised when the forecast holds less than one hour of data."""

    def __init__(self, hours_available: int = 0):
        self.hours_available = hours_available
        super().__init__(f"Weather analysis needs at least 1 hour of data, got {hours_available}")


def _hourly_series(weather_data: Dict[str, Any]) -> Dict[str, Any]:
    """Accept either {"hourly": {...}} or the hourly mapping itself."""
    if not isinstance(weather_data, dict):
        raise InsufficientDataError(0)
    hourly = weather_data.get("hourly", weather_data)
    if not isinstance(hourly, dict):
        raise InsufficientDataError(0)
    return hourly


def _value_at(series: Optional[Sequence], index: int) -> float:
    """Missing, short or null series contribute 0 instead of failing by index."""
    if series is None or index >= len(series):
        return 0.0
    value = series[index]
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def classify_temperature(average_temperature: float) -> str:
    for threshold, label in TEMPERATURE_BANDS:
        if average_temperature > threshold:
            return label
    return "Cool"


def classify_rainfall(total_rainfall: float):
    """Return (label, season_class) for rainfall accumulated over the window."""
    for threshold, label, season in RAINFALL_BANDS:
        if total_rainfall > threshold:
            return label, season
    return "Dry", SeasonClass.DRY


def analyze_weather_data(weather_data: Dict[str, Any], window_hours: int = None) -> WeatherSummary:
    """
    Analyze an hourly forecast into a WeatherSummary.

    Args:
        weather_data: Open-Meteo style response or its "hourly" mapping
        window_hours: Cap on hours analyzed (defaults to FORECAST_WINDOW_HOURS)

    Returns:
        WeatherSummary with averages, totals, season class and conditions label

    Raises:
        InsufficientDataError: if fewer than 1 hour of temperature data is supplied
    """
    window_hours = window_hours or FORECAST_WINDOW_HOURS
    hourly = _hourly_series(weather_data)

    temperatures = hourly.get("temperature_2m") or []
    hours = min(window_hours, len(temperatures))
    if hours < 1:
        raise InsufficientDataError(len(temperatures))

    precipitation = hourly.get("precipitation")
    wind = hourly.get("wind_speed_10m")
    uv = hourly.get("uv_index")

    total_temp = 0.0
    total_rain = 0.0
    total_wind = 0.0
    max_uv = 0.0
    for i in range(hours):
        total_temp += _value_at(temperatures, i)
        total_rain += _value_at(precipitation, i)
        total_wind += _value_at(wind, i)
        max_uv = max(max_uv, _value_at(uv, i))

    avg_temp = round(total_temp / hours, 1)
    total_rain = round(total_rain, 1)
    rain_label, season = classify_rainfall(total_rain)

    summary = WeatherSummary(
        average_temperature=avg_temp,
        total_rainfall=total_rain,
        wind_speed=round(total_wind / hours, 1),
        uv_index=round(max_uv, 1),
        season_class=season,
        conditions=f"{classify_temperature(avg_temp)}, {rain_label}",
        hours_analyzed=hours,
    )

    logger.info(
        f"Weather Agent: {hours}h analyzed, temp={summary.average_temperature}°C, "
        f"rain={summary.total_rainfall}mm, season={season.name}"
    )
    return summary


def describe_weather(summary: WeatherSummary) -> str:
    """Short human-readable summary of the analysis window."""
    days = max(1, round(summary.hours_analyzed / 24))
    return (
        f"{summary.conditions} conditions over the next {days} day{'s' if days != 1 else ''}: "
        f"average {summary.average_temperature}°C with {summary.total_rainfall}mm of rain expected."
    )


def fetch_hourly_forecast(lat: float, lon: float, forecast_days: int = 7) -> Optional[Dict[str, Any]]:
    """
    Fetch an hourly forecast from Open-Meteo API (free, no API key needed).

    Returns:
        {"hourly": {...}} with HOURLY_VARIABLES, or None on network/API failure
    """
    try:
        url = (
            f"https://api.open-meteo.com/v1/forecast?"
            f"latitude={lat}&longitude={lon}"
            f"&hourly={','.join(HOURLY_VARIABLES)}"
            f"&forecast_days={forecast_days}"
        )

        logger.info(f"Fetching hourly forecast from Open-Meteo: lat={lat}, lon={lon}")

        req = urllib.request.Request(url, headers={'User-Agent': 'CropSync/1.0'})
        with urllib.request.urlopen(req, timeout=5) as response:
            data = json.loads(response.read().decode())

        hourly = data.get("hourly", {})
        if not hourly.get("temperature_2m"):
            logger.warning("Open-Meteo returned no hourly temperature data")
            return None

        return {"hourly": {name: hourly.get(name, []) for name in HOURLY_VARIABLES}}

    except urllib.error.URLError as e:
        logger.warning(f"Weather API network error: {e}")
        return None
    except Exception as e:
        logger.warning(f"Weather API error: {e}")
        return None
