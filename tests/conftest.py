"""
Shared fixtures for cropsync tests.
"""

import pytest

from cropsync.models import Crop


def build_weather(temp=25.0, rain_per_hour=0.0, hours=168, wind=10.0, uv=6.0):
    """Open-Meteo style hourly forecast with constant values."""
    return {
        "hourly": {
            "temperature_2m": [temp] * hours,
            "precipitation": [rain_per_hour] * hours,
            "wind_speed_10m": [wind] * hours,
            "uv_index": [uv] * hours,
        }
    }


@pytest.fixture
def make_weather():
    return build_weather


@pytest.fixture
def maize():
    return Crop(name="Maize", id="maize", category="Grain", water_requirement="Medium")


@pytest.fixture
def beans():
    return Crop(name="Beans", id="beans", category="Legume", water_requirement="Medium")


@pytest.fixture
def sorghum():
    return Crop(name="Sorghum", id="sorghum", category="Grain", water_requirement="Low")
