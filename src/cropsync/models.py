"""
Data Model
==========

Domain types shared by the recommendation engine and the offline sync layer.

Wire format (generation responses, local store, remote store) uses the camelCase
field names of the mobile client; the Python attributes are snake_case.
"""

import time
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional


class SeasonClass(Enum):
    """Season classification derived from accumulated forecast rainfall."""
    WET = "WET_SEASON"
    MODERATE_WET = "MODERATE_WET"
    TRANSITION = "TRANSITION"
    DRY = "DRY_SEASON"


class OperationType(Enum):
    """Mutations recorded in the pending operation log."""
    ADD = "add"
    DELETE = "delete"
    CLEAR = "clear"


class AddResult(Enum):
    """Outcome of saving a crop locally."""
    ADDED = "added"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class WeatherSummary:
    average_temperature: float
    total_rainfall: float
    wind_speed: float
    uv_index: float
    season_class: SeasonClass
    conditions: str = ""
    hours_analyzed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "averageTemperature": self.average_temperature,
            "totalRainfall": self.total_rainfall,
            "windSpeed": self.wind_speed,
            "uvIndex": self.uv_index,
            "seasonType": self.season_class.value,
            "conditions": self.conditions,
            "hoursAnalyzed": self.hours_analyzed,
        }


def _as_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    return [str(value)]


@dataclass(frozen=True)
class Crop:
    """
    A crop as saved by the user or produced by a recommendation.

    Crops are never mutated field by field; re-saving replaces the whole record.
    """
    name: str
    id: str = ""
    scientific_name: str = ""
    category: str = ""
    description: str = ""
    icon: str = ""
    optimal_temperature: Dict[str, Any] = field(default_factory=dict)
    water_requirement: str = "Medium"
    growing_season_days: int = 0
    sunlight_requirement: str = "Full Sun"
    soil_type: List[str] = field(default_factory=list)
    planting_depth: str = ""
    spacing: str = ""
    planting_time: str = ""
    care_instructions: List[str] = field(default_factory=list)
    common_pests: List[str] = field(default_factory=list)
    common_diseases: List[str] = field(default_factory=list)
    harvest_time: str = ""
    harvest_yield: str = ""
    storage_instructions: str = ""
    tips: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.id:
            object.__setattr__(self, "id", self.name.strip().lower())

    @property
    def identity_key(self) -> str:
        """Deduplication key: the id, or the lowercased name when no id was given."""
        return self.id or self.name.strip().lower()

    def matches(self, identity: str) -> bool:
        """True if identity names this crop by id or by case-insensitive name."""
        if not identity:
            return False
        wanted = identity.strip().lower()
        return wanted == self.identity_key.lower() or wanted == self.name.strip().lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "scientificName": self.scientific_name,
            "category": self.category,
            "description": self.description,
            "icon": self.icon,
            "optimalTemperature": dict(self.optimal_temperature),
            "waterRequirement": self.water_requirement,
            "growingSeasonDays": self.growing_season_days,
            "sunlightRequirement": self.sunlight_requirement,
            "soilType": list(self.soil_type),
            "plantingDepth": self.planting_depth,
            "spacing": self.spacing,
            "plantingTime": self.planting_time,
            "careInstructions": list(self.care_instructions),
            "commonPests": list(self.common_pests),
            "commonDiseases": list(self.common_diseases),
            "harvestTime": self.harvest_time,
            "harvestYield": self.harvest_yield,
            "storageInstructions": self.storage_instructions,
            "tips": list(self.tips),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Crop":
        """Build a crop from its wire form. Raises ValueError when the name is missing."""
        name = str(data.get("name") or "").strip()
        if not name:
            raise ValueError("Crop record has no name")
        try:
            season_days = int(data.get("growingSeasonDays") or 0)
        except (TypeError, ValueError):
            season_days = 0
        return cls(
            name=name,
            id=str(data.get("id") or "").strip(),
            scientific_name=str(data.get("scientificName") or ""),
            category=str(data.get("category") or ""),
            description=str(data.get("description") or ""),
            icon=str(data.get("icon") or ""),
            optimal_temperature=dict(data.get("optimalTemperature") or {}),
            water_requirement=str(data.get("waterRequirement") or "Medium"),
            growing_season_days=season_days,
            sunlight_requirement=str(data.get("sunlightRequirement") or "Full Sun"),
            soil_type=_as_list(data.get("soilType")),
            planting_depth=str(data.get("plantingDepth") or ""),
            spacing=str(data.get("spacing") or ""),
            planting_time=str(data.get("plantingTime") or ""),
            care_instructions=_as_list(data.get("careInstructions")),
            common_pests=_as_list(data.get("commonPests")),
            common_diseases=_as_list(data.get("commonDiseases")),
            harvest_time=str(data.get("harvestTime") or ""),
            harvest_yield=str(data.get("harvestYield") or ""),
            storage_instructions=str(data.get("storageInstructions") or ""),
            tips=_as_list(data.get("tips")),
        )


def clamp_score(value: Any) -> int:
    """Coerce a suitability score into an int within [0, 100]."""
    try:
        score = int(round(float(value)))
    except (TypeError, ValueError):
        return 0
    return max(0, min(100, score))


@dataclass
class CropRecommendation:
    crop: Crop
    suitability_score: int
    reasoning: str = ""
    benefits: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.suitability_score = clamp_score(self.suitability_score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "crop": self.crop.to_dict(),
            "suitabilityScore": self.suitability_score,
            "reasoning": self.reasoning,
            "benefits": list(self.benefits),
            "warnings": list(self.warnings),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CropRecommendation":
        return cls(
            crop=Crop.from_dict(data.get("crop") or {}),
            suitability_score=data.get("suitabilityScore", 0),
            reasoning=str(data.get("reasoning") or ""),
            benefits=_as_list(data.get("benefits")),
            warnings=_as_list(data.get("warnings")),
        )


@dataclass
class RecommendationResponse:
    location_name: str
    weather_summary: str
    recommendations: List[CropRecommendation] = field(default_factory=list)
    general_advice: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "locationName": self.location_name,
            "weatherSummary": self.weather_summary,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "generalAdvice": self.general_advice,
        }


@dataclass
class PendingOperation:
    type: OperationType
    crop: Optional[Crop] = None
    crop_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)
    # Identifies the entry when a sync acknowledges it
    op_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.op_id,
            "type": self.type.value,
            "crop": self.crop.to_dict() if self.crop else None,
            "cropId": self.crop_id,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PendingOperation":
        crop = data.get("crop")
        return cls(
            type=OperationType(data["type"]),
            crop=Crop.from_dict(crop) if crop else None,
            crop_id=data.get("cropId"),
            timestamp=float(data.get("timestamp") or 0),
            op_id=str(data.get("id") or ""),
        )
