"""
Crop Planning Agent
===================

Deterministic crop recommendations from a weather summary.

Used for instant display (quick mode) and as the fallback whenever the
generative recommendation path fails. Scores come from a fixed reference
table of crops commonly grown by Zambian smallholders; no I/O, no state.

Filtering rules:
- Average temperature must fall inside the crop's optimal range
- Very wet forecasts (> 70mm) exclude low-water crops
- Dry forecasts (< 40mm) exclude high-water crops
"""

from typing import Dict, Any, List, Optional

from cropsync.config import MAX_HEURISTIC_RECOMMENDATIONS
from cropsync.models import (
    Crop,
    CropRecommendation,
    RecommendationResponse,
    SeasonClass,
    WeatherSummary,
)
from cropsync.agents.weather_agent import describe_weather
from cropsync.utils.logger import logger


HIGH_RAINFALL_MM = 70
LOW_RAINFALL_MM = 40

# Crop reference table
CROP_DATABASE = {
    "maize": {
        "name": "Maize",
        "scientific_name": "Zea mays",
        "category": "Grain",
        "icon": "🌽",
        "temp_min": 18, "temp_max": 32,
        "water_requirement": "Medium",
        "score": 90,
        "growing_season_days": 120,
        "soil_type": ["Loamy", "Sandy loam"],
        "benefits": ["Staple food crop with a reliable market", "Stover can be used as livestock feed"],
        "care_instructions": ["Top-dress with urea at knee height", "Keep weed-free for the first 6 weeks"],
        "common_pests": ["Fall armyworm", "Stalk borer"],
    },
    "groundnuts": {
        "name": "Groundnuts",
        "scientific_name": "Arachis hypogaea",
        "category": "Legume",
        "icon": "🥜",
        "temp_min": 20, "temp_max": 30,
        "water_requirement": "Medium",
        "score": 85,
        "growing_season_days": 110,
        "soil_type": ["Sandy loam"],
        "benefits": ["Fixes nitrogen for the next season", "High-value oil and protein crop"],
        "care_instructions": ["Earth up when pegging starts", "Harvest before pods over-mature"],
        "common_pests": ["Aphids", "Termites"],
    },
    "cassava": {
        "name": "Cassava",
        "scientific_name": "Manihot esculenta",
        "category": "Root Crop",
        "icon": "🥔",
        "temp_min": 20, "temp_max": 35,
        "water_requirement": "Low",
        "score": 85,
        "growing_season_days": 300,
        "soil_type": ["Sandy", "Loamy"],
        "benefits": ["Very drought tolerant", "Can be left in the ground as a food reserve"],
        "care_instructions": ["Plant disease-free cuttings", "Weed regularly during the first 3 months"],
        "common_pests": ["Cassava mealybug", "Green mite"],
    },
    "sorghum": {
        "name": "Sorghum",
        "scientific_name": "Sorghum bicolor",
        "category": "Grain",
        "icon": "🌾",
        "temp_min": 18, "temp_max": 38,
        "water_requirement": "Low",
        "score": 84,
        "growing_season_days": 110,
        "soil_type": ["Clay loam", "Sandy loam"],
        "benefits": ["Tolerates drought and heat", "Grain suitable for food and brewing"],
        "care_instructions": ["Thin to one plant per station", "Scare birds as grain ripens"],
        "common_pests": ["Birds", "Stem borer"],
    },
    "millet": {
        "name": "Millet",
        "scientific_name": "Eleusine coracana",
        "category": "Grain",
        "icon": "🌾",
        "temp_min": 20, "temp_max": 38,
        "water_requirement": "Low",
        "score": 82,
        "growing_season_days": 100,
        "soil_type": ["Sandy", "Loamy"],
        "benefits": ["Grows on poor soils with little rain", "Stores for years without spoiling"],
        "care_instructions": ["Sow in rows for easier weeding", "Harvest heads as they ripen"],
        "common_pests": ["Shoot fly", "Birds"],
    },
    "beans": {
        "name": "Beans",
        "scientific_name": "Phaseolus vulgaris",
        "category": "Legume",
        "icon": "🫘",
        "temp_min": 15, "temp_max": 27,
        "water_requirement": "Medium",
        "score": 80,
        "growing_season_days": 90,
        "soil_type": ["Loamy"],
        "benefits": ["Short season cash and food crop", "Improves soil nitrogen"],
        "care_instructions": ["Avoid waterlogged fields", "Do not work in the field when leaves are wet"],
        "common_pests": ["Bean stem maggot", "Aphids"],
    },
    "sweet_potato": {
        "name": "Sweet Potato",
        "scientific_name": "Ipomoea batatas",
        "category": "Root Crop",
        "icon": "🍠",
        "temp_min": 20, "temp_max": 32,
        "water_requirement": "Medium",
        "score": 80,
        "growing_season_days": 120,
        "soil_type": ["Sandy loam"],
        "benefits": ["Orange-fleshed varieties are rich in vitamin A", "Vines can be used as fodder"],
        "care_instructions": ["Plant vines on ridges or mounds", "Harvest before the dry season hardens the soil"],
        "common_pests": ["Sweet potato weevil"],
    },
    "rice": {
        "name": "Rice",
        "scientific_name": "Oryza sativa",
        "category": "Grain",
        "icon": "🍚",
        "temp_min": 20, "temp_max": 35,
        "water_requirement": "High",
        "score": 79,
        "growing_season_days": 130,
        "soil_type": ["Clay", "Clay loam"],
        "benefits": ["Thrives in waterlogged dambo areas", "Strong local demand"],
        "care_instructions": ["Maintain standing water after establishment", "Control weeds early"],
        "common_pests": ["Rice blast", "Stem borer"],
    },
    "sunflower": {
        "name": "Sunflower",
        "scientific_name": "Helianthus annuus",
        "category": "Oilseed",
        "icon": "🌻",
        "temp_min": 18, "temp_max": 33,
        "water_requirement": "Low",
        "score": 78,
        "growing_season_days": 100,
        "soil_type": ["Loamy", "Clay loam"],
        "benefits": ["Deep roots cope with dry spells", "Oil cake is valuable livestock feed"],
        "care_instructions": ["Plant late in the rains to avoid head rot", "Protect heads from birds"],
        "common_pests": ["Birds", "African bollworm"],
    },
    "tomato": {
        "name": "Tomato",
        "scientific_name": "Solanum lycopersicum",
        "category": "Vegetable",
        "icon": "🍅",
        "temp_min": 18, "temp_max": 29,
        "water_requirement": "Medium",
        "score": 76,
        "growing_season_days": 90,
        "soil_type": ["Loamy"],
        "benefits": ["High-value market vegetable", "Continuous harvest over several weeks"],
        "care_instructions": ["Stake plants", "Water at the base to reduce blight"],
        "common_pests": ["Tuta absoluta", "Whitefly"],
    },
    "onion": {
        "name": "Onion",
        "scientific_name": "Allium cepa",
        "category": "Vegetable",
        "icon": "🧅",
        "temp_min": 13, "temp_max": 28,
        "water_requirement": "Medium",
        "score": 74,
        "growing_season_days": 120,
        "soil_type": ["Sandy loam"],
        "benefits": ["Stores well after curing", "Steady year-round demand"],
        "care_instructions": ["Stop watering two weeks before harvest", "Cure bulbs in shade"],
        "common_pests": ["Thrips"],
    },
    "cotton": {
        "name": "Cotton",
        "scientific_name": "Gossypium hirsutum",
        "category": "Fibre",
        "icon": "☁️",
        "temp_min": 21, "temp_max": 35,
        "water_requirement": "Medium",
        "score": 72,
        "growing_season_days": 160,
        "soil_type": ["Clay loam", "Loamy"],
        "benefits": ["Cash crop with out-grower schemes", "Tolerates heat well"],
        "care_instructions": ["Scout weekly for bollworms", "Pick clean, dry lint"],
        "common_pests": ["American bollworm", "Aphids"],
    },
    "rape": {
        "name": "Rape",
        "scientific_name": "Brassica napus",
        "category": "Vegetable",
        "icon": "🥬",
        "temp_min": 10, "temp_max": 25,
        "water_requirement": "Medium",
        "score": 72,
        "growing_season_days": 60,
        "soil_type": ["Loamy"],
        "benefits": ["Quick leafy vegetable for household use", "Leaves can be picked repeatedly"],
        "care_instructions": ["Apply manure before transplanting", "Harvest outer leaves regularly"],
        "common_pests": ["Aphids", "Diamondback moth"],
    },
    "cabbage": {
        "name": "Cabbage",
        "scientific_name": "Brassica oleracea var. capitata",
        "category": "Vegetable",
        "icon": "🥬",
        "temp_min": 10, "temp_max": 24,
        "water_requirement": "High",
        "score": 70,
        "growing_season_days": 90,
        "soil_type": ["Loamy", "Clay loam"],
        "benefits": ["Good cool-season market crop"],
        "care_instructions": ["Keep soil evenly moist", "Rotate away from other brassicas"],
        "common_pests": ["Diamondback moth", "Aphids"],
    },
    "tobacco": {
        "name": "Tobacco",
        "scientific_name": "Nicotiana tabacum",
        "category": "Cash Crop",
        "icon": "🍂",
        "temp_min": 20, "temp_max": 30,
        "water_requirement": "Medium",
        "score": 68,
        "growing_season_days": 150,
        "soil_type": ["Sandy loam"],
        "benefits": ["Contract farming with input support"],
        "care_instructions": ["Top and de-sucker plants", "Cure leaves promptly after reaping"],
        "common_pests": ["Root-knot nematodes", "Aphids"],
    },
}


def _reference_crop(key: str, info: Dict[str, Any]) -> Crop:
    return Crop(
        id=key.replace("_", "-"),
        name=info["name"],
        scientific_name=info.get("scientific_name", ""),
        category=info.get("category", ""),
        icon=info.get("icon", ""),
        optimal_temperature={"min": info["temp_min"], "max": info["temp_max"], "unit": "°C"},
        water_requirement=info["water_requirement"],
        growing_season_days=info.get("growing_season_days", 0),
        soil_type=list(info.get("soil_type", [])),
        care_instructions=list(info.get("care_instructions", [])),
        common_pests=list(info.get("common_pests", [])),
    )


def get_reference_crop(name: str) -> Optional[Crop]:
    """Look up a reference crop by id or name (case-insensitive)."""
    wanted = (name or "").strip().lower().replace("-", "_").replace(" ", "_")
    for key, info in CROP_DATABASE.items():
        if wanted in (key, info["name"].lower().replace(" ", "_")):
            return _reference_crop(key, info)
    return None


def _is_suitable(info: Dict[str, Any], summary: WeatherSummary) -> bool:
    temp = summary.average_temperature
    if temp < info["temp_min"] or temp > info["temp_max"]:
        return False
    water = info["water_requirement"]
    if summary.total_rainfall > HIGH_RAINFALL_MM and water == "Low":
        return False
    if summary.total_rainfall < LOW_RAINFALL_MM and water == "High":
        return False
    return True


def _generate_reasoning(info: Dict[str, Any], summary: WeatherSummary) -> str:
    return (
        f"{info['name']} grows well between {info['temp_min']}-{info['temp_max']}°C; the forecast "
        f"averages {summary.average_temperature}°C with {summary.total_rainfall}mm of rain, "
        f"which suits its {info['water_requirement'].lower()} water requirement."
    )


def _generate_warnings(info: Dict[str, Any], summary: WeatherSummary) -> List[str]:
    warnings = []
    if summary.total_rainfall < LOW_RAINFALL_MM and info["water_requirement"] != "Low":
        warnings.append(
            f"Only {summary.total_rainfall}mm of rain expected - plan supplementary irrigation."
        )
    return warnings


GENERAL_ADVICE = {
    SeasonClass.WET: "Heavy rain expected: prioritise drainage, plant on ridges and watch for fungal disease.",
    SeasonClass.MODERATE_WET: "Good moisture for planting: sow promptly and top-dress while the soil is moist.",
    SeasonClass.TRANSITION: "Rains are light: plant drought-tolerant varieties and mulch to keep moisture in.",
    SeasonClass.DRY: "Dry conditions: favour drought-resistant crops and only plant others where irrigation is available.",
}


def recommend_crops(summary: WeatherSummary, location_name: str, limit: int = None) -> RecommendationResponse:
    """
    Rank reference crops for a weather summary.

    Args:
        summary: Output from the Weather Agent
        location_name: Location shown in the response
        limit: Maximum crops to return (defaults to MAX_HEURISTIC_RECOMMENDATIONS)

    Returns:
        RecommendationResponse with up to `limit` crops, best first
    """
    limit = MAX_HEURISTIC_RECOMMENDATIONS if limit is None else limit

    candidates = [(key, info) for key, info in CROP_DATABASE.items() if _is_suitable(info, summary)]
    # sorted() is stable: equal scores keep table order
    candidates = sorted(candidates, key=lambda item: item[1]["score"], reverse=True)[:limit]

    recommendations = [
        CropRecommendation(
            crop=_reference_crop(key, info),
            suitability_score=info["score"],
            reasoning=_generate_reasoning(info, summary),
            benefits=list(info.get("benefits", [])),
            warnings=_generate_warnings(info, summary),
        )
        for key, info in candidates
    ]

    logger.info(
        f"Crop Planning Agent: {len(recommendations)} heuristic crops for {location_name}: "
        f"{', '.join(r.crop.name for r in recommendations) or 'none'}"
    )

    return RecommendationResponse(
        location_name=location_name,
        weather_summary=describe_weather(summary),
        recommendations=recommendations,
        general_advice=GENERAL_ADVICE.get(summary.season_class, ""),
    )
