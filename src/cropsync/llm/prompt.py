from cropsync.models import WeatherSummary

CROP_SELECTION_RULES = """Crop selection rules (follow strictly):
- Rainfall > 70mm: recommend ONLY high-water crops (rice, sugarcane, leafy vegetables)
- Rainfall 40-70mm: recommend medium-water crops (maize, beans, groundnuts, sweet potato)
- Rainfall 20-40mm: recommend drought-tolerant crops (sorghum, sunflower, cowpeas, cassava)
- Rainfall < 20mm: recommend ONLY drought-resistant crops (millet, sorghum, cassava)
- Temperature > 28°C: exclude cool-season crops (cabbage, rape, peas, wheat)
- Temperature < 18°C: exclude heat-loving crops (cotton, millet, sorghum, cassava)"""

RESPONSE_SCHEMA = """{
  "weatherSummary": "Brief weather summary (max 2 sentences)",
  "recommendations": [
    {
      "crop": {
        "id": "crop-name-lowercase",
        "name": "Crop Name",
        "scientificName": "Scientific name",
        "category": "Grain/Vegetable/Legume/Root Crop",
        "description": "1-2 sentence description",
        "icon": "🌽",
        "optimalTemperature": {"min": 15, "max": 30, "unit": "°C"},
        "waterRequirement": "Low/Medium/High",
        "growingSeasonDays": 90,
        "sunlightRequirement": "Full Sun",
        "soilType": ["Loamy"],
        "plantingDepth": "2-3cm",
        "spacing": "30cm x 60cm",
        "plantingTime": "Best season",
        "careInstructions": ["tip1", "tip2", "tip3"],
        "commonPests": ["pest1", "pest2"],
        "commonDiseases": ["disease1", "disease2"],
        "harvestTime": "When to harvest",
        "harvestYield": "Expected yield",
        "storageInstructions": "Storage method"
      },
      "suitabilityScore": 85,
      "reasoning": "Why suitable (1 sentence)",
      "benefits": ["benefit1", "benefit2"],
      "warnings": ["warning if any"]
    }
  ],
  "generalAdvice": "Farming tip for current conditions (1-2 sentences)"
}"""


def build_recommendation_prompt(location_name: str, summary: WeatherSummary) -> str:
    return f"""
You are an agricultural advisor for Zambian farmers.
Based on the weather forecast for {location_name}, recommend 4 suitable crops.

Weather (next {summary.hours_analyzed} hours):
- Average temperature: {summary.average_temperature}°C
- Total rainfall: {summary.total_rainfall}mm
- Average wind speed: {summary.wind_speed} km/h
- Peak UV index: {summary.uv_index}
- Conditions: {summary.conditions}
- Season: {summary.season_class.value}

{CROP_SELECTION_RULES}

Focus on crops commonly grown in Zambia (maize, groundnuts, beans, sunflower,
sweet potato, cassava, tobacco, cotton, sorghum, millet, and vegetables like
tomatoes, rape, cabbage, onions).

Return ONLY valid JSON in this format, no markdown:
{RESPONSE_SCHEMA}
"""


def build_crop_details_prompt(crop_name: str, summary: WeatherSummary = None) -> str:
    weather_context = ""
    if summary is not None:
        weather_context = f"""
Current weather conditions:
- Temperature: {summary.average_temperature}°C
- Rainfall: {summary.total_rainfall}mm

Provide tips specific to these weather conditions."""

    return f"""
You are an expert agricultural advisor.
Provide comprehensive information about growing {crop_name} for small-scale farmers.{weather_context}

Return ONLY valid JSON with the same fields as a crop record:
id, name, scientificName, category, description, icon, optimalTemperature,
waterRequirement, growingSeasonDays, sunlightRequirement, soilType,
plantingDepth, spacing, plantingTime, careInstructions, commonPests,
commonDiseases, harvestTime, harvestYield, storageInstructions, tips.
Use "{crop_name}" as the name.
"""
