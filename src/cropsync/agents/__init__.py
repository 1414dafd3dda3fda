"""
Recommendation Agents
=====================

- Weather Agent: condenses an hourly forecast into a WeatherSummary
- Crop Planning Agent: deterministic heuristic crop ranking (fallback / quick mode)
- Orchestrator: cache-first, coalesced generation with heuristic fallback

All agents exchange the dataclasses defined in cropsync.models.
"""
