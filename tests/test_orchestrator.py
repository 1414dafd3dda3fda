"""
Unit tests for the Orchestrator (RecommendationResolver)
"""

import json
import threading
import time

import pytest
from unittest.mock import patch, MagicMock

from cropsync.agents.orchestrator import CropDetailsError, RecommendationResolver
from cropsync.agents.weather_agent import InsufficientDataError
from cropsync.cache.recommendation_cache import RecommendationCache
from cropsync.models import RecommendationResponse


GENERATED = json.dumps({
    "weatherSummary": "Warm week with light showers",
    "recommendations": [
        {
            "crop": {"id": "maize", "name": "Maize"},
            "suitabilityScore": 92,
            "reasoning": "Ideal temperatures",
            "benefits": ["Staple"],
            "warnings": [],
        }
    ],
    "generalAdvice": "Plant now.",
})


@pytest.fixture
def cache():
    return RecommendationCache()


@pytest.fixture
def generate():
    return MagicMock(return_value=GENERATED)


@pytest.fixture
def resolver(cache, generate):
    resolver = RecommendationResolver(cache=cache, generate=generate)
    yield resolver
    resolver.shutdown()


class TestGetCropRecommendations:
    """Test cases for recommendation resolution."""

    @patch('cropsync.agents.orchestrator.logger')
    def test_generated_result_is_cached(self, mock_logger, resolver, cache, generate, make_weather):
        result = resolver.get_crop_recommendations(make_weather(temp=25.0), "Lusaka")

        assert [r.crop.name for r in result.recommendations] == ["Maize"]
        assert result.general_advice == "Plant now."
        assert cache.get("Lusaka") is result
        generate.assert_called_once()
        assert "Lusaka" in generate.call_args[0][0]

    def test_cache_hit_skips_generation(self, resolver, cache, generate, make_weather):
        cached = RecommendationResponse(location_name="Lusaka", weather_summary="cached")
        cache.put("Lusaka", cached)

        assert resolver.get_crop_recommendations(make_weather(), "Lusaka") is cached
        generate.assert_not_called()

    def test_use_cache_false_regenerates(self, resolver, cache, generate, make_weather):
        cache.put("Lusaka", RecommendationResponse(location_name="Lusaka", weather_summary="old"))

        result = resolver.get_crop_recommendations(make_weather(), "Lusaka", use_cache=False)

        generate.assert_called_once()
        assert result.weather_summary == "Warm week with light showers"
        assert cache.get("Lusaka") is result

    def test_quick_mode_uses_heuristic_and_skips_cache(self, resolver, cache, generate, make_weather):
        result = resolver.get_crop_recommendations(
            make_weather(temp=26.0), "Lusaka", use_quick_fallback=True
        )

        generate.assert_not_called()
        assert result.recommendations
        assert cache.get("Lusaka") is None

    def test_generation_error_falls_back(self, cache, make_weather):
        resolver = RecommendationResolver(cache=cache, generate=MagicMock(side_effect=RuntimeError("timeout")))

        result = resolver.get_crop_recommendations(make_weather(temp=26.0), "Lusaka")

        assert result.recommendations
        assert all(r.crop.water_requirement != "High" for r in result.recommendations)
        assert cache.get("Lusaka") is None
        resolver.shutdown()

    def test_fallback_cached_when_enabled(self, cache, make_weather):
        resolver = RecommendationResolver(
            cache=cache,
            generate=MagicMock(side_effect=RuntimeError("timeout")),
            cache_fallback_results=True,
        )

        result = resolver.get_crop_recommendations(make_weather(temp=26.0), "Lusaka")

        assert cache.get("Lusaka") is result
        resolver.shutdown()

    def test_unparseable_output_falls_back(self, cache, make_weather):
        resolver = RecommendationResolver(cache=cache, generate=MagicMock(return_value="Service busy"))

        result = resolver.get_crop_recommendations(make_weather(temp=26.0), "Lusaka")

        assert result.recommendations
        resolver.shutdown()

    def test_empty_generated_list_is_not_a_failure(self, cache, make_weather):
        """Test a valid empty recommendation list is returned as is."""
        generate = MagicMock(return_value='```json\n{"recommendations": []}\n```')
        resolver = RecommendationResolver(cache=cache, generate=generate)

        result = resolver.get_crop_recommendations(make_weather(temp=26.0), "Lusaka")

        assert result.recommendations == []
        assert cache.get("Lusaka") is result
        resolver.shutdown()

    def test_insufficient_data_is_raised(self, resolver, cache, generate):
        with pytest.raises(InsufficientDataError):
            resolver.get_crop_recommendations({"hourly": {"temperature_2m": []}}, "Lusaka")

        generate.assert_not_called()
        assert not cache.in_flight("Lusaka")

    def test_concurrent_calls_coalesce(self, cache, make_weather):
        """Test two simultaneous requests for one location make one generation call."""
        def slow_generate(prompt):
            time.sleep(0.1)
            return GENERATED

        generate = MagicMock(side_effect=slow_generate)
        resolver = RecommendationResolver(cache=cache, generate=generate)
        barrier = threading.Barrier(2)
        results = []
        finished = []

        def worker():
            barrier.wait()
            results.append(resolver.get_crop_recommendations(make_weather(), "Lusaka"))
            finished.append(time.monotonic())

        threads = [threading.Thread(target=worker) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert generate.call_count == 1
        assert len(results) == 2
        assert results[0] is results[1]
        assert abs(finished[0] - finished[1]) < 0.05
        resolver.shutdown()


class TestPrefetch:
    """Test cases for background prefetch."""

    def test_prefetch_warms_cache(self, resolver, cache, make_weather):
        future = resolver.prefetch_crop_recommendations(make_weather(), "Lusaka")

        result = future.result(timeout=5)

        assert cache.get("Lusaka") is result
        assert resolver.get_prefetch_status("Lusaka").state == "done"

    def test_prefetch_failure_is_recorded_not_raised(self, resolver):
        future = resolver.prefetch_crop_recommendations({"hourly": {}}, "Lusaka")

        assert future.result(timeout=5) is None
        status = resolver.get_prefetch_status("Lusaka")
        assert status.state == "failed"
        assert status.error

    def test_unknown_location_has_no_status(self, resolver):
        assert resolver.get_prefetch_status("Nowhere") is None


class TestCropDetails:
    """Test cases for crop detail lookups."""

    def test_generated_details(self, cache):
        details = json.dumps({"name": "Maize", "plantingDepth": "5cm", "tips": ["Weed early"]})
        resolver = RecommendationResolver(cache=cache, generate=MagicMock(return_value=details))

        crop = resolver.get_crop_details("Maize")

        assert crop.planting_depth == "5cm"
        assert crop.tips == ["Weed early"]
        resolver.shutdown()

    def test_falls_back_to_reference_table(self, cache):
        resolver = RecommendationResolver(cache=cache, generate=MagicMock(side_effect=RuntimeError("down")))

        crop = resolver.get_crop_details("Sorghum")

        assert crop.name == "Sorghum"
        assert crop.water_requirement == "Low"
        resolver.shutdown()

    def test_unknown_crop_raises(self, cache):
        resolver = RecommendationResolver(cache=cache, generate=MagicMock(side_effect=RuntimeError("down")))

        with pytest.raises(CropDetailsError):
            resolver.get_crop_details("Dragonfruit")
        resolver.shutdown()
