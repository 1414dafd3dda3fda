"""
Orchestrator Agent
==================

Resolves crop recommendations for a location from its weather forecast.

Resolution order:
1. Cache hit      - a live cached response for the location is returned as is
2. Quick mode     - heuristic recommendations, no generation call, no caching
3. Generation     - one coalesced generation call per location, parsed with the
                    repair chain; any generation or parsing failure falls back
                    to the heuristic Crop Planning Agent

Only bad input (InsufficientDataError) reaches the caller: a lower-quality
recommendation is always preferred over none.

Also provides:
- Best-effort background prefetch with an observable status per location
- Crop detail lookups with a reference-table fallback
"""

import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from threading import Lock
from typing import Dict, Any, Callable, Optional

from cropsync.config import CACHE_FALLBACK_RESULTS, PREFETCH_WORKERS
from cropsync.models import Crop, RecommendationResponse, WeatherSummary
from cropsync.cache.recommendation_cache import RecommendationCache
from cropsync.agents.weather_agent import analyze_weather_data
from cropsync.agents.crop_planning_agent import recommend_crops, get_reference_crop
from cropsync.llm.bedrock_client import call_llm
from cropsync.llm.prompt import build_recommendation_prompt, build_crop_details_prompt
from cropsync.llm.response_parser import parse_recommendation_response, parse_structured
from cropsync.utils.logger import logger


class CropDetailsError(Exception):
    """Raised when details for a crop can be neither generated nor looked up."""

    def __init__(self, crop_name: str, reason: str = ""):
        self.crop_name = crop_name
        super().__init__(f"No details available for {crop_name}: {reason}")


@dataclass
class PrefetchStatus:
    state: str  # pending, done, failed
    error: Optional[str] = None
    updated_at: float = 0.0


class RecommendationResolver:
    """
    Cache-first, coalesced, fallback-protected recommendation resolution.

    The cache and the generation capability are injected so that several
    resolvers (or tests) can run with isolated state.
    """

    def __init__(
        self,
        cache: RecommendationCache = None,
        generate: Callable[[str], str] = None,
        cache_fallback_results: bool = CACHE_FALLBACK_RESULTS,
        prefetch_workers: int = PREFETCH_WORKERS,
    ):
        self.cache = cache or RecommendationCache()
        self.generate = generate or call_llm
        self.cache_fallback_results = cache_fallback_results
        self._prefetch_pool = ThreadPoolExecutor(max_workers=prefetch_workers, thread_name_prefix="prefetch")
        self._prefetch_status: Dict[str, PrefetchStatus] = {}
        self._status_lock = Lock()

    def get_crop_recommendations(
        self,
        weather_data: Dict[str, Any],
        location_name: str,
        use_cache: bool = True,
        use_quick_fallback: bool = False,
    ) -> RecommendationResponse:
        """
        Get crop recommendations for a location.

        Args:
            weather_data: Hourly forecast (see Weather Agent)
            location_name: Location name, also the cache key
            use_cache: Serve a live cached response when available
            use_quick_fallback: Return heuristic recommendations immediately

        Returns:
            RecommendationResponse (never raises for generation/parsing failures)

        Raises:
            InsufficientDataError: if the forecast holds no usable hours
        """
        logger.info(f"Orchestrator: getting crop recommendations for {location_name}")

        if use_cache:
            cached = self.cache.get(location_name)
            if cached is not None:
                logger.info(f"Orchestrator: returning cached recommendations for {location_name}")
                return cached

        if use_quick_fallback:
            summary = analyze_weather_data(weather_data)
            logger.info(f"Orchestrator: quick heuristic recommendations for {location_name}")
            return recommend_crops(summary, location_name)

        return self.cache.resolve(
            location_name,
            lambda: self._produce(weather_data, location_name),
            use_cache=use_cache,
        )

    def _produce(self, weather_data: Dict[str, Any], location_name: str) -> RecommendationResponse:
        start_time = time.time()
        summary = analyze_weather_data(weather_data)

        try:
            prompt = build_recommendation_prompt(location_name, summary)
            text = self.generate(prompt)
            logger.info(
                f"Orchestrator: generation for {location_name} responded in "
                f"{round((time.time() - start_time) * 1000)}ms ({len(text or '')} chars)"
            )
            result = parse_recommendation_response(text, location_name)
        except Exception as e:
            logger.warning(
                f"Orchestrator: generation failed for {location_name} after "
                f"{round((time.time() - start_time) * 1000)}ms, using heuristic fallback: {e}"
            )
            fallback = recommend_crops(summary, location_name)
            if self.cache_fallback_results:
                self.cache.put(location_name, fallback)
            return fallback

        self.cache.put(location_name, result)
        logger.info(
            f"Orchestrator: {len(result.recommendations)} crops for {location_name}: "
            f"{', '.join(r.crop.name for r in result.recommendations) or 'none'}"
        )
        return result

    def prefetch_crop_recommendations(self, weather_data: Dict[str, Any], location_name: str) -> Future:
        """
        Warm the cache in the background.

        The returned future never raises; failures are logged and exposed via
        get_prefetch_status(). Abandoning the future does not cancel the
        generation call, whose result still lands in the cache.
        """
        logger.info(f"Orchestrator: prefetching recommendations for {location_name}")
        self._set_prefetch_status(location_name, "pending")
        return self._prefetch_pool.submit(self._run_prefetch, weather_data, location_name)

    def _run_prefetch(self, weather_data: Dict[str, Any], location_name: str) -> Optional[RecommendationResponse]:
        try:
            result = self.get_crop_recommendations(weather_data, location_name, use_cache=True)
        except Exception as e:
            logger.warning(f"Orchestrator: prefetch failed for {location_name} (non-critical): {e}")
            self._set_prefetch_status(location_name, "failed", str(e))
            return None
        self._set_prefetch_status(location_name, "done")
        return result

    def _set_prefetch_status(self, location_name: str, state: str, error: str = None):
        with self._status_lock:
            self._prefetch_status[location_name] = PrefetchStatus(state, error, time.time())

    def get_prefetch_status(self, location_name: str) -> Optional[PrefetchStatus]:
        with self._status_lock:
            return self._prefetch_status.get(location_name)

    def get_crop_details(self, crop_name: str, weather_data: Dict[str, Any] = None) -> Crop:
        """
        Get detailed growing information for a crop.

        Falls back to the reference table when generation fails.

        Raises:
            CropDetailsError: if neither source knows the crop
            InsufficientDataError: if weather_data is given but unusable
        """
        summary: Optional[WeatherSummary] = None
        if weather_data is not None:
            summary = analyze_weather_data(weather_data)

        try:
            text = self.generate(build_crop_details_prompt(crop_name, summary))
            data = parse_structured(text)
            data.setdefault("name", crop_name)
            return Crop.from_dict(data)
        except Exception as e:
            logger.warning(f"Orchestrator: crop details generation failed for {crop_name}: {e}")
            reference = get_reference_crop(crop_name)
            if reference is None:
                raise CropDetailsError(crop_name, str(e))
            return reference

    def shutdown(self, wait: bool = True):
        self._prefetch_pool.shutdown(wait=wait)
