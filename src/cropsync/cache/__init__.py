from cropsync.cache.recommendation_cache import RecommendationCache

__all__ = ["RecommendationCache"]
