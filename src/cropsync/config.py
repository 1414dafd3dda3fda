import os

AWS_REGION = os.environ.get("AWS_REGION", "ap-south-1")

LLM_MODEL = os.environ.get("LLM_MODEL", "anthropic.claude-3-haiku-20240307-v1:0")
LLM_MAX_TOKENS = int(os.environ.get("LLM_MAX_TOKENS", "4096"))
LLM_TIMEOUT_SECONDS = int(os.environ.get("LLM_TIMEOUT_SECONDS", "30"))

# Recommendation cache and offline sync policy
CACHE_TTL_SECONDS = int(os.environ.get("CACHE_TTL_SECONDS", "1800"))  # 30 minutes
CACHE_FALLBACK_RESULTS = os.environ.get("CACHE_FALLBACK_RESULTS", "false").lower() == "true"
SYNC_STALENESS_SECONDS = int(os.environ.get("SYNC_STALENESS_SECONDS", "300"))  # 5 minutes

FORECAST_WINDOW_HOURS = int(os.environ.get("FORECAST_WINDOW_HOURS", "168"))  # 7 days
MAX_HEURISTIC_RECOMMENDATIONS = int(os.environ.get("MAX_HEURISTIC_RECOMMENDATIONS", "6"))
PREFETCH_WORKERS = int(os.environ.get("PREFETCH_WORKERS", "4"))

SAVED_CROPS_TABLE = os.environ.get("SAVED_CROPS_TABLE", "farmer-saved-crops")
LOCAL_STORE_DIR = os.environ.get("LOCAL_STORE_DIR", "/tmp/cropsync")

CONNECTIVITY_CHECK_URL = os.environ.get("CONNECTIVITY_CHECK_URL", "https://clients3.google.com/generate_204")
CONNECTIVITY_TIMEOUT_SECONDS = float(os.environ.get("CONNECTIVITY_TIMEOUT_SECONDS", "5"))
