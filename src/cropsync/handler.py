import json

from cropsync.agents.orchestrator import RecommendationResolver, CropDetailsError
from cropsync.agents.weather_agent import InsufficientDataError, fetch_hourly_forecast
from cropsync.models import AddResult, Crop
from cropsync.storage.local_store import DurableLocalStore
from cropsync.storage.remote_store import RemoteCropStore
from cropsync.sync.reconciler import SyncReconciler
from cropsync.utils.logger import logger

# CORS headers for API Gateway responses
CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type,X-User-Id",
}

# Lazy initialization
_resolver = None
_local_store = None
_remote_store = None


def _get_resolver() -> RecommendationResolver:
    global _resolver
    if _resolver is None:
        _resolver = RecommendationResolver()
    return _resolver


def _get_local_store() -> DurableLocalStore:
    global _local_store
    if _local_store is None:
        _local_store = DurableLocalStore()
    return _local_store


def _get_remote_store() -> RemoteCropStore:
    global _remote_store
    if _remote_store is None:
        _remote_store = RemoteCropStore()
    return _remote_store


def _response(status_code: int, body: dict) -> dict:
    return {
        "statusCode": status_code,
        "headers": CORS_HEADERS,
        "body": json.dumps(body)
    }


def _parse_event(event: dict) -> dict:
    """Support both POST (JSON body) and GET (query string)."""
    if event.get("body"):
        return json.loads(event["body"])
    return dict(event.get("queryStringParameters") or {})


def _flag(params: dict, name: str, default: bool) -> bool:
    value = params.get(name, default)
    if isinstance(value, str):
        return value.lower() == "true"
    return bool(value)


def _weather_input(params: dict):
    if params.get("weather"):
        return params["weather"]
    if params.get("latitude") is not None and params.get("longitude") is not None:
        return fetch_hourly_forecast(float(params["latitude"]), float(params["longitude"]))
    return None


def _handle_recommend(params: dict) -> dict:
    location = params.get("location") or params.get("locationName")
    if not location:
        return _response(400, {"error": "location is required."})

    weather = _weather_input(params)
    if weather is None:
        return _response(400, {"error": "Provide hourly weather data or latitude/longitude."})

    result = _get_resolver().get_crop_recommendations(
        weather,
        location,
        use_cache=_flag(params, "use_cache", True),
        use_quick_fallback=_flag(params, "quick", False),
    )
    return _response(200, result.to_dict())


def _handle_crop_details(params: dict) -> dict:
    crop_name = params.get("crop") or params.get("name")
    if not crop_name:
        return _response(400, {"error": "crop is required."})
    try:
        crop = _get_resolver().get_crop_details(crop_name, params.get("weather"))
    except CropDetailsError as e:
        return _response(404, {"error": str(e)})
    return _response(200, crop.to_dict())


def _saved_crops_body(store: DurableLocalStore) -> dict:
    return {
        "savedCrops": [crop.to_dict() for crop in store.read_all()],
        "pendingOperations": len(store.pending_log),
    }


def _handle_saved_crops(action: str, params: dict) -> dict:
    store = _get_local_store()

    if action == "list_crops":
        return _response(200, _saved_crops_body(store))

    if action == "save_crop":
        if not isinstance(params.get("crop"), dict):
            return _response(400, {"error": "crop object is required."})
        result = store.add(Crop.from_dict(params["crop"]))
        message = "Crop saved successfully!" if result == AddResult.ADDED else "This crop is already saved."
        return _response(200, {"result": result.value, "message": message, **_saved_crops_body(store)})

    if action == "delete_crop":
        crop_id = params.get("cropId") or params.get("crop_id")
        if not crop_id:
            return _response(400, {"error": "cropId is required."})
        removed = store.delete(crop_id)
        return _response(200, {"removed": removed, **_saved_crops_body(store)})

    store.clear()
    return _response(200, _saved_crops_body(store))


def _handle_sync(params: dict, user_id: str) -> dict:
    if not user_id:
        return _response(400, {"error": "userId is required for sync."})
    reconciler = SyncReconciler(_get_local_store(), _get_remote_store(), user_id)
    if _flag(params, "force", True):
        result = reconciler.sync_now()
    else:
        result = reconciler.maybe_sync()
    return _response(200, result.to_dict())


def lambda_handler(event, context):
    logger.info(event)

    try:
        params = _parse_event(event)
        action = params.get("action", "recommend")
        user_id = params.get("userId") or (event.get("headers") or {}).get("X-User-Id")

        if action == "recommend":
            return _handle_recommend(params)
        if action == "crop_details":
            return _handle_crop_details(params)
        if action in ("list_crops", "save_crop", "delete_crop", "clear_crops"):
            return _handle_saved_crops(action, params)
        if action == "sync":
            return _handle_sync(params, user_id)
        if action == "cache_stats":
            return _response(200, _get_resolver().cache.stats())

        return _response(400, {"error": f"Unknown action: {action}"})

    except (InsufficientDataError, ValueError) as e:
        logger.warning(f"Invalid request: {e}")
        return _response(400, {"error": str(e)})
    except Exception as e:
        logger.error(f"Error processing request: {e}")
        return _response(500, {"error": str(e)})
