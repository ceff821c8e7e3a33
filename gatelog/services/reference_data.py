"""
Static vehicle model list for the entry form's model field.
Loaded once at startup from a local JSON file or an http(s) URL.
Failure is never fatal: the form falls back to free-text entry.
"""

import json
import requests
from gatelog.utils.logger import get_logger

logger = get_logger(__name__)

FETCH_TIMEOUT_SECONDS = 5


def _model_names(data) -> list[str]:
    """Accepts ["Aveo", ...] or [{"name": "Aveo"}, ...]."""
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON list, got {type(data).__name__}")
    names = []
    for item in data:
        name = item.get("name") if isinstance(item, dict) else item
        if isinstance(name, str) and name.strip():
            names.append(name.strip())
    return names


def load_vehicle_models(source: str) -> list[str]:
    if not source:
        return []
    try:
        if source.startswith(("http://", "https://")):
            response = requests.get(source, timeout=FETCH_TIMEOUT_SECONDS)
            response.raise_for_status()
            data = response.json()
        else:
            with open(source, "r", encoding="utf-8") as f:
                data = json.load(f)
        models = _model_names(data)
    except (requests.exceptions.RequestException, OSError, ValueError) as e:
        logger.warning(f"[REFDATA] Vehicle models unavailable from {source}, free-text only: {e}")
        return []
    logger.info(f"[REFDATA] Loaded {len(models)} vehicle models from {source}")
    return models
