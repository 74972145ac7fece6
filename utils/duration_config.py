"""Settings for duration computations, read from the environment."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

log = logging.getLogger(__name__)

DEFAULT_DURATION_SETTINGS: Dict[str, Any] = {
    "default_zone": "UTC",
}

VALID_KEYS = set(DEFAULT_DURATION_SETTINGS)


@dataclass(frozen=True)
class DurationSettings:
    default_zone: str = "UTC"


def _valid_zone(value: str) -> bool:
    if value.upper() == "UTC":
        return True
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return False
    return True


def _read_json_overrides() -> Dict[str, Any]:
    candidates = []
    env_path = os.getenv("DURATION_CONFIG")
    if env_path:
        candidates.append(Path(env_path))
    candidates.append(Path("config/duration.json"))
    for candidate in candidates:
        if not candidate.is_file():
            continue
        try:
            data = json.loads(candidate.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log.warning("Configuration %s illisible, ignorée: %s", candidate, exc)
            continue
        if not isinstance(data, dict):
            log.warning("Configuration %s ignorée: objet JSON attendu", candidate)
            continue
        return {k: v for k, v in data.items() if k in VALID_KEYS and v is not None}
    return {}


def load_duration_settings() -> DurationSettings:
    """Return settings from defaults, an optional JSON file and the environment.

    ``DURATION_DEFAULT_ZONE`` wins over the JSON file. A zone that cannot be
    loaded is dropped with a warning and the default is kept.
    """
    load_dotenv()
    raw = dict(DEFAULT_DURATION_SETTINGS)
    raw.update(_read_json_overrides())
    env_zone = (os.getenv("DURATION_DEFAULT_ZONE") or "").strip()
    if env_zone:
        raw["default_zone"] = env_zone

    zone = str(raw["default_zone"]).strip()
    if not _valid_zone(zone):
        log.warning(
            "Fuseau %s ignoré, utilisation de %s",
            zone,
            DEFAULT_DURATION_SETTINGS["default_zone"],
        )
        zone = DEFAULT_DURATION_SETTINGS["default_zone"]
    return DurationSettings(default_zone=zone)
