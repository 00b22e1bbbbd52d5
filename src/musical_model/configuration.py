from __future__ import annotations

import json
from copy import deepcopy
from pathlib import Path
from typing import Any

DEFAULT_CONFIG: dict[str, dict[str, Any]] = {
    "import": {
        "performer_prefix": "Track",
        "group_chords": True,
        "include_dynamics": True,
    },
    "query": {
        "kinds": None,
        "limit": None,
    },
}


def get_default_config() -> dict[str, dict[str, Any]]:
    return deepcopy(DEFAULT_CONFIG)


def _overlay(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = deepcopy(base)
    for key, value in overlay.items():
        nested = merged.get(key)
        merged[key] = _overlay(nested, value) if isinstance(value, dict) and isinstance(nested, dict) else value
    return merged


def validate_config(config: dict[str, Any]) -> dict[str, Any]:
    """Check the ``import`` and ``query`` sections and return ``config`` unchanged."""
    for section in ("import", "query"):
        if not isinstance(config.get(section), dict):
            raise ValueError(f"Config section {section!r} must be an object.")

    import_section = config["import"]
    if not isinstance(import_section["performer_prefix"], str):
        raise ValueError("import.performer_prefix must be a string.")
    for flag in ("group_chords", "include_dynamics"):
        if not isinstance(import_section[flag], bool):
            raise ValueError(f"import.{flag} must be true or false.")

    kinds = config["query"]["kinds"]
    if kinds is not None and (not isinstance(kinds, list) or not all(isinstance(k, str) for k in kinds)):
        raise ValueError("query.kinds must be null or a list of strings.")
    limit = config["query"]["limit"]
    # bool is an int subclass; reject it explicitly.
    if limit is not None and (isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0):
        raise ValueError("query.limit must be null or an integer > 0.")
    return config


def merge_config(overlay: dict[str, Any]) -> dict[str, dict[str, Any]]:
    return validate_config(_overlay(get_default_config(), overlay))


def load_config_file(path: str | Path) -> dict[str, dict[str, Any]]:
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError("Config root must be a JSON object.")
    return merge_config(payload)


def save_config_file(path: str | Path, config: dict[str, Any]) -> Path:
    """Validate ``config`` and write it as sorted, indented JSON."""
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    payload = json.dumps(validate_config(config), indent=2, sort_keys=True)
    output.write_text(f"{payload}\n", encoding="utf-8")
    return output
