"""JSON Schema checks for persisted artifacts (index, legacy map, version stamp, config)."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import jsonschema

from .errors import MalformedLocalData

SCHEMAS_DIR = Path(__file__).resolve().parent / "schemas"

INDEX_SCHEMA = "sutta_index_schema.json"
LEGACY_MAP_SCHEMA = "legacy_map_schema.json"
DATA_VERSION_SCHEMA = "data_version_schema.json"
CONFIG_SCHEMA = "config_schema.json"


@lru_cache(maxsize=None)
def load_schema(filename: str) -> Dict[str, Any]:
    with open(SCHEMAS_DIR / filename, encoding="utf-8") as f:
        return json.load(f)


def validate(obj: Any, schema_name: str, *, path=None) -> Any:
    """Validate `obj` against a bundled schema; raise MalformedLocalData on mismatch."""
    try:
        jsonschema.validate(obj, load_schema(schema_name))
    except jsonschema.ValidationError as e:
        where = f" ({path})" if path is not None else ""
        raise MalformedLocalData(f"Schema validation failed{where}: {e.message}", path=path) from e
    return obj
