"""JSON schema for icon build configuration files."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .models import IconsheetConfig

logger = logging.getLogger(__name__)

SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"


def config_json_schema() -> dict[str, Any]:
    """Schema of ``IconsheetConfig`` keyed by the names used in YAML files."""

    schema = IconsheetConfig.model_json_schema(by_alias=True)
    schema["$schema"] = SCHEMA_DIALECT
    schema["title"] = "iconsheet build configuration"
    return schema


def write_config_schema(path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config_json_schema(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    logger.debug("Wrote configuration schema to %s", path)
    return path


__all__ = ["SCHEMA_DIALECT", "config_json_schema", "write_config_schema"]
