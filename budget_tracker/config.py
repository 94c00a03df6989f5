# budget_tracker/config.py
from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Dict, Mapping

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, object] = {
    "database": {
        "type": None,
        "url": None,
        "path": "database/transactions.db",
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3001,
    },
    "cors_origins": ["http://localhost:3000"],
    "log_level": "INFO",
    "pagination": {
        "default_limit": 100,
        "max_limit": 1000,
    },
    "loaders": {
        "spreadsheet": "budget_tracker.loaders.spreadsheet.SpreadsheetLoader",
    },
    "output_modules": {
        "csv": "budget_tracker.outputs.csv_output.CSVOutput",
        "excel": "budget_tracker.outputs.excel_output.ExcelOutput",
    },
    "output_dir": "data",
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = copy.deepcopy(value)
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def apply_env_overrides(
    config: Dict[str, object], environ: Mapping[str, str] | None = None
) -> Dict[str, object]:
    """Let deployment variables win over the YAML file."""
    env = os.environ if environ is None else environ
    database = config["database"]
    server = config["server"]

    if env.get("DATABASE_URL"):
        database["url"] = env["DATABASE_URL"]
    if env.get("DB_TYPE"):
        database["type"] = env["DB_TYPE"].strip().lower()
    if env.get("HOST"):
        server["host"] = env["HOST"]
    if env.get("PORT"):
        try:
            server["port"] = int(env["PORT"])
        except ValueError:
            raise ValueError(f"PORT must be an integer, got {env['PORT']!r}")
    if env.get("CORS_ORIGINS"):
        config["cors_origins"] = [
            origin.strip() for origin in env["CORS_ORIGINS"].split(",") if origin.strip()
        ]
    if env.get("LOG_LEVEL"):
        config["log_level"] = env["LOG_LEVEL"].upper()
    return config


def load_config(
    path: str | Path | None = None, environ: Mapping[str, str] | None = None
) -> Dict[str, object]:
    """Load ``config.yaml`` (if present) on top of :data:`DEFAULT_CONFIG`."""
    data: Dict[str, object] = {}
    if path is not None:
        target = Path(path)
        if target.exists():
            with target.open("r", encoding="utf-8") as fp:
                data = yaml.safe_load(fp) or {}
            if not isinstance(data, dict):
                raise ValueError(f"{target} must contain a mapping at the top level")
            logger.debug("Loaded config from %s", target)
        else:
            logger.debug("Config file %s not found, using defaults", target)
    config = _merge_defaults(data, DEFAULT_CONFIG)
    return apply_env_overrides(config, environ)


def save_config(config: Dict[str, object], path: str | Path) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as fp:
        yaml.safe_dump(config, fp, sort_keys=False)
