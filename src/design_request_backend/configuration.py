"""
Configuration loading for the design request service.

Settings are layered, later layers winning:

1. ``DEFAULTS`` below
2. ``config/config.yaml`` (or the file named by ``DESIGN_REQUEST_CONFIG``)
3. Environment variables, including ones loaded from ``.env.local`` / ``.env``
4. Explicit overrides passed to ``load_settings``
"""
from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

load_dotenv(".env.local")
load_dotenv()

CONFIG_ENV_VAR = "DESIGN_REQUEST_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/config.yaml")

DEFAULTS: Dict[str, Any] = {
    "ledger": {"path": "data/requests.json"},
    "storage": {
        "bucket": "",
        "prefix": "design-requests/",
        "region": "",
        "endpoint_url": "",
        "public_base_url": "",
        "timeout_seconds": 10.0,
        "max_bytes": 10 * 1024 * 1024,
    },
    "mirror": {"db_path": "data/design_requests.db", "timeout_seconds": 5.0},
    "rendering": {"timezone": "UTC", "max_text_length": 10000},
    "intake": {"defer_artifacts": False, "max_workers": 1},
    "admin": {"api_key": ""},
    "logging": {"level": "INFO"},
    "cors": {"allowed_origins": ["*"]},
}

ENV_OVERRIDES: Dict[str, str] = {
    "LEDGER_PATH": "ledger.path",
    "S3_BUCKET_NAME": "storage.bucket",
    "S3_PREFIX": "storage.prefix",
    "S3_REGION": "storage.region",
    "S3_ENDPOINT_URL": "storage.endpoint_url",
    "STORAGE_PUBLIC_BASE_URL": "storage.public_base_url",
    "STORAGE_TIMEOUT_SECONDS": "storage.timeout_seconds",
    "MIRROR_DB_PATH": "mirror.db_path",
    "MIRROR_TIMEOUT_SECONDS": "mirror.timeout_seconds",
    "RENDER_TIMEZONE": "rendering.timezone",
    "DEFER_ARTIFACTS": "intake.defer_artifacts",
    "ADMIN_API_KEY": "admin.api_key",
    "LOG_LEVEL": "logging.level",
    "CORS_ALLOWED_ORIGINS": "cors.allowed_origins",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _default_for(dotted_key: str) -> Any:
    node: Any = DEFAULTS
    for part in dotted_key.split("."):
        node = node[part]
    return node


def _coerce(raw: str, default: Any) -> Any:
    """Convert an environment string to the type of its default value."""
    if isinstance(default, bool):
        return raw.strip().lower() in _TRUE_VALUES
    if isinstance(default, int):
        return int(raw)
    if isinstance(default, float):
        return float(raw)
    if isinstance(default, list):
        return [item.strip() for item in raw.split(",") if item.strip()]
    return raw


def _resolve_config_path(config_path: Optional[Path]) -> Optional[Path]:
    if config_path is not None:
        return config_path
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env)
    return DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None


def load_settings(config_path: Optional[Path] = None, overrides: Optional[Dict[str, Any]] = None) -> DictConfig:
    base = OmegaConf.create(DEFAULTS)
    OmegaConf.set_struct(base, True)

    path = _resolve_config_path(config_path)
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(f"Config file not found at {path}")
        base = DictConfig(OmegaConf.merge(base, OmegaConf.load(path)))

    for env_name, dotted_key in ENV_OVERRIDES.items():
        raw = os.environ.get(env_name)
        if raw is not None:
            OmegaConf.update(base, dotted_key, _coerce(raw, _default_for(dotted_key)), merge=False)

    if overrides:
        base = DictConfig(OmegaConf.merge(base, OmegaConf.create(overrides)))
    return base


@lru_cache(maxsize=1)
def get_settings() -> DictConfig:
    return load_settings()
