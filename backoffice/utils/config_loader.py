"""
Upstream (T-Soft) configuration loader.

Settings come from an optional YAML file (config/upstream.yml) and are then
overridden by environment variables. The API token is only ever read from the
environment and is required.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from backoffice.error_handler import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://wawtesettur.tsoft.biz/rest1"


class ConcurrencyConfig(BaseModel):
    images: int = Field(default=5, ge=1, le=50)
    enhanced_images: int = Field(default=3, ge=1, le=50)
    order_details: int = Field(default=5, ge=1, le=50)


class UpstreamConfig(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    token: str = Field(..., min_length=1)
    debug: bool = False
    timeout_seconds: float = Field(default=30.0, gt=0)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)


def _is_truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes")


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        logger.debug("Upstream config file not found, using defaults: %s", config_path)
        return {}
    with open(config_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_upstream_config(config_path: Optional[Path] = None) -> UpstreamConfig:
    """
    Build the upstream configuration.

    Raises:
        ConfigurationError: when TSOFT_API_TOKEN is missing or the merged
            settings do not validate.
    """
    if config_path is None:
        env_path = os.getenv("TSOFT_CONFIG_PATH")
        config_path = Path(env_path) if env_path else Path(__file__).parent.parent.parent / "config" / "upstream.yml"

    data = _read_yaml(config_path)

    token = os.getenv("TSOFT_API_TOKEN", "").strip()
    if not token:
        raise ConfigurationError("T-Soft API token is not configured (TSOFT_API_TOKEN).")
    data["token"] = token

    if os.getenv("TSOFT_API_BASE_URL"):
        data["base_url"] = os.environ["TSOFT_API_BASE_URL"]
    if os.getenv("TSOFT_API_DEBUG") is not None:
        data["debug"] = _is_truthy(os.getenv("TSOFT_API_DEBUG"))
    if os.getenv("TSOFT_HTTP_TIMEOUT_SECONDS"):
        data["timeout_seconds"] = os.environ["TSOFT_HTTP_TIMEOUT_SECONDS"]

    try:
        cfg = UpstreamConfig(**data)
    except ValidationError as e:
        logger.error("Upstream config validation failed: %s", e)
        raise ConfigurationError(f"Invalid upstream configuration: {e}") from e

    cfg.base_url = cfg.base_url.rstrip("/")
    logger.info("Loaded upstream config: base_url=%s debug=%s", cfg.base_url, cfg.debug)
    return cfg


def license_gate_enabled() -> bool:
    raw = os.getenv("LICENSE_GATE_ENABLED")
    if raw is None:
        return True
    return _is_truthy(raw)
