from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf

load_dotenv()

_HERE = Path(__file__).resolve()
_CANDIDATE_CONFIG_PATHS = [parent / "config/config.yaml" for parent in _HERE.parents[:5]]
_CANDIDATE_CONFIG_PATHS.append(Path.cwd() / "config/config.yaml")

DEFAULTS: Dict[str, Any] = {
    "server": {
        "host": "0.0.0.0",
        "port": 3001,
        "environment": "development",
        "static_dir": "dist",
        "cors_origins": [
            "http://localhost:8080",
            "http://127.0.0.1:8080",
            "http://localhost:5173",
        ],
    },
    "storage": {
        "data_dir": "data",
        "upload_dir": "uploads",
        "orders_file": "orders.json",
        "files_file": "files.json",
        "max_upload_bytes": 50 * 1024 * 1024,
    },
    "admin": {
        "username": "admin",
        "password": "xerox123",
        "token": "admin-token",
    },
    "logging": {
        "level": "INFO",
    },
}

# Environment variable -> dotted config key
ENV_OVERRIDES = {
    "HOST": "server.host",
    "PORT": "server.port",
    "APP_ENV": "server.environment",
    "STATIC_DIR": "server.static_dir",
    "DATA_DIR": "storage.data_dir",
    "UPLOAD_DIR": "storage.upload_dir",
    "MAX_UPLOAD_BYTES": "storage.max_upload_bytes",
    "ADMIN_USERNAME": "admin.username",
    "ADMIN_PASSWORD": "admin.password",
    "LOG_LEVEL": "logging.level",
}

_INT_KEYS = {"server.port", "storage.max_upload_bytes"}


def _find_config_file() -> Optional[Path]:
    explicit = os.environ.get("PRINT_SHOP_CONFIG")
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise FileNotFoundError(f"PRINT_SHOP_CONFIG points to a missing file: {path}")
        return path
    return next((path for path in _CANDIDATE_CONFIG_PATHS if path.exists()), None)


@lru_cache(maxsize=1)
def _load_default_config() -> DictConfig:
    base = OmegaConf.create(DEFAULTS)
    config_path = _find_config_file()
    if config_path is None:
        return base
    return DictConfig(OmegaConf.merge(base, OmegaConf.load(config_path)))


def _literal(value: str) -> str:
    # Keep env values verbatim; OmegaConf would otherwise resolve "${...}" on access
    return value.replace("${", "\\${")


def _environment_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for env_name, key in ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None or value == "":
            continue
        section, name = key.split(".")
        overrides.setdefault(section, {})[name] = int(value) if key in _INT_KEYS else _literal(value)

    origins = os.environ.get("CORS_ORIGINS")
    if origins:
        overrides.setdefault("server", {})["cors_origins"] = [
            _literal(origin.strip()) for origin in origins.split(",") if origin.strip()
        ]
    return overrides


def make_runtime_config(overrides: Optional[Dict[str, Any]] = None) -> DictConfig:
    """
    Build the effective configuration.

    Precedence, lowest first: built-in defaults, ``config/config.yaml``,
    environment variables, then ``overrides``. The result is struct-locked,
    so a misspelled key fails instead of being silently ignored.
    """
    base_container = OmegaConf.to_container(_load_default_config(), resolve=False)
    base = OmegaConf.create(base_container)
    OmegaConf.set_struct(base, True)

    merged = OmegaConf.merge(base, OmegaConf.create(_environment_overrides()), OmegaConf.create(overrides or {}))
    return DictConfig(merged)


def is_production(config: DictConfig) -> bool:
    return str(config.server.environment).lower() == "production"
