"""
config.py
- Resolves the target API settings from CLI overrides, environment, an optional YAML file and defaults
- The resolved ApiConfig is immutable for the lifetime of a run
"""

import os
from dataclasses import dataclass, asdict
from typing import Any, Dict, Mapping, Optional

from .utils import is_blank, load_yaml_file


DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_USER = "joao@ex.com"
DEFAULT_PASS = "fiap25"
DEFAULT_RESOURCE_ID = 1
DEFAULT_TIMEOUT = 30

# environment variable -> ApiConfig field
ENV_VARS = {
    "API_BASE_URL": "base_url",
    "API_USER": "username",
    "API_PASS": "password",
}


@dataclass(frozen=True)
class ApiConfig:
    base_url: str = DEFAULT_BASE_URL
    username: str = DEFAULT_USER
    password: str = DEFAULT_PASS
    resource_id: Any = DEFAULT_RESOURCE_ID
    timeout: float = DEFAULT_TIMEOUT
    verify_tls: bool = True

    def url(self, path: str) -> str:
        return self.base_url.rstrip("/") + "/" + path.lstrip("/")

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def placeholders(self) -> Dict[str, Any]:
        """Values available as $key in check files (password excluded)."""
        values = self.as_dict()
        values.pop("password", None)
        return values


def load_config(path: Optional[str]) -> Dict[str, Any]:
    """Load simple key->value YAML config file."""
    if not path:
        return {}
    try:
        cfg = load_yaml_file(path) or {}
        if not isinstance(cfg, dict):
            raise ValueError("config file must be a mapping of key -> value")
        return cfg
    except Exception as e:
        raise ValueError(f"Failed to load config '{path}': {e}")


def getenv_or_default(key: str, default: Optional[str] = None, environ: Mapping[str, str] = None) -> Optional[str]:
    """Return environ[key], or default when it is unset or blank."""
    env = os.environ if environ is None else environ
    value = env.get(key)
    return default if is_blank(value) else value


_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"Invalid verify_tls: {value!r}")


def resolve_config(file_values: Optional[Dict[str, Any]] = None,
                   overrides: Optional[Dict[str, Any]] = None,
                   environ: Mapping[str, str] = None) -> ApiConfig:
    """
    Build the ApiConfig for a run.
    Precedence (highest first): overrides (CLI) -> environment -> file_values (YAML) -> defaults.
    None and blank values never override a lower layer.
    """
    values: Dict[str, Any] = {}
    known = set(ApiConfig.__dataclass_fields__)

    for key, value in (file_values or {}).items():
        if key not in known:
            raise ValueError(f"Unknown config key '{key}'")
        if value is not None and not (isinstance(value, str) and is_blank(value)):
            values[key] = value

    for env_key, field_name in ENV_VARS.items():
        env_value = getenv_or_default(env_key, environ=environ)
        if env_value is not None:
            values[field_name] = env_value

    for key, value in (overrides or {}).items():
        if value is not None and not (isinstance(value, str) and is_blank(value)):
            values[key] = value

    if "base_url" in values:
        values["base_url"] = str(values["base_url"]).strip().rstrip("/")
    if "timeout" in values:
        try:
            values["timeout"] = float(values["timeout"])
        except (TypeError, ValueError):
            raise ValueError(f"Invalid timeout: {values['timeout']!r}")
        if values["timeout"] <= 0:
            raise ValueError(f"Invalid timeout: {values['timeout']!r}")
    if isinstance(values.get("resource_id"), str):
        # "007" stays a string
        rid = values["resource_id"].strip()
        values["resource_id"] = int(rid) if rid.isdigit() and str(int(rid)) == rid else rid
    if "verify_tls" in values:
        values["verify_tls"] = _as_bool(values["verify_tls"])

    return ApiConfig(**values)
