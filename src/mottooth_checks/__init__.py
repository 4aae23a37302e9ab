"""
Login-then-verify checks for the motos / beacons / localizacoes API.
Exposes the runner pieces so tests and callers can import from the package.
"""
from .config import ApiConfig, load_config, resolve_config
from .client import ApiSession, LoginError, execute_request, login
from .checks import Check, default_checks, load_checks, verify_response
from .runner import CheckResult, run_check, run_checks, setup, main

__all__ = [
    "ApiConfig",
    "load_config",
    "resolve_config",
    "ApiSession",
    "LoginError",
    "execute_request",
    "login",
    "Check",
    "default_checks",
    "load_checks",
    "verify_response",
    "CheckResult",
    "run_check",
    "run_checks",
    "setup",
    "main",
]
