"""
client.py
- Executes HTTP requests against the target API using requests
- Performs the one-time login and keeps the resulting bearer value
"""

from typing import Any, Dict, Optional

import requests

from .config import ApiConfig
from .utils import extract_json, is_blank


LOGIN_PATH = "/api/auth/login"


class LoginError(RuntimeError):
    """Setup could not obtain a usable token; the run cannot continue."""


class ApiSession:
    """Resolved configuration plus the HTTP session and the Authorization value shared by all checks."""

    def __init__(self, config: ApiConfig, http: Optional[requests.Session] = None,
                 authorization: Optional[str] = None):
        self.config = config
        self.http = http or requests.Session()
        self.authorization = authorization

    @property
    def token_acquired(self) -> bool:
        return self.authorization is not None

    def auth_headers(self) -> Dict[str, str]:
        if self.authorization is None:
            return {}
        return {"Authorization": self.authorization}

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def execute_request(session: ApiSession, method: str, path: str,
                    headers: Optional[Dict[str, str]] = None,
                    body: Any = None,
                    params: Optional[Dict[str, Any]] = None) -> requests.Response:
    """Execute one HTTP request relative to the configured base URL and return the Response."""
    config = session.config
    kwargs: Dict[str, Any] = {
        "headers": dict(headers or {}),
        "timeout": config.timeout,
        "verify": config.verify_tls,
    }
    if body is not None:
        kwargs["json"] = body
    if params is not None:
        kwargs["params"] = params
    return session.http.request(method.upper(), config.url(path), **kwargs)


def login(session: ApiSession) -> str:
    """
    POST the configured credentials to the login endpoint.
    Stores and returns "Bearer <token>"; raises LoginError when the status is not 200
    or the body has no usable token.
    """
    config = session.config
    payload = {"username": config.username, "password": config.password}
    resp = execute_request(session, "POST", LOGIN_PATH, body=payload)

    if resp.status_code != 200:
        raise LoginError(f"Login failed: HTTP {resp.status_code} | Body: {resp.text}")

    body = extract_json(resp)
    token = body.get("token") if isinstance(body, dict) else None
    if token is None:
        raise LoginError("Login response does not contain 'token'.")
    if not isinstance(token, str):
        raise LoginError(f"Login response 'token' is not a string: {token!r}")
    if is_blank(token):
        raise LoginError("Login response contains an empty token.")

    session.authorization = "Bearer " + token
    return session.authorization
