"""
Small utility helpers used by tests and the runner.
"""

from typing import Any, Dict, List, Optional, Tuple
import json
import yaml
from jsonpath_ng import parse as jsonpath_parse
import requests
from requests.structures import CaseInsensitiveDict


def load_yaml_file(path: str) -> Any:
    """Load YAML file and return parsed data (raises on error)."""
    with open(path, "rt", encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def find_jsonpath(body: Any, path: str) -> Tuple[Optional[List[Any]], Optional[str]]:
    """
    Evaluate JSONPath against body.
    Returns (matched values, None), or (None, message) when the expression is invalid.
    """
    try:
        expr = jsonpath_parse(path)
    except Exception as exc:
        return None, f"Invalid JSONPath '{path}': {exc}"
    return [m.value for m in expr.find(body)], None


def extract_json(response: requests.Response) -> Any:
    """Safely parse response JSON; return None if invalid."""
    try:
        return response.json()
    except ValueError:
        return None


def body_snippet(response: requests.Response, limit: int = 1000) -> str:
    body = extract_json(response)
    if body is not None:
        return json.dumps(body, indent=2, ensure_ascii=False)[:limit]
    return (response.text or "")[:limit]


def make_response_json(obj: Any, status: int = 200, headers: Dict[str, str] = None) -> requests.Response:
    """
    Convenience for building a requests.Response with JSON body for tests.
    """
    resp = requests.Response()
    resp.status_code = status
    body = json.dumps(obj)
    resp._content = body.encode("utf-8")
    hdrs = dict(headers or {})
    hdrs.setdefault("Content-Type", "application/json")
    resp.headers = CaseInsensitiveDict(hdrs)
    resp.encoding = "utf-8"
    return resp


def make_response_text(text: str, status: int = 200) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp._content = text.encode("utf-8")
    resp.headers = CaseInsensitiveDict({"Content-Type": "text/plain"})
    resp.encoding = "utf-8"
    return resp
