"""
checks.py
- Check descriptors and the default ordered catalog (auth, motos, beacons, localizacoes)
- Loads custom check lists from YAML with $key substitution from the config
- Verifies HTTP status and JSON assertions via jsonpath-ng
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests

from .config import DEFAULT_RESOURCE_ID
from .utils import extract_json, find_jsonpath, load_yaml_file


KIND_TOKEN = "token"
KIND_HTTP = "http"

# simple $key placeholder pattern (no braces, single level keys)
_SIMPLE_PLACEHOLDER_RE = re.compile(r"\$([A-Za-z0-9_]+)")

_JSON_TYPES = {
    "list": lambda v: isinstance(v, list),
    "object": lambda v: isinstance(v, dict),
    "string": lambda v: isinstance(v, str),
    "number": lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    "boolean": lambda v: isinstance(v, bool),
    "null": lambda v: v is None,
}


DEFAULT_CHECKS: List[Dict[str, Any]] = [
    {"name": "Auth | token obtained", "kind": KIND_TOKEN},
    {"name": "Motos | list all (200)", "path": "/api/motos", "expected_status": 200},
    {"name": "Motos | get by id (200 or 404)", "path": "/api/motos/{id}",
     "path_params": {"id": "$resource_id"}, "expected_status": [200, 404]},
    {"name": "Beacons | list all (200)", "path": "/api/beacons", "expected_status": 200},
    {"name": "Beacons | get by id (200 or 404)", "path": "/api/beacons/{id}",
     "path_params": {"id": "$resource_id"}, "expected_status": [200, 404]},
    {"name": "Localizacoes | list all (200)", "path": "/api/localizacoes", "expected_status": 200},
    {"name": "Localizacoes | get by id (200 or 404)", "path": "/api/localizacoes/{id}",
     "path_params": {"id": "$resource_id"}, "expected_status": [200, 404]},
]


@dataclass
class Check:
    name: str
    kind: str = KIND_HTTP
    method: str = "GET"
    path: Optional[str] = None
    path_params: Dict[str, Any] = field(default_factory=dict)
    expected_status: Tuple[int, ...] = (200,)
    requires_auth: bool = True
    json_assertions: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Check":
        if not isinstance(data, dict):
            raise ValueError(f"Invalid check entry: {data!r}")
        name = data.get("name")
        if not name:
            raise ValueError(f"Check is missing 'name': {data!r}")
        kind = (data.get("kind") or KIND_HTTP).lower()
        if kind not in (KIND_TOKEN, KIND_HTTP):
            raise ValueError(f"Check '{name}': unknown kind '{kind}'")

        if kind == KIND_TOKEN:
            return cls(name=name, kind=kind, method="", expected_status=(), requires_auth=False)

        path = data.get("path")
        if not path:
            raise ValueError(f"Check '{name}': missing 'path'")
        expected = data.get("expected_status", 200)
        if not isinstance(expected, (list, tuple)):
            expected = [expected]
        try:
            expected_status = tuple(int(s) for s in expected)
        except (TypeError, ValueError):
            raise ValueError(f"Check '{name}': invalid expected_status {expected!r}")
        if not expected_status:
            raise ValueError(f"Check '{name}': expected_status is empty")
        assertions = data.get("json_assertions") or []
        if not isinstance(assertions, list) or not all(isinstance(a, dict) for a in assertions):
            raise ValueError(f"Check '{name}': json_assertions must be a list of mappings")

        check = cls(
            name=name,
            kind=kind,
            method=(data.get("method") or "GET").upper(),
            path=path,
            path_params=dict(data.get("path_params") or {}),
            expected_status=expected_status,
            requires_auth=bool(data.get("requires_auth", True)),
            json_assertions=list(assertions),
        )
        # fail early on placeholders without a value
        check.resolved_path()
        return check

    def resolved_path(self) -> str:
        params = {k: quote(str(v), safe="") for k, v in self.path_params.items()}
        try:
            return self.path.format(**params)
        except (KeyError, IndexError) as e:
            raise ValueError(f"Check '{self.name}': no value for path placeholder {e}")


def _substitute_in_obj(obj: Any, cfg: Dict[str, Any]) -> Any:
    """
    Recursively substitute $key placeholders in strings using cfg (flat key->value mapping).
    - If a string is exactly "$key" and cfg[key] is not a str, return the typed value.
    - Otherwise perform string replacement with str(value).
    """
    if isinstance(obj, dict):
        return {k: _substitute_in_obj(v, cfg) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_substitute_in_obj(v, cfg) for v in obj]
    if isinstance(obj, str):
        matches = list(_SIMPLE_PLACEHOLDER_RE.finditer(obj))
        if not matches:
            return obj
        # single exact placeholder -> preserve type
        if len(matches) == 1 and matches[0].start() == 0 and matches[0].end() == len(obj):
            key = matches[0].group(1)
            if cfg and key in cfg:
                return cfg[key]
            return obj

        def _repl(m):
            key = m.group(1)
            if cfg and key in cfg:
                return str(cfg[key])
            return m.group(0)
        return _SIMPLE_PLACEHOLDER_RE.sub(_repl, obj)
    return obj


def build_checks(entries: List[Dict[str, Any]], placeholders: Optional[Dict[str, Any]] = None) -> List[Check]:
    """Substitute $key placeholders and turn check mappings into Check objects, keeping order."""
    if placeholders:
        entries = _substitute_in_obj(entries, placeholders)
    return [Check.from_dict(entry) for entry in entries]


def default_checks(placeholders: Optional[Dict[str, Any]] = None) -> List[Check]:
    values = {"resource_id": DEFAULT_RESOURCE_ID}
    values.update(placeholders or {})
    return build_checks(DEFAULT_CHECKS, values)


def load_checks(path: str, placeholders: Optional[Dict[str, Any]] = None) -> List[Check]:
    """Load a checks YAML file ('checks:' list) and apply $key substitutions."""
    data = load_yaml_file(path) or {}
    if not isinstance(data, dict) or "checks" not in data:
        raise ValueError(f"Invalid checks file '{path}': missing 'checks' key")
    entries = data.get("checks") or []
    if not isinstance(entries, list):
        raise ValueError(f"Invalid checks file '{path}': 'checks' must be a list")
    return build_checks(entries, placeholders)


def _verify_assertion(body: Any, assertion: Dict[str, Any]) -> Optional[str]:
    """Return None when the assertion holds, otherwise a failure message."""
    path = assertion.get("path")
    if not path:
        return "Invalid assertion: missing 'path'"

    matches, err = find_jsonpath(body, path)
    if err:
        return err

    if "exists" in assertion:
        want = bool(assertion.get("exists"))
        if want and not matches:
            return f"JSON path '{path}' not found (expected to exist)"
        if (not want) and matches:
            return f"JSON path '{path}' expected to be absent but found {matches!r}"
        return None

    if not matches:
        return f"JSON path '{path}' not found"

    if assertion.get("not_null"):
        if any(m is None for m in matches):
            return f"JSON path '{path}' contains null value(s): {matches!r}"
        return None

    if "type" in assertion:
        type_name = assertion.get("type")
        type_check = _JSON_TYPES.get(type_name)
        if type_check is None:
            return f"Invalid assertion: unknown type '{type_name}'"
        if not all(type_check(m) for m in matches):
            return f"JSON path '{path}' expected type {type_name} but got {matches!r}"
        return None

    if "contains" in assertion:
        expected = assertion.get("contains")
        for m in matches:
            if isinstance(m, (list, tuple)) and expected in m:
                return None
            if isinstance(m, dict) and (expected in m.values() or expected in m.keys()):
                return None
            if m == expected:
                return None
        return f"JSON path '{path}' does not contain {expected!r}; values: {matches!r}"

    if "expected_value" in assertion:
        expected = assertion.get("expected_value")
        if not any(m == expected for m in matches):
            return f"JSON path '{path}' expected {expected!r} but got {matches!r}"

    return None


def verify_response(response: requests.Response, check: Check) -> Tuple[bool, Optional[str]]:
    """
    Verify response against the check's expectations.
      - status code must be one of check.expected_status
      - json_assertions are evaluated for 2xx responses only; each may use
        exists / not_null / type / contains / expected_value (plain presence otherwise)
    Returns (True, None) on success, (False, message) on failure.
    """
    if response.status_code not in check.expected_status:
        expected = " or ".join(str(s) for s in check.expected_status)
        return False, f"Status Code mismatch: expected {expected}, got {response.status_code}"

    if not check.json_assertions or not 200 <= response.status_code < 300:
        return True, None

    body = extract_json(response)
    if body is None:
        return False, "Response body is not valid JSON but json_assertions were provided"

    for assertion in check.json_assertions:
        err = _verify_assertion(body, assertion)
        if err:
            return False, err
    return True, None
