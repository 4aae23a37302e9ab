from types import SimpleNamespace

import pytest

from mottooth_checks import utils


BASE = "http://api.test"


@pytest.fixture
def base_url():
    return BASE


@pytest.fixture
def fake_api(monkeypatch):
    """
    Replace requests.Session.request with a route table keyed by (method, url).
    Unknown routes answer 404; a callable route receives the request kwargs.
    """
    api = SimpleNamespace(routes={}, calls=[])

    # requests.Session.request is an instance method, so the fake must accept `self` first
    def fake_request(self, method, url, **kwargs):
        api.calls.append({"method": method, "url": url, **kwargs})
        route = api.routes.get((method, url))
        if route is None:
            return utils.make_response_json({"error": "Not Found"}, status=404)
        if callable(route):
            return route(**kwargs)
        return route

    monkeypatch.setattr("requests.Session.request", fake_request)
    return api


@pytest.fixture
def serve_defaults(fake_api, base_url):
    """Register a login route returning token and 200 list routes for every resource."""
    def _serve(token="abc123"):
        fake_api.routes[("POST", f"{base_url}/api/auth/login")] = utils.make_response_json({"token": token})
        for resource in ("motos", "beacons", "localizacoes"):
            fake_api.routes[("GET", f"{base_url}/api/{resource}")] = utils.make_response_json([{"id": 1}])
            fake_api.routes[("GET", f"{base_url}/api/{resource}/1")] = utils.make_response_json({"id": 1})
        return fake_api
    return _serve


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("API_BASE_URL", "API_USER", "API_PASS"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch
