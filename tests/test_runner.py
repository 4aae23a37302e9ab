import json

import requests

from mottooth_checks import ApiConfig, ApiSession, Check, default_checks, run_checks, main
from mottooth_checks import utils
from mottooth_checks.runner import FAILED, PASSED, SKIPPED, exit_code, summarize


def test_full_run_sends_bearer_on_every_check(fake_api, serve_defaults, base_url, clean_env, capsys):
    clean_env.setenv("API_BASE_URL", base_url)
    clean_env.setenv("API_USER", "joao@ex.com")
    clean_env.setenv("API_PASS", "fiap25")
    serve_defaults(token="abc123")

    assert main([]) == 0

    login_call, *check_calls = fake_api.calls
    assert login_call["json"] == {"username": "joao@ex.com", "password": "fiap25"}
    assert [c["url"] for c in check_calls] == [
        f"{base_url}/api/motos", f"{base_url}/api/motos/1",
        f"{base_url}/api/beacons", f"{base_url}/api/beacons/1",
        f"{base_url}/api/localizacoes", f"{base_url}/api/localizacoes/1",
    ]
    assert all(c["headers"] == {"Authorization": "Bearer abc123"} for c in check_calls)

    out = capsys.readouterr().out
    assert f"Base URL........: {base_url}" in out
    assert "User for login..: joao@ex.com" in out
    assert "Token acquired?.: True" in out
    assert "fiap25" not in out
    assert "Passed: 7" in out


def test_missing_resources_still_pass(fake_api, serve_defaults, base_url, clean_env):
    serve_defaults()
    for resource in ("motos", "beacons", "localizacoes"):
        del fake_api.routes[("GET", f"{base_url}/api/{resource}/1")]

    assert main(["--base-url", base_url]) == 0
    statuses = [c for c in fake_api.calls if c["url"].endswith("/1")]
    assert len(statuses) == 3


def test_login_failure_is_fatal_and_runs_no_checks(fake_api, base_url, clean_env, capsys):
    fake_api.routes[("POST", f"{base_url}/api/auth/login")] = utils.make_response_json(
        {"message": "invalid"}, status=401)

    assert main(["--base-url", base_url, "--user", "nobody@ex.com", "--password", "wrong"]) == 3

    assert len(fake_api.calls) == 1
    out = capsys.readouterr().out
    assert "Fatal error: Login failed: HTTP 401" in out
    assert "=== Summary ===" not in out


def test_without_token_authenticated_checks_are_skipped(fake_api, base_url):
    session = ApiSession(ApiConfig(base_url=base_url))
    results = run_checks(default_checks(), session)

    assert results[0].outcome == FAILED
    assert results[0].message == "Token not obtained."
    assert [r.outcome for r in results[1:]] == [SKIPPED] * 6
    assert all(r.status_code is None for r in results[1:])
    assert fake_api.calls == []
    assert exit_code(results) == 2


def test_public_check_runs_without_token_and_without_header(fake_api, base_url):
    fake_api.routes[("GET", f"{base_url}/api/health")] = utils.make_response_json({"status": "UP"})
    public = Check.from_dict({"name": "health", "path": "/api/health", "requires_auth": False})
    private = default_checks()[1]
    session = ApiSession(ApiConfig(base_url=base_url))

    results = run_checks([public, private], session)

    assert [r.outcome for r in results] == [PASSED, SKIPPED]
    assert len(fake_api.calls) == 1
    assert "Authorization" not in fake_api.calls[0]["headers"]


def test_public_check_omits_header_even_with_token(fake_api, base_url):
    fake_api.routes[("GET", f"{base_url}/api/health")] = utils.make_response_json({"status": "UP"})
    public = Check.from_dict({"name": "health", "path": "/api/health", "requires_auth": False})
    session = ApiSession(ApiConfig(base_url=base_url), authorization="Bearer abc123")

    assert run_checks([public], session)[0].outcome == PASSED
    assert fake_api.calls[0]["headers"] == {}


def test_failed_check_does_not_stop_later_checks(fake_api, serve_defaults, base_url, clean_env, capsys):
    serve_defaults()
    fake_api.routes[("GET", f"{base_url}/api/motos/1")] = utils.make_response_json(
        {"error": "Internal"}, status=500)

    def refuse(**kwargs):
        raise requests.ConnectionError("connection refused")
    fake_api.routes[("GET", f"{base_url}/api/beacons")] = refuse

    assert main(["--base-url", base_url]) == 2

    assert len(fake_api.calls) == 7
    out = capsys.readouterr().out
    assert "Failed: 2" in out
    assert "Passed: 5" in out
    assert "Status Code mismatch: expected 200 or 404, got 500" in out
    assert "Request failed: connection refused" in out
    assert '"error": "Internal"' in out


def test_resource_id_flag_changes_by_id_paths(fake_api, serve_defaults, base_url, clean_env):
    serve_defaults()

    assert main(["--base-url", base_url, "--resource-id", "42"]) == 0
    by_id = [c["url"] for c in fake_api.calls if c["url"].endswith("/42")]
    assert by_id == [f"{base_url}/api/motos/42", f"{base_url}/api/beacons/42", f"{base_url}/api/localizacoes/42"]


def test_resource_id_keeps_leading_zeros(fake_api, serve_defaults, base_url, clean_env):
    serve_defaults()

    main(["--base-url", base_url, "--resource-id", "007"])
    by_id = [c["url"] for c in fake_api.calls if c["url"].rsplit("/", 1)[-1].isdigit()]
    assert by_id == [f"{base_url}/api/motos/007", f"{base_url}/api/beacons/007", f"{base_url}/api/localizacoes/007"]


def test_insecure_and_timeout_flags_reach_every_request(fake_api, serve_defaults, base_url, clean_env):
    serve_defaults()

    assert main(["--base-url", base_url, "--insecure", "--timeout", "5"]) == 0
    assert len(fake_api.calls) == 7
    assert all(c["verify"] is False for c in fake_api.calls)
    assert all(c["timeout"] == 5.0 for c in fake_api.calls)


def test_tls_verified_by_default(fake_api, serve_defaults, base_url, clean_env):
    serve_defaults()

    assert main(["--base-url", base_url]) == 0
    assert all(c["verify"] is True and c["timeout"] == 30 for c in fake_api.calls)


def test_verbose_prints_request_line_for_executed_checks(fake_api, serve_defaults, base_url, clean_env, capsys):
    serve_defaults()

    assert main(["--base-url", base_url, "--verbose"]) == 0
    out = capsys.readouterr().out
    assert f"GET {base_url}/api/motos -> 200 (" in out
    assert f"GET {base_url}/api/localizacoes/1 -> 200 (" in out
    assert " ms)" in out


def test_verbose_omits_request_line_for_skipped_checks(fake_api, base_url, capsys):
    session = ApiSession(ApiConfig(base_url=base_url))

    run_checks(default_checks(), session, verbose=True)
    out = capsys.readouterr().out
    assert "SKIPPED" in out
    assert "-> None" not in out
    assert "None ms" not in out


def test_custom_checks_file(fake_api, serve_defaults, base_url, clean_env, tmp_path):
    serve_defaults()
    p = tmp_path / "checks.yaml"
    p.write_text(
        "checks:\n"
        "  - name: moto shape\n"
        "    path: /api/motos/{id}\n"
        "    path_params: {id: $resource_id}\n"
        "    json_assertions:\n"
        "      - path: $.id\n"
        "        expected_value: $resource_id\n",
        encoding="utf-8",
    )
    assert main(["--base-url", base_url, "--checks", str(p)]) == 0
    assert [c["url"] for c in fake_api.calls] == [f"{base_url}/api/auth/login", f"{base_url}/api/motos/1"]


def test_invalid_config_file_is_fatal(fake_api, clean_env, tmp_path, capsys):
    p = tmp_path / "config.yaml"
    p.write_text("just a string\n", encoding="utf-8")

    assert main(["--config", str(p)]) == 3
    assert fake_api.calls == []
    assert "Fatal error: Failed to load config" in capsys.readouterr().out


def test_misspelled_verify_tls_is_fatal(fake_api, clean_env, tmp_path, capsys):
    p = tmp_path / "config.yaml"
    p.write_text("verify_tls: ture\n", encoding="utf-8")

    assert main(["--config", str(p)]) == 3
    assert fake_api.calls == []
    assert "Fatal error: Invalid verify_tls: 'ture'" in capsys.readouterr().out


def test_reports_written(fake_api, serve_defaults, base_url, clean_env, tmp_path):
    serve_defaults()
    json_path = tmp_path / "report.json"
    html_path = tmp_path / "report.html"

    assert main(["--base-url", base_url, "--report-json", str(json_path), "--report-html", str(html_path)]) == 0

    report = json.loads(json_path.read_text(encoding="utf-8"))
    assert report["base_url"] == base_url
    assert report["token_acquired"] is True
    assert report["totals"] == {"executed": 7, "passed": 7, "failed": 0, "skipped": 0}
    assert report["checks"][1]["url"] == f"{base_url}/api/motos"
    assert "password" not in json_path.read_text(encoding="utf-8")
    assert "Motos | list all (200)" in html_path.read_text(encoding="utf-8")


def test_summarize_and_exit_code(base_url):
    session = ApiSession(ApiConfig(base_url=base_url), authorization="Bearer t")
    results = run_checks(default_checks()[:1], session)
    assert results[0].outcome == PASSED
    assert summarize(results) == {"executed": 1, "passed": 1, "failed": 0, "skipped": 0}
    assert exit_code(results) == 0
