"""
runner.py
- Resolves configuration and logs in once (fatal on failure)
- Runs the ordered checks; each check passes, fails or is skipped on its own
- Prints summary report at end, optionally writes JSON/HTML reports
"""

import argparse
import sys
import time
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

import requests

from .checks import KIND_TOKEN, Check, default_checks, load_checks, verify_response
from .client import ApiSession, execute_request, login
from .config import ApiConfig, load_config, resolve_config
from .utils import body_snippet


PASSED = "passed"
FAILED = "failed"
SKIPPED = "skipped"

EXIT_OK = 0
EXIT_FAILED = 2
EXIT_FATAL = 3


@dataclass
class CheckResult:
    name: str
    outcome: str
    message: Optional[str] = None
    status_code: Optional[int] = None
    method: Optional[str] = None
    url: Optional[str] = None
    response_snippet: Optional[str] = None
    duration_ms: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def setup(config: ApiConfig, http: Optional[requests.Session] = None) -> ApiSession:
    """Open the session and log in. LoginError (or a transport error) propagates as fatal."""
    session = ApiSession(config, http=http)
    try:
        login(session)
    except Exception:
        session.close()
        raise

    print(f"Base URL........: {config.base_url}")
    print(f"User for login..: {config.username}")
    print(f"Token acquired?.: {session.token_acquired}")
    return session


def run_check(check: Check, session: ApiSession) -> CheckResult:
    if check.kind == KIND_TOKEN:
        if session.token_acquired:
            return CheckResult(check.name, PASSED)
        return CheckResult(check.name, FAILED, "Token not obtained.")

    path = check.resolved_path()
    url = session.config.url(path)
    result = CheckResult(check.name, SKIPPED, method=check.method, url=url)
    if check.requires_auth and not session.token_acquired:
        result.message = "No token, check skipped"
        return result

    headers = session.auth_headers() if check.requires_auth else {}
    t0 = time.time()
    try:
        resp = execute_request(session, check.method, path, headers=headers)
    except requests.RequestException as exc:
        result.duration_ms = int((time.time() - t0) * 1000)
        result.outcome = FAILED
        result.message = f"Request failed: {exc}"
        return result
    result.duration_ms = int((time.time() - t0) * 1000)
    result.status_code = resp.status_code

    ok, err = verify_response(resp, check)
    result.outcome = PASSED if ok else FAILED
    result.message = err
    if not ok:
        result.response_snippet = body_snippet(resp)
    return result


def run_checks(checks: List[Check], session: ApiSession, verbose: bool = False) -> List[CheckResult]:
    """Run every check in order; a failing check never stops the ones after it."""
    results = []
    total = len(checks)
    print(f"\n=== Running {total} check(s) against {session.config.base_url} ===")
    for idx, check in enumerate(checks, start=1):
        print(f"  [{idx}/{total}] -> {check.name} ... ", end="", flush=True)
        result = run_check(check, session)
        print(result.outcome.upper())
        if verbose and result.status_code is not None:
            print(f"      {result.method} {result.url} -> {result.status_code} ({result.duration_ms} ms)")
        results.append(result)
    return results


def summarize(results: List[CheckResult]) -> Dict[str, int]:
    totals = {"executed": len(results), PASSED: 0, FAILED: 0, SKIPPED: 0}
    for r in results:
        totals[r.outcome] += 1
    return totals


def exit_code(results: List[CheckResult]) -> int:
    return EXIT_FAILED if any(r.outcome == FAILED for r in results) else EXIT_OK


def print_summary(results: List[CheckResult]):
    totals = summarize(results)
    print("\n=== Summary ===")
    print(f"Checks executed: {totals['executed']}")
    print(f"Passed: {totals[PASSED]}")
    print(f"Failed: {totals[FAILED]}")
    print(f"Skipped: {totals[SKIPPED]}")

    failures = [r for r in results if r.outcome == FAILED]
    if failures:
        print("\nFailures detail:")
        for r in failures:
            print(f"- Check: {r.name}")
            print(f"  Reason: {r.message}")
            if r.status_code is not None:
                print(f"  HTTP status: {r.status_code}")
            if r.response_snippet:
                print(f"  Response body (snippet): {r.response_snippet}")


def build_report(session: ApiSession, results: List[CheckResult]) -> Dict[str, Any]:
    return {
        "base_url": session.config.base_url,
        "username": session.config.username,
        "token_acquired": session.token_acquired,
        "totals": summarize(results),
        "checks": [r.as_dict() for r in results],
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Login and verify the motos/beacons/localizacoes API endpoints.")
    parser.add_argument("--config", "-c", help="Path to key->value config YAML", default=None)
    parser.add_argument("--checks", help="Path to a checks YAML file replacing the built-in checks", default=None)
    parser.add_argument("--base-url", dest="base_url", help="Target server root (env API_BASE_URL)", default=None)
    parser.add_argument("--user", dest="username", help="Login username (env API_USER)", default=None)
    parser.add_argument("--password", help="Login password (env API_PASS)", default=None)
    parser.add_argument("--resource-id", dest="resource_id", help="Id used by the get-by-id checks", default=None)
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds", default=None)
    parser.add_argument("--insecure", action="store_true", help="Do not verify TLS certificates")
    parser.add_argument("--report-json", dest="report_json", help="Write detailed JSON report to this file", default=None)
    parser.add_argument("--report-html", dest="report_html", help="Write detailed HTML report to this file", default=None)
    parser.add_argument("--verbose", "-v", action="store_true", help="Print request line and timing per check")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {
        "base_url": args.base_url,
        "username": args.username,
        "password": args.password,
        "resource_id": args.resource_id,
        "timeout": args.timeout,
    }
    if args.insecure:
        overrides["verify_tls"] = False

    try:
        config = resolve_config(load_config(args.config), overrides)
        placeholders = config.placeholders()
        checks = load_checks(args.checks, placeholders) if args.checks else default_checks(placeholders)
        with setup(config) as session:
            results = run_checks(checks, session, verbose=args.verbose)
            report = build_report(session, results)
    except Exception as exc:
        print(f"Fatal error: {exc}")
        return EXIT_FATAL

    print_summary(results)

    if args.report_json:
        from .reporting import write_json_report

        try:
            write_json_report(report, args.report_json)
            print(f"Wrote JSON report to {args.report_json}")
        except OSError as e:
            print(f"Failed to write report to {args.report_json}: {e}")

    if args.report_html:
        from .reporting import generate_html_report

        try:
            generate_html_report(report, args.report_html)
            print(f"Wrote HTML report to {args.report_html}")
        except OSError as e:
            print(f"Failed to write report to {args.report_html}: {e}")

    return exit_code(results)


def main_cli():
    sys.exit(main())


if __name__ == "__main__":
    main_cli()
