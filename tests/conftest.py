# tests/conftest.py
import json
import os
import tempfile

import pytest
from freezegun import freeze_time

from modules.career_scan.lib import config as cs_config
from modules.career_scan.lib.fetchers.stub import StubPageFetcher


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (real career sites over the network).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "live: marks tests that fetch real career pages (skipped by default).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide env defaults (autouse, function-scoped)
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _env_defaults(monkeypatch):
    # Throwaway log dir per test so real logs stay clean
    tmp_logs = tempfile.mkdtemp(prefix="cs-pytest-logs-")
    monkeypatch.setenv("LOG_DIR", tmp_logs)
    monkeypatch.setenv("ACTIVITY_LOG_PREFIX", "activity-test")
    monkeypatch.setenv("ERROR_LOG_PREFIX", "error-test")

    # Nothing from the developer's shell leaks into Settings
    for name in (
        "CONFIG_PATH",
        "CAREER_SCAN_SITES_PATH",
        "CAREER_SCAN_STATE_PATH",
        "CAREER_SCAN_REPORT_PATH",
        "CAREER_SCAN_FETCHER",
    ):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def frozen_utc():
    with freeze_time("2025-01-01T00:00:00Z"):
        yield


# ---------------------------------------------------------------------
# Career pages used across the suite
# ---------------------------------------------------------------------
ACME_URL = "https://www.acme.com/careers"
GLOBEX_URL = "https://jobs.globex.io/openings"

ACME_HTML = """
<html><body>
  <div class="job-listing">
    <h3>Senior Product Manager</h3>
    <span class="location">Amsterdam</span>
    <a href="/jobs/1">Apply</a>
  </div>
  <div class="job-listing">
    <h3>Backend Engineer</h3>
    <span class="location">Remote</span>
    <a href="/jobs/2">Apply</a>
  </div>
</body></html>
"""

GLOBEX_HTML = """
<html><body>
  <table>
    <tr><td><a href="https://jobs.globex.io/p/77">Digital Product Manager</a></td><td class="city">Utrecht</td></tr>
    <tr><td><a href="https://jobs.globex.io/p/78">Office Manager</a></td><td class="city">Utrecht</td></tr>
  </table>
</body></html>
"""


@pytest.fixture
def write_sites(tmp_path):
    """Write a sites file ({"target_phrases": [...], "career_urls": [...]}) and return its path."""

    def _write(phrases=None, urls=None):
        data = {}
        if phrases is not None:
            data["target_phrases"] = phrases
        if urls is not None:
            data["career_urls"] = urls
        p = tmp_path / "sites.json"
        p.write_text(json.dumps(data), encoding="utf-8")
        return p

    return _write


@pytest.fixture
def fresh_settings(tmp_path):
    """
    Return a **brand-new** Settings instance for *each* test:
    two sites served by the stub fetcher, state and report in tmp_path.
    """
    return cs_config.Settings.from_env_and_kwargs({
        "target_phrases": ["product manager"],
        "career_urls": [ACME_URL, GLOBEX_URL],
        "state_path": str(tmp_path / "job-results.json"),
        "report_path": str(tmp_path / "job-report.html"),
        "fetcher": "stub",
        "fetcher_params": {"pages": {ACME_URL: ACME_HTML, GLOBEX_URL: GLOBEX_HTML}},
    })


@pytest.fixture
def stub_fetcher(fresh_settings):
    """A StubPageFetcher serving ACME and GLOBEX; tests mutate `.pages` to change the web."""
    return StubPageFetcher(fresh_settings)
