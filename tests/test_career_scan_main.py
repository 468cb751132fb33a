# tests/test_career_scan_main.py
from conftest import ACME_HTML, ACME_URL, GLOBEX_URL

import modules.career_scan as career_scan


def _kwargs(tmp_path, pages):
    return {
        "target_phrases": ["product manager"],
        "career_urls": [ACME_URL, GLOBEX_URL],
        "state_path": str(tmp_path / "job-results.json"),
        "report_path": str(tmp_path / "job-report.html"),
        "fetcher": "stub",
        "fetcher_params": {"pages": pages},
    }


def test_run_returns_report_and_meta(tmp_path):
    html, meta = career_scan.run(**_kwargs(tmp_path, {ACME_URL: ACME_HTML}))

    assert "<h1>Job Search Results</h1>" in html
    assert meta["sites"] == 2
    assert meta["matching_total"] == 1
    assert meta["new_total"] == 1
    assert "subject" not in meta
    assert meta["new_jobs"][0]["careerUrl"] == ACME_URL
    assert meta["errors"] == {GLOBEX_URL: f"net::ERR_NAME_NOT_RESOLVED at {GLOBEX_URL}"}
    assert meta["console_summary"].startswith("NEW JOBS FOUND!")
    assert meta["message"] == (
        "Checked 2 career sites and found 1 matching jobs. Found 1 new matching jobs!"
    )


def test_second_run_without_new_jobs_is_quiet(tmp_path):
    career_scan.run(**_kwargs(tmp_path, {ACME_URL: ACME_HTML}))
    _, meta = career_scan.run(**_kwargs(tmp_path, {ACME_URL: ACME_HTML}))

    assert meta["new_total"] == 0
    assert meta["console_summary"] == "No new jobs found matching your criteria."
