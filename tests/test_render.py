# tests/test_render.py
from modules.career_scan.lib import render
from modules.career_scan.lib.models import JobListing, NewJob, RunOutcome, SiteResult

ACME = "https://www.acme.com/careers"
GLOBEX = "https://jobs.globex.io/openings"


def _outcome():
    old = JobListing("Program Manager", "https://www.acme.com/jobs/2")
    fresh = JobListing("Senior Product Manager", "https://www.acme.com/jobs/1", "Amsterdam")
    snapshot = [
        SiteResult.success(ACME, "2025-01-01T00:00:00Z", [fresh, old]),
        SiteResult.failure(GLOBEX, "2025-01-01T00:00:00Z", "Access denied by website"),
    ]
    new = [NewJob.from_listing(fresh, company="acme", career_url=ACME)]
    return RunOutcome(snapshot=snapshot, new_jobs=new)


def test_report_has_summary_new_section_and_sites():
    html = render.build_report(_outcome(), generated_at="2025-01-01T00:00:00Z")

    assert html.startswith("<!DOCTYPE html>")
    assert "<title>Job Search Results</title>" in html
    assert "Checked 2 career sites and found 2 matching jobs." in html
    assert "Found 1 new matching jobs!" in html
    assert "<h2>New Jobs</h2>" in html
    assert "<h2>All Matching Jobs</h2>" in html
    assert "<h3>acme.com</h3>" in html
    assert "<h3>jobs.globex.io</h3>" in html
    assert "Senior Product Manager (NEW)" in html
    assert "Program Manager (NEW)" not in html
    assert 'class="error">Error: Access denied by website' in html
    assert "No matching jobs found" in html
    assert "Last updated: 2025-01-01T00:00:00Z" in html


def test_report_without_new_jobs_omits_new_section():
    out = _outcome()
    out.new_jobs = []
    html = render.build_report(out, generated_at="t")
    assert "<h2>New Jobs</h2>" not in html
    assert "No new jobs found in this run." in html
    assert "(NEW)" not in html


def test_scraped_text_is_escaped():
    evil = JobListing('<script>alert("x")</script> Product Manager', 'https://acme.com/1?a=1&b="2"', "<b>NL</b>")
    out = RunOutcome(
        snapshot=[SiteResult.success(ACME, "t", [evil])],
        new_jobs=[NewJob.from_listing(evil, company="acme", career_url=ACME)],
    )
    html = render.build_report(out, generated_at="t")

    assert "<script>" not in html
    assert "&lt;script&gt;" in html
    assert "<b>NL</b>" not in html
    assert 'href="https://acme.com/1?a=1&amp;b=&quot;2&quot;"' in html


def test_console_summary_lists_new_jobs():
    out = _outcome()
    text = render.console_summary(out.new_jobs)
    assert text.startswith("NEW JOBS FOUND!")
    assert "1. Senior Product Manager" in text
    assert "Company: acme" in text
    assert "Location: Amsterdam" in text
    assert "Link: https://www.acme.com/jobs/1" in text


def test_console_summary_without_new_jobs():
    assert render.console_summary([]) == "No new jobs found matching your criteria."


def test_publish_writes_state_and_report(tmp_path):
    state_path = tmp_path / "job-results.json"
    report_path = tmp_path / "out" / "job-report.html"

    html = render.publish(_outcome(), state_path=str(state_path), report_path=str(report_path), generated_at="t")

    assert state_path.exists()
    assert report_path.read_text(encoding="utf-8") == html
