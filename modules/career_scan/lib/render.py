from __future__ import annotations

from collections.abc import Sequence

from . import state, utils
from .models import JobListing, NewJob, RunOutcome, SiteResult

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; max-width: 1200px; margin: 0 auto; padding: 20px; }
    h1, h2, h3 { color: #333; }
    .company { margin-bottom: 30px; border-bottom: 1px solid #eee; padding-bottom: 20px; }
    .job { margin-bottom: 15px; padding: 15px; border-radius: 5px; }
    .new-job { background-color: #e6f7e6; border-left: 4px solid #28a745; }
    .regular-job { background-color: #f8f9fa; }
    .job-title { font-weight: bold; font-size: 18px; margin-bottom: 5px; }
    .job-location { color: #666; margin-bottom: 10px; }
    .job-link { display: inline-block; background-color: #007bff; color: white; padding: 5px 10px;
                text-decoration: none; border-radius: 3px; }
    .summary { background-color: #f8f9fa; padding: 15px; border-radius: 5px; margin-bottom: 20px; }
    .error { color: #c00; }
    .timestamp { color: #666; font-style: italic; margin-top: 5px; }
"""


def summary_line(outcome: RunOutcome) -> str:
    return (
        f"Checked {outcome.site_count} career sites and found "
        f"{outcome.matching_count} matching jobs."
    )


def new_jobs_line(new_jobs: Sequence[NewJob]) -> str:
    if new_jobs:
        return f"Found {len(new_jobs)} new matching jobs!"
    return "No new jobs found in this run."


def _view_link(url: str) -> str:
    return f'<a href="{utils.esc(url)}" target="_blank" class="job-link">View Job</a>'


def _new_job_block(job: NewJob) -> str:
    meta = f"Company: {utils.esc(job.company)}"
    if job.location:
        meta += f" | Location: {utils.esc(job.location)}"
    return (
        '<div class="job new-job">'
        f'<div class="job-title">{utils.esc(job.title)}</div>'
        f'<div class="job-location">{meta}</div>'
        f"{_view_link(job.link)}"
        "</div>"
    )


def _site_job_block(job: JobListing, is_new: bool) -> str:
    css = "new-job" if is_new else "regular-job"
    marker = " (NEW)" if is_new else ""
    parts = [
        f'<div class="job {css}">',
        f'<div class="job-title">{utils.esc(job.title)}{marker}</div>',
    ]
    if job.location:
        parts.append(f'<div class="job-location">Location: {utils.esc(job.location)}</div>')
    parts.append(_view_link(job.link))
    parts.append("</div>")
    return "".join(parts)


def build_site_sections(snapshot: Sequence[SiteResult], new_links: set[str]) -> str:
    """
    One section per site, in configured order:
      <h3>{hostname}</h3>, career URL, last checked, error (if any), then its jobs
      with new ones (by link) marked.
    """
    sections: list[str] = []
    for site in snapshot:
        parts = [
            '<div class="company">',
            f"<h3>{utils.esc(utils.hostname(site.career_url))}</h3>",
            f'<p>Career URL: <a href="{utils.esc(site.career_url)}" target="_blank">'
            f"{utils.esc(site.career_url)}</a></p>",
            f"<p>Last checked: {utils.esc(site.last_checked)}</p>",
        ]
        if site.error:
            parts.append(f'<p class="error">Error: {utils.esc(site.error)}</p>')
        if not site.jobs:
            parts.append("<p>No matching jobs found</p>")
        else:
            parts.extend(_site_job_block(j, j.link in new_links) for j in site.jobs)
        parts.append("</div>")
        sections.append("\n".join(parts))
    return "\n".join(sections)


def build_report(outcome: RunOutcome, *, generated_at: str) -> str:
    """Full standalone HTML report for one run."""
    new_links = {j.link for j in outcome.new_jobs}
    body: list[str] = [
        "<h1>Job Search Results</h1>",
        f'<div class="timestamp">Last updated: {utils.esc(generated_at)}</div>',
        '<div class="summary">',
        "<h2>Summary</h2>",
        f"<p>{utils.esc(summary_line(outcome))}</p>",
        f"<p>{utils.esc(new_jobs_line(outcome.new_jobs))}</p>",
        "</div>",
    ]
    if outcome.new_jobs:
        body.append('<div class="new-jobs-section">')
        body.append("<h2>New Jobs</h2>")
        body.extend(_new_job_block(j) for j in outcome.new_jobs)
        body.append("</div>")
    body.append("<h2>All Matching Jobs</h2>")
    body.append(build_site_sections(outcome.snapshot, new_links))

    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        "<title>Job Search Results</title>\n"
        f"<style>{_STYLE}</style>\n</head>\n<body>\n" + "\n".join(body) + "\n</body>\n</html>\n"
    )


def console_summary(new_jobs: Sequence[NewJob]) -> str:
    """
    Plain-text list of new jobs for the terminal:

        NEW JOBS FOUND!
        ---------------------
        1. Senior Product Manager
           Company: acme
           Location: Amsterdam
           Link: https://...
    """
    if not new_jobs:
        return "No new jobs found matching your criteria."
    lines = ["NEW JOBS FOUND!", "---------------------"]
    for i, job in enumerate(new_jobs, start=1):
        lines.append(f"{i}. {job.title}")
        lines.append(f"   Company: {job.company}")
        if job.location:
            lines.append(f"   Location: {job.location}")
        lines.append(f"   Link: {job.link}")
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"


def publish(outcome: RunOutcome, *, state_path: str, report_path: str, generated_at: str) -> str:
    """
    Persist the snapshot (replacing prior state) and write the report.
    Returns the report HTML. Errors propagate; they are fatal for the run.
    """
    state.save_snapshot(state_path, outcome.snapshot)
    html = build_report(outcome, generated_at=generated_at)
    state.write_text_atomic(report_path, html)
    return html
