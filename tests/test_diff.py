# tests/test_diff.py
from modules.career_scan.lib import diff
from modules.career_scan.lib.models import JobListing, SiteResult

A = JobListing("Product Manager", "https://acme.com/1", "Amsterdam")
B = JobListing("Program Manager", "https://acme.com/2")
C = JobListing("AI Strategy Lead", "https://acme.com/3")


def test_no_prior_record_makes_everything_new():
    assert diff.partition_new([A, B], None) == [A, B]


def test_empty_prior_jobs_makes_everything_new():
    assert diff.partition_new([A, B], []) == [A, B]


def test_only_unseen_links_are_new_in_current_order():
    assert diff.partition_new([C, A, B], [A]) == [C, B]


def test_title_change_with_same_link_is_not_new():
    renamed = JobListing("Senior Product Manager", A.link, "Utrecht")
    assert diff.partition_new([renamed], [A]) == []


def test_links_compare_exactly():
    trailing = JobListing(A.title, A.link + "/", A.location)
    assert diff.partition_new([trailing], [A]) == [trailing]


def test_disappeared_jobs_are_not_reported():
    assert diff.partition_new([], [A, B]) == []


def test_prior_for_matches_exact_career_url():
    snap = [
        SiteResult.success("https://acme.com/careers", "t", [A]),
        SiteResult.success("https://globex.io/jobs", "t", [B]),
    ]
    assert diff.prior_for(snap, "https://globex.io/jobs") is snap[1]
    assert diff.prior_for(snap, "https://globex.io/jobs/") is None


def test_enrich_new_derives_company_from_hostname():
    out = diff.enrich_new([A], "https://www.bloomreach.com/en/careers")
    assert len(out) == 1
    job = out[0]
    assert job.company == "bloomreach"
    assert job.career_url == "https://www.bloomreach.com/en/careers"
    assert (job.title, job.link, job.location) == (A.title, A.link, A.location)
