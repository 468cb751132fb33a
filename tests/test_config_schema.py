import json

import pytest

from service import config_schema
from service.config_schema import ConfigError


def _job(**overrides):
    job = {"id": "scan", "module": "modules.career_scan", "trigger": {"daily_time": {"time": "08:00"}}}
    job.update(overrides)
    return job


def test_default_config_is_one_daily_career_scan(monkeypatch):
    monkeypatch.setenv("TZ", "Europe/Amsterdam")
    cfg = config_schema.load_config()
    config_schema.validate(cfg)

    assert [j["module"] for j in cfg["jobs"]] == ["modules.career_scan"]
    assert cfg["timezone"] == "Europe/Amsterdam"
    # the built-in default is never mutated by callers
    cfg["jobs"].clear()
    assert config_schema.load_config()["jobs"]


def test_load_json_from_config_path_env(tmp_path, monkeypatch):
    p = tmp_path / "config.json"
    p.write_text(json.dumps({"jobs": [{"module": "modules.career_scan", "trigger": {"cron": "0 8 * * 1-5"}}]}))
    monkeypatch.setenv("CONFIG_PATH", str(p))

    cfg = config_schema.load_config()
    config_schema.validate(cfg)
    assert cfg["jobs"][0]["id"] == "modules.career_scan"  # derived from module


def test_load_yaml(tmp_path):
    p = tmp_path / "config.yaml"
    p.write_text(
        "timezone: UTC\n"
        "jobs:\n"
        "  - id: scan\n"
        "    module: modules.career_scan\n"
        "    trigger:\n"
        "      interval: {hours: 6}\n"
        "    kwargs:\n"
        "      fetcher: browser\n",
        encoding="utf-8",
    )
    cfg = config_schema.load_config(str(p))
    config_schema.validate(cfg)
    assert cfg["jobs"][0]["kwargs"] == {"fetcher": "browser"}


@pytest.mark.parametrize(
    "content, name",
    [
        ("{oops", "config.json"),
        ("jobs: [unclosed", "config.yml"),
        ("[1, 2]", "config.json"),
    ],
)
def test_unreadable_files_raise_config_error(tmp_path, content, name):
    p = tmp_path / name
    p.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigError):
        config_schema.load_config(str(p))


def test_missing_file_raises_config_error(tmp_path):
    with pytest.raises(ConfigError):
        config_schema.load_config(str(tmp_path / "absent.json"))


@pytest.mark.parametrize(
    "jobs",
    [
        [_job(module="")],
        [_job(), _job()],  # duplicate id
        [_job(trigger=None)],
        [_job(trigger={})],
        [_job(trigger={"interval": {"hours": 1}, "daily_time": {"time": "08:00"}})],
        [_job(trigger={"interval": {"hours": "often"}})],
        [_job(trigger={"cron": 5})],
        [_job(trigger={"daily_time": {"time": "8am"}})],
        [_job(trigger={"daily_time": {"time": "24:00"}})],
        [_job(timeout_sec=0)],
        [_job(kwargs=["fetcher=http"])],
        [_job(summary=3)],
    ],
)
def test_validate_rejects_bad_jobs(jobs):
    with pytest.raises(ConfigError):
        config_schema.validate({"timezone": "UTC", "jobs": jobs})


def test_validate_rejects_non_list_jobs():
    with pytest.raises(ConfigError):
        config_schema.validate({"jobs": {"scan": {}}})


def test_cli_validate_config_and_list_jobs(tmp_path, capsys):
    from service import cli

    p = tmp_path / "config.json"
    p.write_text(json.dumps({"timezone": "UTC", "jobs": [_job(summary="morning scan")]}), encoding="utf-8")

    assert cli.main(["--config", str(p), "validate-config"]) == 0
    assert cli.main(["--config", str(p), "list-jobs"]) == 0
    out, _ = capsys.readouterr()
    assert "OK: configuration is valid." in out
    assert "morning scan (next: " in out


def test_cli_validate_config_reports_errors(tmp_path, capsys):
    from service import cli

    p = tmp_path / "config.json"
    p.write_text(json.dumps({"jobs": [_job(trigger={})]}), encoding="utf-8")

    assert cli.main(["--config", str(p), "validate-config"]) == 1
    _, err = capsys.readouterr()
    assert "configuration invalid" in err
