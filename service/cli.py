# service/cli.py
"""
User-facing command-line entrypoints.

Subcommands
-----------
serve
    - Starts the APScheduler loop via service.scheduler.start()
    - Registers signal handlers for graceful shutdown

run [MODULE] [--kwargs k=v ...] [--print-html]
    - Executes a module ad-hoc via runner.run_module_once(...)
    - Prints the run message and the module's console summary
    - Exit code 0 on success, 1 on any failure

list-jobs
    - Loads config and prints configured jobs with their next fire times

validate-config
    - Loads/validates config and returns nonzero on error
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import signal
import sys
import threading
import time
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from service import config_schema as _config_schema
from service import logging_utils as L
from service import runner as _runner
from service import scheduler as _scheduler

LOG = logging.getLogger("service.cli")

DEFAULT_MODULE = "modules.career_scan"


# ----------------------------- Logging setup ---------------------------------
def _ensure_logging() -> None:
    """Initialize a reasonable logging setup if none exists yet."""
    root = logging.getLogger()
    if not root.handlers:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logging.basicConfig(
            level=getattr(logging, level, logging.INFO),
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


# -------------------------- Utility / glue code ------------------------------
def _parse_kv_pairs(pairs: Iterable[str]) -> dict[str, Any]:
    """
    Parse key=value strings into a dict.
    Values that look like JSON (true/false/null/number/object/array) are parsed;
    everything else stays a raw string.
    """
    out: dict[str, Any] = {}
    for raw in pairs:
        if "=" not in raw:
            raise argparse.ArgumentTypeError(f"--kwargs item must be key=value (got {raw!r})")
        k, v = raw.split("=", 1)
        k = k.strip()
        v = v.strip()
        if not k:
            raise argparse.ArgumentTypeError(f"Invalid key in --kwargs item {raw!r}")
        try:
            out[k] = json.loads(v)
        except json.JSONDecodeError:
            out[k] = v
    return out


def _print_table(rows: Iterable[tuple[str, str]], headers: tuple[str, str] = ("ID", "DETAILS")) -> None:
    """Very simple two-column table printer."""
    rows = list(rows)
    w0 = max(len(headers[0]), *(len(r[0]) for r in rows)) if rows else len(headers[0])
    w1 = max(len(headers[1]), *(len(r[1]) for r in rows)) if rows else len(headers[1])
    sep = f"+-{'-' * w0}-+-{'-' * w1}-+"
    print(sep)
    print(f"| {headers[0].ljust(w0)} | {headers[1].ljust(w1)} |")
    print(sep)
    for c0, c1 in rows:
        print(f"| {c0.ljust(w0)} | {c1.ljust(w1)} |")
    print(sep)


def _job_rows(cfg: dict[str, Any]) -> list[tuple[str, str]]:
    tz = _scheduler._resolve_timezone(cfg)
    out = []
    for idx, job in enumerate(cfg.get("jobs") or []):
        spec = _scheduler.make_job_spec(job, default_job_defaults={}, tz=tz)
        upcoming = _scheduler.preview_trigger(spec.trigger, tz, count=1)
        nxt = upcoming[0].isoformat() if upcoming else "never"
        desc = spec.summary or spec.module
        out.append((spec.id or str(idx), f"{desc} (next: {nxt})"))
    return out


def _now_iso() -> str:
    return datetime.now().astimezone().isoformat()


# ------------------------------ Subcommands ----------------------------------
def cmd_validate_config(args: argparse.Namespace) -> int:
    try:
        cfg = _config_schema.load_config(args.config)
        _config_schema.validate(cfg)
        print("OK: configuration is valid.")
        return 0
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        LOG.debug("Configuration validation failed", exc_info=True)
        print(f"ERROR: configuration invalid: {e}", file=sys.stderr)
        return 1


def cmd_list_jobs(args: argparse.Namespace) -> int:
    try:
        cfg = _config_schema.load_config(args.config)
        _config_schema.validate(cfg)
        rows = _job_rows(cfg)
        if not rows:
            print("No jobs found in config.")
            return 0
        _print_table(rows, headers=("JOB", "DETAILS"))
        return 0
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        LOG.exception("Failed to list jobs: %s", e)
        print(f"ERROR: failed to list jobs: {e}", file=sys.stderr)
        return 1


def cmd_run(args: argparse.Namespace) -> int:
    start_time = time.monotonic()

    try:
        kwargs = _parse_kv_pairs(args.kwargs or [])
        LOG.debug("Run module %s with kwargs=%s", args.module, kwargs)
        result, run_id = _runner.run_module_once(module=args.module, kwargs=kwargs)
    except KeyboardInterrupt:
        return 130
    except Exception as e:
        duration_s = time.monotonic() - start_time
        LOG.exception("Run of %s failed", args.module)
        print(f"FAILURE: {e}", file=sys.stderr)
        L.write_error_log({
            "ts": _now_iso(),
            "where": "cli.run",
            "module": args.module,
            "kwargs": args.kwargs or [],
            "error": repr(e),
            "duration_ms": int(duration_s * 1000),
        })
        return 1

    summary = (result.meta or {}).get("console_summary")
    if summary:
        print(summary)
    if result.html and args.print_html:
        print("\n----- HTML OUTPUT -----\n")
        print(result.html)
    print(f"DONE [{run_id[:8]}]: {result.message}")
    return 0


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the scheduler loop until a termination signal is received."""
    L.write_activity_log({"ts": _now_iso(), "event": "serve_start"})
    LOG.info("Activity log: %s", L.get_activity_log_path())

    stop_event = threading.Event()
    controller: _scheduler.SchedulerController | None = None

    def _graceful_shutdown(signum=None, frame=None):
        LOG.info("Signal %s received; initiating shutdown...", signum)
        stop_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        signal.signal(sig, _graceful_shutdown)

    try:
        controller = _scheduler.start(config_path=args.config)
        LOG.info("Scheduler started with jobs: %s", ", ".join(controller.get_job_ids()) or "(none)")

        while not stop_event.is_set():
            time.sleep(0.3)

        _safe_stop(controller)
        L.write_activity_log({"ts": _now_iso(), "event": "serve_stop"})
        return 0

    except KeyboardInterrupt:
        _safe_stop(controller)
        return 130
    except Exception as e:
        LOG.exception("Fatal error in serve: %s", e)
        _safe_stop(controller)
        return 1


def _safe_stop(controller: _scheduler.SchedulerController | None) -> None:
    if controller is None:
        return
    try:
        controller.stop()
        controller.join(timeout=10.0)
    except Exception:  # pragma: no cover
        LOG.exception("Error stopping scheduler")


# ------------------------------- Argparse ------------------------------------
def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="python -m service.cli",
        description="Career page scanner: ad-hoc runs and the scheduled service",
    )
    p.add_argument(
        "--config",
        help="Path to config file (fallbacks to CONFIG_PATH env or the built-in daily scan).",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("serve", help="Run the scheduler loop.")
    sp.set_defaults(func=cmd_serve)

    sp = sub.add_parser("run", help="Execute a module ad-hoc via runner.run_module_once().")
    sp.add_argument(
        "module",
        nargs="?",
        default=DEFAULT_MODULE,
        help=f"Module to run (default: {DEFAULT_MODULE}).",
    )
    sp.add_argument(
        "--kwargs",
        metavar="k=v",
        nargs="*",
        help="Extra keyword arguments for the module (JSON values supported).",
    )
    sp.add_argument(
        "--print-html",
        action="store_true",
        help="Print the HTML report returned by the run to stdout.",
    )
    sp.set_defaults(func=cmd_run)

    sp = sub.add_parser("list-jobs", help="Print all jobs from config.")
    sp.set_defaults(func=cmd_list_jobs)

    sp = sub.add_parser("validate-config", help="Verify configuration correctness.")
    sp.set_defaults(func=cmd_validate_config)

    return p


# --------------------------------- Main --------------------------------------
def main(argv: Iterable[str] | None = None) -> int:
    _ensure_logging()
    parser = _build_parser()
    args = parser.parse_args(args=list(argv) if argv is not None else None)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
