"""
One-shot run: python -m modules.career_scan

Reads settings from the environment (CAREER_SCAN_* variables), prints the
console summary and exits 0, or logs the failure and exits 1.
"""

from __future__ import annotations

import sys

from service import cli

if __name__ == "__main__":  # pragma: no cover
    sys.exit(cli.main(["run", "modules.career_scan", *sys.argv[1:]]))
