from __future__ import annotations

import html
import os
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlparse

_HTML_ESCAPE_QUOTE = True  # keep quotes escaped for attributes


def esc(s: str | None) -> str:
    """
    Escape text for HTML contexts (titles, URLs). Do NOT wrap or add tags.
    """
    if s is None:
        return ""
    return html.escape(str(s), quote=_HTML_ESCAPE_QUOTE)


def truthy(v: Any) -> bool:
    """
    Normalize common truthy inputs from env/kwargs.
    Accepts bools or strings like: '1', 'true', 'yes', 'on'.
    """
    if isinstance(v, bool):
        return v
    if v is None:
        return False
    if isinstance(v, (int, float)):
        return v != 0
    s = str(v).strip().lower()
    return s in {"1", "true", "yes", "on", "y", "t"}


def now_iso() -> str:
    """
    UTC ISO-8601 timestamp with 'Z' suffix.
    """
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def getenv_str(name: str, default: str | None = None) -> str | None:
    """
    Typed wrapper for environment access. Empty values count as unset.
    """
    val = os.getenv(name)
    return val if val else default


def hostname(url: str) -> str:
    """Hostname with a leading 'www.' removed, e.g. 'careers.adyen.com'."""
    host = (urlparse(url).hostname or "").lower()
    if host.startswith("www."):
        host = host[len("www.") :]
    return host


def company_from_url(url: str) -> str:
    """
    Company label for a career URL: the first DNS label after dropping 'www.'.

      https://www.bloomreach.com/en/careers -> 'bloomreach'
      https://careers.adyen.com/vacancies   -> 'careers'
    """
    return hostname(url).split(".")[0]
