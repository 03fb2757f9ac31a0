"""
URL utilities for referral links and share verification.

Primary source for client links: CLIENT_URL (e.g., https://final10.app).
"""
from __future__ import annotations

import os
from typing import Optional
from urllib.parse import urlencode, urlparse


def _strip_trailing_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


def get_client_base_url() -> str:
    """Return the normalized client base URL, defaulting to the dev server."""
    base = os.getenv("CLIENT_URL")
    if base and base.strip():
        return _strip_trailing_slash(base.strip())
    return "http://localhost:3000"


def build_referral_link(code: str) -> str:
    return f"{get_client_base_url()}/signup?{urlencode({'ref': code})}"


def extract_hostname(url_value: str) -> Optional[str]:
    """Return the lowercased hostname from a URL or bare host string."""
    if not url_value:
        return None
    url_value = url_value.strip()
    if not url_value:
        return None
    candidate = url_value if "://" in url_value else f"https://{url_value}"
    host = urlparse(candidate).hostname
    return host.lower() if host else None


def host_matches(host: Optional[str], domain: str) -> bool:
    """True when ``host`` is ``domain`` or one of its subdomains."""
    if not host:
        return False
    return host == domain or host.endswith("." + domain)
