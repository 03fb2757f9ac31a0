"""Checks that a submitted share URL plausibly points at a real post."""
from __future__ import annotations

from typing import Dict, Tuple

from final10.utils.urls import extract_hostname, host_matches

PLATFORM_DOMAINS: Dict[str, Tuple[str, ...]] = {
    "twitter": ("twitter.com", "x.com", "t.co"),
    "facebook": ("facebook.com", "fb.com"),
    "instagram": ("instagram.com",),
    "linkedin": ("linkedin.com",),
    "tiktok": ("tiktok.com",),
    "youtube": ("youtube.com", "youtu.be"),
}

HASHTAG_MARKERS = ("#", "%23", "hashtag", "stayearning", "staysavvy")
POST_MARKERS = ("share", "post", "status", "tweet", "story", "reel")


def verify_share(share_type: str, platform: str, url: str) -> Tuple[bool, str]:
    """Return (ok, reason). ``reason`` is empty when the share is accepted."""
    domains = PLATFORM_DOMAINS.get((platform or "").lower())
    if domains is None:
        return False, "Unsupported platform"
    host = extract_hostname(url)
    if not any(host_matches(host, d) for d in domains):
        return False, f"URL does not belong to {platform}"
    lowered = url.lower()
    if share_type == "social":
        if not any(marker in lowered for marker in HASHTAG_MARKERS):
            return False, "Social posts must include our hashtags"
    elif not any(marker in lowered for marker in POST_MARKERS):
        return False, "URL does not look like a shared post"
    return True, ""
