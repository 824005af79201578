# ============================================================================
# FILE: songguessr/core/soundcloud.py
# ============================================================================
"""Helpers for the SoundCloud URLs songs are played from."""
import re
from typing import Optional
from urllib.parse import quote

_API_TRACK_RE = re.compile(r"api\.soundcloud\.com/tracks/(\d+)")
_EMBED_TRACK_RE = re.compile(r"tracks(?:%2F|/)(\d+)", re.IGNORECASE)

_VALID_URL_PATTERNS = [
    re.compile(r"^https://w\.soundcloud\.com/player/\?url="),
    re.compile(r"^https://api\.soundcloud\.com/tracks/\d+"),
    re.compile(r"^https://soundcloud\.com/[^/]+/[^/]+"),
    re.compile(r"^https://m\.soundcloud\.com/[^/]+/[^/]+"),
]

EMBED_PLAYER_URL = "https://w.soundcloud.com/player/"
EMBED_OPTIONS = (
    "&color=%23ff5500&auto_play=false&hide_related=true&show_comments=false"
    "&show_user=true&show_reposts=false&show_teaser=false&visual=false"
)


def is_valid_soundcloud_url(url: str) -> bool:
    if not url or not url.strip():
        return False
    return any(pattern.match(url) for pattern in _VALID_URL_PATTERNS)


def extract_track_id(url: str) -> Optional[str]:
    """
    Track id from an API or embed URL.
    Regular soundcloud.com page URLs need an API lookup and yield None.
    """
    match = _API_TRACK_RE.search(url)
    if match:
        return match.group(1)
    if "w.soundcloud.com" in url:
        match = _EMBED_TRACK_RE.search(url)
        if match:
            return match.group(1)
    return None


def api_url(track_id: str) -> str:
    return f"https://api.soundcloud.com/tracks/{track_id}"


def embed_url(track_id: str) -> str:
    return f"{EMBED_PLAYER_URL}?url={quote(api_url(track_id), safe='')}{EMBED_OPTIONS}"
