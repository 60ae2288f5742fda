"""Deterministic identity keys, hashes and slugs derived from free text.

Every function here is pure and total: it always returns a value and never
raises on malformed input. Identity derivations (source key, stall id,
location id, slug) must stay stable across runs, so changing any rule in
this module re-keys the whole catalog.
"""

from __future__ import annotations

import hashlib
import re
import unicodedata
from urllib.parse import parse_qs, urlsplit

MEDIA_ID_RE = re.compile(r"[A-Za-z0-9_-]{11}")

_ALLOWED_MEDIA_HOSTS = ("youtube.com", "youtube-nocookie.com")
_PATH_ID_PREFIXES = ("embed", "shorts", "live")

SLUG_MAX_LENGTH = 60


def normalize_display_text(value: str | None) -> str:
    """Collapse internal whitespace and trim."""
    return re.sub(r"\s+", " ", value or "").strip()


def normalize_comparable_text(value: str | None) -> str:
    """Display form, lowercased. Used for matching, never for storage."""
    return normalize_display_text(value).lower()


def normalize_identity_text(value: str | None) -> str:
    """Identity form used inside keys and slugs.

    Examples:
        "Hill Street  Tai Hwa" -> "hill-street-tai-hwa"
        "Café Ünique!" -> "cafe-unique"
    """
    text = unicodedata.normalize("NFKD", normalize_comparable_text(value))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    return re.sub(r"\s+", "-", text.strip())


def make_stable_hash(value: str) -> str:
    """SHA-256 hex digest of the UTF-8 text."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def make_source_key(name: str, country: str, cuisine: str) -> str:
    """Build the `name|COUNTRY|cuisine` key that correlates records across sources."""
    name_part = normalize_identity_text(name)
    cuisine_part = normalize_identity_text(cuisine)
    country_part = normalize_display_text(country).upper()
    return f"{name_part}|{country_part}|{cuisine_part}"


def make_stall_id(source_key: str) -> str:
    return f"stall_{make_stable_hash(source_key)[:24]}"


def make_location_id(stall_id: str, address: str) -> str:
    return f"loc_{make_stable_hash(f'{stall_id}|{normalize_comparable_text(address)}')[:24]}"


def slugify(name: str) -> str:
    slug = normalize_identity_text(name)
    slug = re.sub(r"[_-]+", "-", slug).strip("-")
    return slug[:SLUG_MAX_LENGTH].strip("-")


def derive_slug(name: str, source_key: str) -> str:
    """URL slug for a stall, falling back to a key hash for unusable names."""
    base = slugify(name)
    if base:
        return base
    return f"stall-{make_stable_hash(source_key)[:12]}"


def _is_allowed_media_host(hostname: str) -> bool:
    return any(hostname == host or hostname.endswith(f".{host}") for host in _ALLOWED_MEDIA_HOSTS)


def normalize_media_id(value: str | None) -> str | None:
    """Extract a video id from a bare id or a watch/short/embed url.

    Returns None unless the input is syntactically valid.
    """
    text = (value or "").strip()
    if not text:
        return None
    if MEDIA_ID_RE.fullmatch(text):
        return text

    try:
        parts = urlsplit(text)
    except ValueError:
        return None

    hostname = (parts.hostname or "").removeprefix("www.")
    candidate = ""
    if hostname == "youtu.be":
        segments = [segment for segment in parts.path.split("/") if segment]
        candidate = segments[0] if segments else ""
    elif _is_allowed_media_host(hostname):
        candidate = parse_qs(parts.query).get("v", [""])[0]
        if not candidate:
            segments = [segment for segment in parts.path.split("/") if segment]
            if len(segments) >= 2 and segments[0] in _PATH_ID_PREFIXES:
                candidate = segments[1]

    return candidate if MEDIA_ID_RE.fullmatch(candidate) else None


def build_media_url(value: str | None) -> str | None:
    """Canonical watch url for a media id or url, or None when invalid."""
    media_id = normalize_media_id(value)
    if media_id is None:
        return None
    return f"https://www.youtube.com/watch?v={media_id}"
