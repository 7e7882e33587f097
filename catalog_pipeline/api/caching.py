"""
HTTP caching helpers: Cache-Control directives and ETags.
"""

import hashlib
import json
from typing import Any

from catalog_pipeline.service import CachePolicy

# Cache-Control sent with 304 responses
NOT_MODIFIED_CACHE_CONTROL = "private, must-revalidate"


def build_cache_control(policy: CachePolicy) -> str:
    """
    Cache-Control header value for a policy.

    max_age 0 means "always revalidate": no-cache with an explicit max-age=0.
    """
    if policy.no_cache:
        directives = ["no-cache", "max-age=0"]
    else:
        directives = ["private" if policy.private else "public", f"max-age={policy.max_age}"]

    if policy.must_revalidate:
        directives.append("must-revalidate")

    return ", ".join(directives)


def canonical_json(data: Any) -> str:
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def generate_etag(data: Any) -> str:
    """Strong ETag: quoted md5 of the canonical JSON encoding."""
    digest = hashlib.md5(canonical_json(data).encode("utf-8")).hexdigest()
    return f'"{digest}"'


def _normalize_etag(etag: str) -> str:
    etag = etag.strip()
    if etag.startswith("W/"):
        etag = etag[2:]
    return etag.replace('"', "")


def etag_matches(if_none_match: str | None, etag: str) -> bool:
    """
    True when an If-None-Match header names the given ETag.

    Weak indicators and quotes are ignored; comma-separated lists and "*" are honored.
    """
    if not if_none_match:
        return False
    if if_none_match.strip() == "*":
        return True
    target = _normalize_etag(etag)
    return any(_normalize_etag(candidate) == target for candidate in if_none_match.split(","))
