"""
Unit tests for HTTP caching helpers.
"""

import pytest

from catalog_pipeline.api.caching import build_cache_control, etag_matches, generate_etag
from catalog_pipeline.service import CachePolicy

pytestmark = pytest.mark.unit


def test_cache_control_for_cacheable_results():
    assert build_cache_control(CachePolicy(max_age=300)) == "private, max-age=300, must-revalidate"


def test_cache_control_for_api_results():
    assert build_cache_control(CachePolicy(max_age=0)) == "no-cache, max-age=0, must-revalidate"


def test_cache_control_public_without_revalidation():
    policy = CachePolicy(max_age=60, private=False, must_revalidate=False)

    assert build_cache_control(policy) == "public, max-age=60"


def test_etag_is_quoted_and_key_order_independent():
    first = generate_etag({"a": 1, "b": [1, 2]})
    second = generate_etag({"b": [1, 2], "a": 1})

    assert first == second
    assert first.startswith('"') and first.endswith('"')
    assert generate_etag({"a": 2}) != first


@pytest.mark.parametrize(
    "header, expected",
    [
        ('"abc"', True),
        ('W/"abc"', True),
        ("abc", True),
        ('"other", "abc"', True),
        ("*", True),
        ('"other"', False),
        ("", False),
        (None, False),
    ],
)
def test_etag_matches(header, expected):
    assert etag_matches(header, '"abc"') is expected
