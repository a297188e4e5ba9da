"""
Tests for consent category suggestions.
"""

from consent_manager.models.scan import RawCookie, ScanResult
from consent_manager.services.scan_service import build_scan_result
from consent_manager.services.suggestions import generate_category_suggestions


def scan_with(*cookies):
    return build_scan_result("https://example.com", [RawCookie(name=n, domain=d) for n, d in cookies])


def test_failed_scan_has_no_suggestions():
    result = ScanResult.failed("https://example.com", "Navigation timeout of 30000 ms exceeded")

    assert generate_category_suggestions(result) == []


def test_empty_scan_has_no_suggestions():
    assert generate_category_suggestions(scan_with()) == []


def test_only_necessary_cookies_yield_single_suggestion():
    suggestions = generate_category_suggestions(scan_with(("sid", "example.com"), ("csrftoken", ".example.com")))

    assert len(suggestions) == 1
    necessary = suggestions[0]
    assert necessary.key == 'necessary'
    assert necessary.name == 'Necessary'
    assert necessary.required is True
    assert necessary.enabled is True
    assert necessary.cookie_count == 2
    assert necessary.cookies == ['sid', 'csrftoken']


def test_fixed_order_and_optional_flags():
    suggestions = generate_category_suggestions(scan_with(
        ("theme", "example.com"),
        ("IDE", ".doubleclick.net"),
        ("_ga", ".example.com"),
        ("_gid", ".example.com"),
    ))

    assert [s.key for s in suggestions] == ['necessary', 'analytics', 'marketing', 'preferences']
    assert suggestions[0].cookie_count == 0
    assert suggestions[0].cookies == []

    analytics = suggestions[1]
    assert analytics.required is False
    assert analytics.enabled is False
    assert analytics.cookies == ['_ga', '_gid']
    assert analytics.cookie_count == 2


def test_unclassified_cookies_are_not_suggested():
    suggestions = generate_category_suggestions(scan_with(("random_xyz", "cdn.other.net")))

    assert [s.key for s in suggestions] == ['necessary']


def test_suggestions_serialize_camel_case():
    suggestion = generate_category_suggestions(scan_with(("sid", "example.com")))[0]

    data = suggestion.model_dump(by_alias=True)
    assert data['cookieCount'] == 1
