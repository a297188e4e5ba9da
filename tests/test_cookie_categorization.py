"""
Tests for cookie categorization.
"""

import pytest

from consent_manager.models.scan import CookieCategory, CookieType
from consent_manager.services.cookie_categorization import (
    categorize_cookie,
    determine_party_type,
    get_site_hostname,
    is_first_party,
    strip_leading_dot,
)

SITE = "https://example.com"


@pytest.mark.parametrize("name", ["_ga", "_ga_ABC123", "_gid", "__utma", "mixpanel_distinct", "_fbp", "_GA"])
def test_analytics_patterns_win_regardless_of_domain(name):
    """Analytics name patterns match before any other group."""
    assert categorize_cookie(name, ".example.com", SITE) == CookieCategory.ANALYTICS
    assert categorize_cookie(name, ".doubleclick.net", SITE) == CookieCategory.ANALYTICS


def test_same_origin_cookie_without_pattern_is_necessary():
    assert categorize_cookie("sessionid", "example.com", SITE) == CookieCategory.NECESSARY


def test_cookie_named_id_is_marketing_even_off_site():
    assert categorize_cookie("id", "other.com", SITE) == CookieCategory.MARKETING


def test_short_marketing_patterns_match_whole_tokens():
    assert categorize_cookie("user_id", "example.com", SITE) == CookieCategory.MARKETING
    assert categorize_cookie("NID", ".google.com", SITE) == CookieCategory.MARKETING
    # "nid" inside JSESSIONID is not a token
    assert categorize_cookie("JSESSIONID", "example.com", SITE) == CookieCategory.FUNCTIONAL


def test_marketing_matches_on_domain():
    assert categorize_cookie("IDE", ".doubleclick.net", SITE) == CookieCategory.MARKETING
    assert categorize_cookie("visitor", "stats.doubleclick.net", SITE) == CookieCategory.MARKETING


def test_functional_and_preferences_patterns():
    assert categorize_cookie("PHPSESSID", "example.com", SITE) == CookieCategory.FUNCTIONAL
    assert categorize_cookie("wp-settings-1", "example.com", SITE) == CookieCategory.FUNCTIONAL
    assert categorize_cookie("lang", "example.com", SITE) == CookieCategory.PREFERENCES
    assert categorize_cookie("cookie_consent", "other.org", SITE) == CookieCategory.PREFERENCES


def test_wildcard_domain_treated_like_bare_domain():
    assert categorize_cookie("sid", ".example.com", SITE) == CookieCategory.NECESSARY
    assert categorize_cookie("sid", "example.com", SITE) == CookieCategory.NECESSARY
    assert is_first_party(".example.com", "example.com")
    assert is_first_party("example.com", "example.com")


def test_parent_domain_cookie_is_first_party_for_subdomain():
    assert categorize_cookie("sid", ".example.com", "https://www.example.com") == CookieCategory.NECESSARY


def test_unknown_third_party_cookie_is_unclassified():
    assert categorize_cookie("random_xyz", "cdn.other.net", SITE) == CookieCategory.UNCLASSIFIED


def test_missing_domain_is_unclassified():
    assert categorize_cookie("sid", "", SITE) == CookieCategory.UNCLASSIFIED
    assert categorize_cookie("sid", None, SITE) == CookieCategory.UNCLASSIFIED


def test_unparseable_site_url_does_not_raise():
    assert categorize_cookie("sid", "example.com", "http://[::1") == CookieCategory.UNCLASSIFIED


def test_hostname_helpers():
    assert strip_leading_dot(".example.com") == "example.com"
    assert strip_leading_dot("example.com") == "example.com"
    assert get_site_hostname("https://Example.COM/path") == "example.com"
    assert get_site_hostname("example.com") == "example.com"
    assert get_site_hostname("") is None


def test_party_type():
    assert determine_party_type(".example.com", SITE) == CookieType.FIRST_PARTY
    assert determine_party_type(".google-analytics.com", SITE) == CookieType.THIRD_PARTY
    assert determine_party_type("", SITE) == CookieType.UNKNOWN
