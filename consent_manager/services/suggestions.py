"""
Consent category suggestions derived from a cookie scan.
"""

from typing import List, NamedTuple

from consent_manager.models.scan import CategorySuggestion, CookieCategory, ScanResult


class _CategoryInfo(NamedTuple):
    name: str
    description: str


CATEGORY_INFO = {
    CookieCategory.NECESSARY: _CategoryInfo(
        'Necessary',
        'Essential cookies required for the website to function properly.',
    ),
    CookieCategory.ANALYTICS: _CategoryInfo(
        'Analytics',
        'Cookies used to analyze site usage and improve user experience.',
    ),
    CookieCategory.MARKETING: _CategoryInfo(
        'Marketing',
        'Cookies used for advertising and marketing purposes.',
    ),
    CookieCategory.FUNCTIONAL: _CategoryInfo(
        'Functional',
        'Cookies that enable enhanced functionality and personalization.',
    ),
    CookieCategory.PREFERENCES: _CategoryInfo(
        'Preferences',
        'Cookies that remember your preferences and settings.',
    ),
}

# Optional categories, in the order they are suggested after "necessary".
OPTIONAL_CATEGORIES = (
    CookieCategory.ANALYTICS,
    CookieCategory.MARKETING,
    CookieCategory.FUNCTIONAL,
    CookieCategory.PREFERENCES,
)


def _suggestion(category: CookieCategory, cookie_names: List[str], required: bool) -> CategorySuggestion:
    info = CATEGORY_INFO[category]
    return CategorySuggestion(
        key=category.value,
        name=info.name,
        description=info.description,
        required=required,
        enabled=required,
        cookie_count=len(cookie_names),
        cookies=cookie_names,
    )


def generate_category_suggestions(scan_result: ScanResult) -> List[CategorySuggestion]:
    """
    Suggest the consent categories a site should offer.

    "necessary" is always suggested (required and enabled) once the scan
    found anything. Optional categories are suggested only when cookies were
    found for them. Unclassified cookies are never suggested.

    Args:
        scan_result: Result of ``scan_website``

    Returns:
        Suggestions in fixed order, empty for failed or empty scans
    """
    grouped = scan_result.cookies_by_category
    if not scan_result.success or not grouped:
        return []

    necessary = [c.name for c in grouped.get(CookieCategory.NECESSARY, [])]
    suggestions = [_suggestion(CookieCategory.NECESSARY, necessary, required=True)]

    for category in OPTIONAL_CATEGORIES:
        names = [c.name for c in grouped.get(category, [])]
        if names:
            suggestions.append(_suggestion(category, names, required=False))

    return suggestions
