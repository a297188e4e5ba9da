"""
Tests for admin config to Klaro config translation.
"""

from consent_manager.services.config_translator import (
    DEFAULT_TEXT,
    admin_config_to_klaro,
    get_banner_position,
    map_categories_to_services,
    map_styles_to_css,
    should_display_as_modal,
)

ADMIN_CONFIG = {
    'categories': {
        'necessary': {'name': 'Necessary', 'description': 'Required', 'required': True, 'enabled': True},
        'analytics': {'name': 'Analytics', 'description': 'Stats', 'required': False, 'enabled': False},
    },
    'bannerText': {
        'en': {'title': 'Cookies!', 'description': 'We use cookies.', 'acceptAll': 'OK'},
        'de': {'title': 'Kekse!'},
    },
    'styles': {'layout': 'modal', 'position': 'top', 'blockPageInteraction': True},
    'languages': ['en', 'de', 'fr'],
}


def test_full_translation():
    klaro = admin_config_to_klaro(ADMIN_CONFIG)

    assert klaro['elementID'] == 'klaro'
    assert klaro['cookieExpiresAfterDays'] == 365
    assert klaro['mustConsent'] is True
    assert klaro['noticeAsModal'] is True
    assert klaro['lang'] == 'en'
    assert klaro['languages'] == ['en', 'de', 'fr']
    assert [s['name'] for s in klaro['services']] == ['necessary', 'analytics']
    assert klaro['services'][0]['required'] is True
    assert klaro['services'][0]['default'] is True
    assert klaro['services'][1]['purposes'] == ['analytics']

    en = klaro['translations']['en']
    assert en['consentModal']['title'] == 'Cookies!'
    assert en['ok'] == 'OK'
    assert en['decline'] == DEFAULT_TEXT['declineAll']

    assert klaro['translations']['de']['consentModal']['title'] == 'Kekse!'
    # Missing languages fall back to the default language text
    assert klaro['translations']['fr']['consentModal']['title'] == 'Cookies!'


def test_wrapped_config_is_unwrapped():
    assert admin_config_to_klaro({'config': ADMIN_CONFIG})['languages'] == ['en', 'de', 'fr']


def test_minimal_and_malformed_configs_use_defaults():
    for admin_config in ({}, None, 'not a config', {'languages': []}, {'languages': 'en'}):
        klaro = admin_config_to_klaro(admin_config)
        assert klaro['lang'] == 'en'
        assert klaro['languages'] == ['en']
        assert klaro['services'] == []
        assert klaro['mustConsent'] is False
        assert klaro['noticeAsModal'] is False
        assert klaro['translations']['en']['consentModal']['title'] == DEFAULT_TEXT['title']


def test_category_without_name_uses_key():
    services = map_categories_to_services({'marketing': {}})

    assert services == [{
        'name': 'marketing',
        'title': 'marketing',
        'description': '',
        'purposes': ['marketing'],
        'required': False,
        'default': False,
    }]


def test_styles_helpers():
    assert map_styles_to_css({}) == {}
    css = map_styles_to_css({'primaryColor': '#000000'})
    assert css['--primary-color'] == '#000000'
    assert css['--border-radius'] == '8px'

    assert should_display_as_modal({'layout': 'banner'}) is False
    assert get_banner_position({}) == 'bottom'
    assert get_banner_position({'position': 'top'}) == 'top'
