"""
Translate admin-authored site configurations into Klaro configurations.

Every function here is total: missing or malformed optional fields are
replaced with defaults instead of raising.
"""

from typing import Any, Dict, List

DEFAULT_LANGUAGES = ['en']

DEFAULT_TEXT = {
    'title': 'Cookie Consent',
    'description': 'We use cookies to enhance your browsing experience.',
    'learnMore': 'Learn more',
    'acceptAll': 'Accept All',
    'saveSettings': 'Save Settings',
    'declineAll': 'Decline All',
    'closeButton': 'Close',
}

DEFAULT_STYLES = {
    'primaryColor': '#3b82f6',
    'secondaryColor': '#1f2937',
    'textColor': '#ffffff',
    'backgroundColor': '#1f2937',
    'borderRadius': '8px',
}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(text: Dict[str, Any], key: str) -> str:
    return text.get(key) or DEFAULT_TEXT[key]


def map_categories_to_services(categories: Any) -> List[Dict[str, Any]]:
    """Map admin categories to Klaro services, one service per category key."""
    services = []
    for key, category in _as_dict(categories).items():
        category = _as_dict(category)
        services.append({
            'name': key,
            'title': category.get('name') or key,
            'description': category.get('description') or '',
            'purposes': [key],
            'required': bool(category.get('required', False)),
            'default': bool(category.get('default') or category.get('enabled') or False),
        })
    return services


def map_banner_text_to_translations(banner_text: Any, languages: List[str]) -> Dict[str, Any]:
    """
    Build Klaro translations for every language.

    Text for a language falls back to the default (first) language, then to
    the built-in English defaults.
    """
    banner_text = _as_dict(banner_text)
    default_text = _as_dict(banner_text.get(languages[0])) if languages else {}
    translations = {}

    for lang in languages:
        text = _as_dict(banner_text.get(lang)) or default_text
        translations[lang] = {
            'consentModal': {
                'title': _text(text, 'title'),
                'description': _text(text, 'description'),
            },
            'consentNotice': {
                'changeDescription': 'There were changes since your last visit, please update your consent.',
                'description': _text(text, 'description'),
                'learnMore': _text(text, 'learnMore'),
            },
            'purposeItem': {
                'service': 'Service',
                'services': 'Services',
            },
            'ok': _text(text, 'acceptAll'),
            'save': _text(text, 'saveSettings'),
            'decline': _text(text, 'declineAll'),
            'close': _text(text, 'closeButton'),
            'acceptAll': _text(text, 'acceptAll'),
            'acceptSelected': _text(text, 'saveSettings'),
            'service': {
                'disableAll': {
                    'title': 'Toggle all services',
                    'description': 'Use this switch to enable/disable all services.',
                },
                'optOut': {
                    'title': '(opt-out)',
                    'description': 'This service is loaded by default (but you can opt out)',
                },
                'required': {
                    'title': '(always required)',
                    'description': 'This service is always required',
                },
                'purposes': 'Purposes',
                'purpose': 'Purpose',
            },
            'poweredBy': 'Powered by Klaro',
        }

    return translations


def map_styles_to_css(styles: Any) -> Dict[str, str]:
    """Map admin styles to CSS custom properties."""
    styles = _as_dict(styles)
    if not styles:
        return {}
    return {
        '--primary-color': styles.get('primaryColor') or DEFAULT_STYLES['primaryColor'],
        '--secondary-color': styles.get('secondaryColor') or DEFAULT_STYLES['secondaryColor'],
        '--text-color': styles.get('textColor') or DEFAULT_STYLES['textColor'],
        '--background-color': styles.get('backgroundColor') or DEFAULT_STYLES['backgroundColor'],
        '--border-radius': styles.get('borderRadius') or DEFAULT_STYLES['borderRadius'],
    }


def should_display_as_modal(styles: Any) -> bool:
    return _as_dict(styles).get('layout') == 'modal'


def get_banner_position(styles: Any) -> str:
    return _as_dict(styles).get('position') or 'bottom'


def _languages(config: Dict[str, Any]) -> List[str]:
    languages = config.get('languages')
    if not isinstance(languages, list):
        return list(DEFAULT_LANGUAGES)
    languages = [lang for lang in languages if isinstance(lang, str) and lang]
    return languages or list(DEFAULT_LANGUAGES)


def admin_config_to_klaro(admin_config: Any) -> Dict[str, Any]:
    """
    Convert an admin site configuration to a Klaro configuration.

    Args:
        admin_config: Site config, bare or wrapped as ``{'config': {...}}``

    Returns:
        Klaro configuration dictionary
    """
    admin_config = _as_dict(admin_config)
    config = _as_dict(admin_config.get('config')) or admin_config
    styles = _as_dict(config.get('styles'))

    languages = _languages(config)

    return {
        'elementID': 'klaro',
        'storageMethod': 'cookie',
        'cookieName': 'klaro',
        'cookieExpiresAfterDays': 365,
        'privacyPolicy': '/privacy',
        'default': False,
        'mustConsent': bool(styles.get('blockPageInteraction', False)),
        'acceptAll': True,
        'hideDeclineAll': False,
        'hideLearnMore': False,
        'noticeAsModal': should_display_as_modal(styles),
        'lang': languages[0],
        'languages': languages,
        'translations': map_banner_text_to_translations(config.get('bannerText'), languages),
        'services': map_categories_to_services(config.get('categories')),
        'styling': {
            'theme': ['light'],
        },
    }
