"""
Data models for the consent management platform.
"""

from .scan import (
    CookieCategory,
    CookieType,
    RawCookie,
    CookieObservation,
    ScanStats,
    ScanResult,
    CategorySuggestion,
)
from .consent import (
    ConsentSubmission,
    ConsentRecord,
    QueuedConsentItem,
    LastKnownConsent,
    DeliveryOutcome,
)
from .site import Tenant, Site, validate_config_structure

__all__ = [
    'CookieCategory',
    'CookieType',
    'RawCookie',
    'CookieObservation',
    'ScanStats',
    'ScanResult',
    'CategorySuggestion',
    'ConsentSubmission',
    'ConsentRecord',
    'QueuedConsentItem',
    'LastKnownConsent',
    'DeliveryOutcome',
    'Tenant',
    'Site',
    'validate_config_structure',
]
