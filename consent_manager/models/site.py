"""
Tenant, site and site configuration models.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field, field_validator

from consent_manager.models.common import CamelModel

HEX_COLOR_RE = re.compile(r'^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$')
LANGUAGE_CODE_RE = re.compile(r'^[a-z]{2,3}$')
VALID_POSITIONS = ('top', 'bottom', 'center')
VALID_LAYOUTS = ('banner', 'modal', 'box')
COLOR_FIELDS = ('primaryColor', 'secondaryColor', 'textColor', 'backgroundColor')


class TenantCreate(CamelModel):
    """Request model for creating a tenant."""
    name: str = Field(..., min_length=1, max_length=255)


class Tenant(CamelModel):
    """Tenant owning one or more sites."""
    id: UUID
    name: str
    created_at: datetime
    updated_at: datetime


class SiteCreate(CamelModel):
    """Request model for creating a site."""
    tenant_id: UUID
    domain: str = Field(..., min_length=1, max_length=255)
    config: Dict[str, Any] = Field(default_factory=dict)

    @field_validator('config')
    @classmethod
    def validate_config(cls, v):
        """Reject malformed site configurations."""
        errors = validate_config_structure(v)
        if errors:
            raise ValueError('; '.join(errors))
        return v


class Site(CamelModel):
    """Site registered for consent management."""
    id: UUID
    tenant_id: UUID
    domain: str
    config: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class SiteConfigResponse(CamelModel):
    """Site configuration as served to the embed client."""
    site_id: UUID
    config: Dict[str, Any]


class SiteConfigUpdate(CamelModel):
    """Request model for replacing a site configuration."""
    config: Optional[Any] = None


class SiteConfigUpdatedResponse(CamelModel):
    """Response for an updated site configuration."""
    message: str
    site_id: UUID
    config: Dict[str, Any]


def validate_config_structure(config: Dict[str, Any]) -> List[str]:
    """
    Validate the structure of an admin-authored site configuration.

    Args:
        config: Configuration object (categories, bannerText, styles, languages)

    Returns:
        List of validation error messages, empty when the config is valid
    """
    errors = []

    banner_text = config.get('bannerText')
    if banner_text:
        if not isinstance(banner_text, dict):
            errors.append('bannerText must be an object')
        elif len(banner_text) == 0:
            errors.append('bannerText must contain at least one language')

    styles = config.get('styles')
    if styles:
        if not isinstance(styles, dict):
            errors.append('styles must be an object')
        else:
            for field in COLOR_FIELDS:
                value = styles.get(field)
                if value and not (isinstance(value, str) and HEX_COLOR_RE.match(value)):
                    errors.append(f'styles.{field} must be a valid hex color')

            if styles.get('position') and styles['position'] not in VALID_POSITIONS:
                errors.append(f"styles.position must be one of: {', '.join(VALID_POSITIONS)}")

            if styles.get('layout') and styles['layout'] not in VALID_LAYOUTS:
                errors.append(f"styles.layout must be one of: {', '.join(VALID_LAYOUTS)}")

    categories = config.get('categories')
    if categories is not None:
        if not isinstance(categories, dict):
            errors.append('categories must be an object')
        elif len(categories) == 0:
            errors.append('categories must contain at least one category')

    languages = config.get('languages')
    if languages is not None:
        if not isinstance(languages, list):
            errors.append('languages must be an array')
        elif len(languages) == 0:
            errors.append('languages array must contain at least one language code')
        else:
            invalid = [
                str(lang) for lang in languages
                if not (isinstance(lang, str) and LANGUAGE_CODE_RE.match(lang))
            ]
            if invalid:
                errors.append(f"Invalid language codes: {', '.join(invalid)}")

    return errors
