"""
Site configuration endpoints.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends

from consent_manager.api.dependencies import get_site_repository
from consent_manager.api.errors.exceptions import NotFoundException, ValidationException
from consent_manager.models.site import (
    SiteConfigResponse,
    SiteConfigUpdate,
    SiteConfigUpdatedResponse,
    validate_config_structure,
)
from consent_manager.services.config_translator import admin_config_to_klaro
from consent_manager.services.site_repository import SiteRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/config/{site_id}", response_model=SiteConfigResponse, summary="Get site configuration")
async def get_site_config(
    site_id: UUID,
    repo: SiteRepository = Depends(get_site_repository)
):
    site = await repo.get_site(site_id)
    if not site:
        raise NotFoundException("Site", site_id)
    return SiteConfigResponse(site_id=site.id, config=site.config or {})


@router.put(
    "/config/{site_id}",
    response_model=SiteConfigUpdatedResponse,
    summary="Replace site configuration"
)
async def update_site_config(
    site_id: UUID,
    update: SiteConfigUpdate,
    repo: SiteRepository = Depends(get_site_repository)
):
    """
    Replace the configuration of a site.

    The configuration must be an object; its structure is validated and all
    problems are reported together in ``details.errors``.
    """
    config = update.config
    if not isinstance(config, dict) or not config:
        raise ValidationException("Invalid config format. Expected an object.")

    if not await repo.get_site(site_id):
        raise NotFoundException("Site", site_id)

    errors = validate_config_structure(config)
    if errors:
        raise ValidationException("Invalid config structure", details={"errors": errors})

    site = await repo.update_site_config(site_id, config)
    if not site:
        raise NotFoundException("Site", site_id)

    logger.info(
        f"Config updated for site {site_id}: "
        f"{len(config.get('languages') or [])} languages, "
        f"{len(config.get('categories') or {})} categories"
    )
    return SiteConfigUpdatedResponse(
        message="Configuration updated successfully",
        site_id=site.id,
        config=site.config,
    )


@router.get("/config/{site_id}/klaro", summary="Get site configuration as a Klaro config")
async def get_klaro_config(
    site_id: UUID,
    repo: SiteRepository = Depends(get_site_repository)
):
    site = await repo.get_site(site_id)
    if not site:
        raise NotFoundException("Site", site_id)
    return admin_config_to_klaro(site.config or {})
