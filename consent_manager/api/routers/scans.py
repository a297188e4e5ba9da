"""
Cookie scan endpoints.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from consent_manager.api.dependencies import (
    get_scan_config,
    get_scan_repository,
    get_scanner,
    get_site_repository,
)
from consent_manager.api.errors.exceptions import (
    NotFoundException,
    ScanFailedException,
    ValidationException,
)
from consent_manager.core.config import ScanConfig
from consent_manager.models.scan import (
    ScanDeletedResponse,
    ScanHistoryResponse,
    ScanRequest,
    ScanResponse,
    StoredScan,
)
from consent_manager.services.scan_repository import ScanRepository
from consent_manager.services.scan_service import validate_scan_url
from consent_manager.services.site_repository import SiteRepository
from consent_manager.services.suggestions import generate_category_suggestions

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/scan", response_model=ScanResponse, summary="Scan a website for cookies")
async def scan_site(
    scan_request: ScanRequest,
    scanner=Depends(get_scanner),
    sites: SiteRepository = Depends(get_site_repository),
    scans: ScanRepository = Depends(get_scan_repository)
):
    """
    Scan a website, categorize its cookies and suggest consent categories.

    When ``siteId`` names an existing site the result is stored and its id
    returned as ``scanId``.
    """
    site_url = scan_request.site_url
    try:
        validate_scan_url(site_url)
    except ValueError:
        raise ValidationException("Invalid URL format", details={"siteUrl": site_url})

    logger.info(f"Starting scan for {site_url}")
    result = await scanner(site_url)

    if not result.success:
        raise ScanFailedException(result.error or "Scan failed", site_url)

    suggestions = generate_category_suggestions(result)

    scan_id: Optional[UUID] = None
    if scan_request.site_id:
        if await sites.get_site(scan_request.site_id):
            stored = await scans.save_scan(scan_request.site_id, result)
            scan_id = stored.id
        else:
            logger.warning(f"Site {scan_request.site_id} not found, scan not saved")

    return ScanResponse(
        success=True,
        site_url=result.site_url,
        scanned_at=result.scanned_at,
        cookies=result.cookies,
        cookies_by_category=result.cookies_by_category,
        stats=result.stats,
        category_suggestions=suggestions,
        scan_id=scan_id,
    )


@router.get("/scan/result/{scan_id}", response_model=StoredScan, summary="Get a stored scan")
async def get_scan_result(
    scan_id: UUID,
    scans: ScanRepository = Depends(get_scan_repository)
):
    scan = await scans.get_scan(scan_id)
    if not scan:
        raise NotFoundException("Scan result", scan_id)
    return scan


@router.get("/scan/{site_id}", response_model=ScanHistoryResponse, summary="Get scan history of a site")
async def get_scan_history(
    site_id: UUID,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    scan_config: ScanConfig = Depends(get_scan_config),
    sites: SiteRepository = Depends(get_site_repository),
    scans: ScanRepository = Depends(get_scan_repository)
):
    if not await sites.get_site(site_id):
        raise NotFoundException("Site", site_id)

    history = await scans.list_for_site(site_id, limit=limit or scan_config.history_limit_default)
    return ScanHistoryResponse(site_id=site_id, total=len(history), scans=history)


@router.delete("/scan/{scan_id}", response_model=ScanDeletedResponse, summary="Delete a stored scan")
async def delete_scan(
    scan_id: UUID,
    scans: ScanRepository = Depends(get_scan_repository)
):
    if not await scans.delete_scan(scan_id):
        raise NotFoundException("Scan result", scan_id)
    return ScanDeletedResponse(message="Scan result deleted successfully", scan_id=scan_id)
