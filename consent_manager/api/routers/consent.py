"""
Consent record endpoints.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from consent_manager.api.dependencies import get_consent_repository, get_site_repository
from consent_manager.api.errors.exceptions import NotFoundException
from consent_manager.models.consent import (
    ConsentCreatedResponse,
    ConsentRecord,
    ConsentSubmission,
    UserConsentRecordsResponse,
)
from consent_manager.services.consent_repository import DEFAULT_RECORD_LIMIT, ConsentRepository
from consent_manager.services.site_repository import SiteRepository

router = APIRouter()


@router.post(
    "/consent",
    response_model=ConsentCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record consent"
)
async def create_consent(
    submission: ConsentSubmission,
    sites: SiteRepository = Depends(get_site_repository),
    records: ConsentRepository = Depends(get_consent_repository)
):
    """
    Record the consent choices of a visitor.

    Body: ``{siteId, userId, choices}``. Returns 404 when the site is unknown.
    """
    if not await sites.get_site(submission.site_id):
        raise NotFoundException("Site", submission.site_id)

    record = await records.create_record(submission.site_id, submission.user_id, submission.choices)
    return ConsentCreatedResponse(message="Consent recorded successfully", record=record)


@router.get(
    "/consent/user/{user_id}",
    response_model=UserConsentRecordsResponse,
    summary="List consent records of a user"
)
async def list_user_consent(
    user_id: str,
    site_id: Optional[UUID] = Query(None, alias="siteId"),
    records: ConsentRepository = Depends(get_consent_repository)
):
    return UserConsentRecordsResponse(records=await records.list_for_user(user_id, site_id))


@router.get(
    "/consent/{site_id}",
    response_model=List[ConsentRecord],
    summary="List consent records of a site"
)
async def list_site_consent(
    site_id: UUID,
    user_id: Optional[str] = Query(None, alias="userId"),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    limit: int = Query(DEFAULT_RECORD_LIMIT, ge=1, le=10000),
    sites: SiteRepository = Depends(get_site_repository),
    records: ConsentRepository = Depends(get_consent_repository)
):
    """
    List consent records of a site, newest first.

    ``startDate`` and ``endDate`` are inclusive whole days.
    """
    if not await sites.get_site(site_id):
        raise NotFoundException("Site", site_id)

    return await records.list_for_site(
        site_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        limit=limit
    )
