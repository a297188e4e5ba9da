"""
Tenant and site management endpoints.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from consent_manager.api.dependencies import get_site_repository
from consent_manager.api.errors.exceptions import NotFoundException
from consent_manager.models.site import Site, SiteCreate, Tenant, TenantCreate
from consent_manager.services.site_repository import SiteRepository

router = APIRouter()


@router.post(
    "/tenants",
    response_model=Tenant,
    status_code=status.HTTP_201_CREATED,
    summary="Create tenant"
)
async def create_tenant(
    tenant_data: TenantCreate,
    repo: SiteRepository = Depends(get_site_repository)
):
    return await repo.create_tenant(tenant_data.name)


@router.get("/tenants/{tenant_id}", response_model=Tenant, summary="Get tenant")
async def get_tenant(
    tenant_id: UUID,
    repo: SiteRepository = Depends(get_site_repository)
):
    tenant = await repo.get_tenant(tenant_id)
    if not tenant:
        raise NotFoundException("Tenant", tenant_id)
    return tenant


@router.post(
    "/sites",
    response_model=Site,
    status_code=status.HTTP_201_CREATED,
    summary="Create site"
)
async def create_site(
    site_data: SiteCreate,
    repo: SiteRepository = Depends(get_site_repository)
):
    """
    Register a site for a tenant.

    The initial configuration is validated the same way as ``PUT /config/{siteId}``.
    """
    if not await repo.get_tenant(site_data.tenant_id):
        raise NotFoundException("Tenant", site_data.tenant_id)
    return await repo.create_site(site_data.tenant_id, site_data.domain, site_data.config)


@router.get("/sites/{site_id}", response_model=Site, summary="Get site")
async def get_site(
    site_id: UUID,
    repo: SiteRepository = Depends(get_site_repository)
):
    site = await repo.get_site(site_id)
    if not site:
        raise NotFoundException("Site", site_id)
    return site
