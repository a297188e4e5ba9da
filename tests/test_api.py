"""
API endpoint tests with in-memory repositories and a fake scanner.
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

import pytest
from httpx import ASGITransport, AsyncClient

from consent_manager.api.dependencies import (
    get_consent_repository,
    get_scan_config,
    get_scan_repository,
    get_scanner,
    get_site_repository,
)
from consent_manager.api.main import create_app
from consent_manager.core.config import ScanConfig
from consent_manager.models.consent import ConsentRecord, SiteSummary, UserConsentRecord
from consent_manager.models.scan import RawCookie, ScanHistoryItem, ScanResult, StoredScan
from consent_manager.models.site import Site, Tenant
from consent_manager.services.scan_service import build_scan_result

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
MISSING = "99999999-9999-4999-8999-999999999999"


class FakeSiteRepository:
    def __init__(self):
        self.tenants = {}
        self.sites = {}

    async def create_tenant(self, name):
        tenant = Tenant(id=uuid4(), name=name, created_at=NOW, updated_at=NOW)
        self.tenants[tenant.id] = tenant
        return tenant

    async def get_tenant(self, tenant_id):
        return self.tenants.get(UUID(str(tenant_id)))

    async def create_site(self, tenant_id, domain, config):
        site = Site(id=uuid4(), tenant_id=tenant_id, domain=domain, config=config, created_at=NOW, updated_at=NOW)
        self.sites[site.id] = site
        return site

    async def get_site(self, site_id):
        return self.sites.get(UUID(str(site_id)))

    async def update_site_config(self, site_id, config):
        site = await self.get_site(site_id)
        if not site:
            return None
        updated = site.model_copy(update={'config': config})
        self.sites[updated.id] = updated
        return updated


class FakeConsentRepository:
    def __init__(self, sites):
        self.sites = sites
        self.records = []

    async def create_record(self, site_id, user_id, choices):
        record = ConsentRecord(id=uuid4(), site_id=site_id, user_id=user_id, choices=choices, timestamp=NOW)
        self.records.append(record)
        return record

    async def list_for_site(self, site_id, user_id=None, start_date=None, end_date=None, limit=1000):
        records = [r for r in self.records if r.site_id == site_id and (not user_id or r.user_id == user_id)]
        return records[:limit]

    async def list_for_user(self, user_id, site_id=None):
        return [
            UserConsentRecord(
                **r.model_dump(),
                site=SiteSummary(id=r.site_id, domain=self.sites.sites[r.site_id].domain),
            )
            for r in self.records
            if r.user_id == user_id and (not site_id or r.site_id == site_id)
        ]


class FakeScanRepository:
    def __init__(self):
        self.scans = {}

    async def save_scan(self, site_id, result):
        stored = StoredScan(
            id=uuid4(), site_id=site_id, site_url=result.site_url, scanned_at=result.scanned_at, results=result
        )
        self.scans[stored.id] = stored
        return stored

    async def get_scan(self, scan_id):
        return self.scans.get(scan_id)

    async def list_for_site(self, site_id, limit=10):
        return [
            ScanHistoryItem(
                id=s.id,
                site_url=s.site_url,
                scanned_at=s.scanned_at,
                stats=s.results.stats,
                cookie_count=len(s.results.cookies),
            )
            for s in self.scans.values()
            if s.site_id == site_id
        ][:limit]

    async def delete_scan(self, scan_id):
        return self.scans.pop(scan_id, None) is not None


async def fake_scanner(site_url):
    if "unreachable" in site_url:
        return ScanResult.failed(site_url, "net::ERR_NAME_NOT_RESOLVED")
    return build_scan_result(site_url, [
        RawCookie(name='_ga', value='GA1.2.3', domain='.example.com'),
        RawCookie(name='sid', value='abc', domain='example.com'),
    ])


@pytest.fixture
def repos():
    sites = FakeSiteRepository()
    return {
        'sites': sites,
        'consent': FakeConsentRepository(sites),
        'scans': FakeScanRepository(),
    }


@pytest.fixture
def app(repos):
    app = create_app()
    app.dependency_overrides[get_site_repository] = lambda: repos['sites']
    app.dependency_overrides[get_consent_repository] = lambda: repos['consent']
    app.dependency_overrides[get_scan_repository] = lambda: repos['scans']
    app.dependency_overrides[get_scanner] = lambda: fake_scanner
    app.dependency_overrides[get_scan_config] = lambda: ScanConfig(history_limit_default=10)
    return app


def client_for(app):
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


async def create_site(client, config=None):
    tenant = (await client.post("/tenants", json={"name": "Acme"})).json()
    response = await client.post(
        "/sites", json={"tenantId": tenant["id"], "domain": "example.com", "config": config or {}}
    )
    assert response.status_code == 201
    return response.json()


@pytest.mark.asyncio
async def test_health(app):
    async with client_for(app) as client:
        response = await client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "consent-manager"
    assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
async def test_tenant_and_site_lifecycle(app):
    async with client_for(app) as client:
        site = await create_site(client)
        fetched = await client.get(f"/sites/{site['id']}")
        tenant = await client.get(f"/tenants/{site['tenantId']}")

    assert fetched.status_code == 200
    assert fetched.json()["domain"] == "example.com"
    assert tenant.json()["name"] == "Acme"


@pytest.mark.asyncio
async def test_site_for_unknown_tenant_is_404(app):
    async with client_for(app) as client:
        response = await client.post("/sites", json={"tenantId": MISSING, "domain": "example.com"})

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "NOT_FOUND"
    assert error["message"] == "Tenant not found"
    assert error["request_id"]


@pytest.mark.asyncio
async def test_malformed_uuid_is_400(app):
    async with client_for(app) as client:
        response = await client.get("/sites/not-a-uuid")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_config_update_validation(app):
    async with client_for(app) as client:
        site = await create_site(client)
        url = f"/config/{site['id']}"

        not_object = await client.put(url, json={"config": ["en"]})
        invalid = await client.put(url, json={"config": {"languages": [], "styles": {"position": "left"}}})
        missing = await client.put(f"/config/{MISSING}", json={"config": {"languages": ["en"]}})
        valid = await client.put(url, json={"config": {"languages": ["en", "de"]}})
        fetched = await client.get(url)

    assert not_object.status_code == 400
    assert not_object.json()["error"]["message"] == "Invalid config format. Expected an object."

    assert invalid.status_code == 400
    error = invalid.json()["error"]
    assert error["message"] == "Invalid config structure"
    assert len(error["details"]["errors"]) == 2

    assert missing.status_code == 404

    assert valid.status_code == 200
    assert valid.json()["message"] == "Configuration updated successfully"
    assert fetched.json() == {"siteId": site["id"], "config": {"languages": ["en", "de"]}}


@pytest.mark.asyncio
async def test_klaro_config(app):
    config = {
        "categories": {"necessary": {"name": "Necessary", "required": True}},
        "styles": {"layout": "modal"},
        "languages": ["de"],
    }
    async with client_for(app) as client:
        site = await create_site(client, config)
        response = await client.get(f"/config/{site['id']}/klaro")

    assert response.status_code == 200
    klaro = response.json()
    assert klaro["lang"] == "de"
    assert klaro["noticeAsModal"] is True
    assert klaro["services"][0]["name"] == "necessary"


@pytest.mark.asyncio
async def test_consent_recording_and_listing(app):
    async with client_for(app) as client:
        site = await create_site(client)
        body = {"siteId": site["id"], "userId": "user-1", "choices": {"necessary": True, "analytics": False}}

        created = await client.post("/consent", json=body)
        by_site = await client.get(f"/consent/{site['id']}", params={"userId": "user-1"})
        by_user = await client.get("/consent/user/user-1")

    assert created.status_code == 201
    assert created.json()["message"] == "Consent recorded successfully"
    assert created.json()["record"]["choices"] == {"necessary": True, "analytics": False}

    assert len(by_site.json()) == 1
    assert by_user.json()["records"][0]["site"]["domain"] == "example.com"


@pytest.mark.asyncio
async def test_consent_errors(app):
    async with client_for(app) as client:
        unknown_site = await client.post("/consent", json={"siteId": MISSING, "choices": {"necessary": True}})
        bad_choices = await client.post("/consent", json={"siteId": MISSING, "choices": {"necessary": "yes"}})
        unknown_list = await client.get(f"/consent/{MISSING}")

    assert unknown_site.status_code == 404
    assert bad_choices.status_code == 400
    assert bad_choices.json()["error"]["details"]["errors"]
    assert unknown_list.status_code == 404


@pytest.mark.asyncio
async def test_scan_with_site_is_stored(app):
    async with client_for(app) as client:
        site = await create_site(client)
        response = await client.post("/scan", json={"siteUrl": "https://example.com", "siteId": site["id"]})
        data = response.json()

        result = await client.get(f"/scan/result/{data['scanId']}")
        history = await client.get(f"/scan/{site['id']}")
        deleted = await client.delete(f"/scan/{data['scanId']}")
        deleted_again = await client.delete(f"/scan/{data['scanId']}")

    assert response.status_code == 200
    assert data["success"] is True
    assert data["stats"]["total"] == 2
    assert set(data["cookiesByCategory"]) == {"analytics", "necessary"}
    assert [s["key"] for s in data["categorySuggestions"]] == ["necessary", "analytics"]

    assert result.status_code == 200
    assert result.json()["results"]["stats"]["firstParty"] == 2

    assert history.json()["total"] == 1
    assert history.json()["scans"][0]["cookieCount"] == 2

    assert deleted.json()["message"] == "Scan result deleted successfully"
    assert deleted_again.status_code == 404


@pytest.mark.asyncio
async def test_scan_without_site_is_not_stored(app, repos):
    async with client_for(app) as client:
        response = await client.post("/scan", json={"siteUrl": "https://example.com"})

    assert response.status_code == 200
    assert response.json()["scanId"] is None
    assert repos['scans'].scans == {}


@pytest.mark.asyncio
async def test_scan_rejects_invalid_url(app):
    async with client_for(app) as client:
        response = await client.post("/scan", json={"siteUrl": "example.com"})

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid URL format"


@pytest.mark.asyncio
async def test_failed_scan_is_500(app):
    async with client_for(app) as client:
        response = await client.post("/scan", json={"siteUrl": "https://unreachable.test"})

    assert response.status_code == 500
    error = response.json()["error"]
    assert error["code"] == "SCAN_FAILED"
    assert error["message"] == "net::ERR_NAME_NOT_RESOLVED"
