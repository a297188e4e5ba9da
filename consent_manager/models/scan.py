"""
Scan-related data models.
"""

from datetime import datetime, timezone
from typing import List, Dict, Optional
from enum import Enum
from uuid import UUID

from pydantic import Field

from consent_manager.models.common import CamelModel, FrozenCamelModel


class CookieCategory(str, Enum):
    """Cookie category enumeration."""
    NECESSARY = "necessary"
    ANALYTICS = "analytics"
    MARKETING = "marketing"
    FUNCTIONAL = "functional"
    PREFERENCES = "preferences"
    UNCLASSIFIED = "unclassified"


class CookieType(str, Enum):
    """Cookie type enumeration."""
    FIRST_PARTY = "First Party"
    THIRD_PARTY = "Third Party"
    UNKNOWN = "unknown"


class RawCookie(CamelModel):
    """Cookie record as returned by the browser driver."""
    name: str
    value: str = ""
    domain: str = ""
    path: str = "/"
    expires: float = Field(default=-1, description="Unix timestamp, -1 for session cookies")
    http_only: bool = False
    secure: bool = False
    same_site: Optional[str] = None


class CookieObservation(FrozenCamelModel):
    """A classified cookie found during a scan."""
    name: str = Field(..., description="Cookie name")
    value: str = Field(..., description="Cookie value truncated to 50 characters")
    domain: str = Field(..., description="Cookie domain")
    path: str = Field(default="/", description="Cookie path")
    expires: float = Field(default=-1, description="Unix timestamp, -1 for session cookies")
    size: int = Field(..., ge=0, description="Length of the original cookie value")
    http_only: bool = Field(default=False, description="HttpOnly flag")
    secure: bool = Field(default=False, description="Secure flag")
    same_site: Optional[str] = Field(None, description="SameSite attribute")
    category: CookieCategory = Field(..., description="Derived cookie category")


class ScanStats(FrozenCamelModel):
    """Statistics derived from the cookie list of a scan."""
    total: int = Field(default=0, ge=0)
    by_category: Dict[str, int] = Field(default_factory=dict)
    first_party: int = Field(default=0, ge=0)
    third_party: int = Field(default=0, ge=0)


class ScanResult(FrozenCamelModel):
    """Outcome of a single scan invocation."""
    site_url: str = Field(..., description="Scanned URL")
    scanned_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    success: bool = Field(..., description="Whether the scan completed")
    error: Optional[str] = Field(None, description="Error message if the scan failed")
    cookies: List[CookieObservation] = Field(default_factory=list)
    cookies_by_category: Dict[CookieCategory, List[CookieObservation]] = Field(default_factory=dict)
    stats: ScanStats = Field(default_factory=ScanStats)
    request_count: int = Field(default=0, ge=0)

    @classmethod
    def failed(cls, site_url: str, error: str, scanned_at: Optional[datetime] = None) -> "ScanResult":
        """Build a failed scan result with empty cookie, category and stat structures."""
        return cls(
            site_url=site_url,
            scanned_at=scanned_at or datetime.now(timezone.utc),
            success=False,
            error=error,
        )


class CategorySuggestion(CamelModel):
    """Suggested consent category for the admin, with cookie evidence."""
    key: str
    name: str
    description: str
    required: bool = False
    enabled: bool = False
    cookie_count: int = Field(default=0, ge=0)
    cookies: List[str] = Field(default_factory=list)


class ScanRequest(CamelModel):
    """Request model for scanning a site."""
    site_url: str = Field(..., description="URL to scan (must include protocol)")
    site_id: Optional[UUID] = Field(None, description="Site to store the scan under")


class ScanResponse(CamelModel):
    """Response model for a completed scan."""
    success: bool
    site_url: str
    scanned_at: datetime
    cookies: List[CookieObservation]
    cookies_by_category: Dict[CookieCategory, List[CookieObservation]]
    stats: ScanStats
    category_suggestions: List[CategorySuggestion]
    scan_id: Optional[UUID] = None


class StoredScan(CamelModel):
    """Scan result persisted for a site."""
    id: UUID
    site_id: UUID
    site_url: str
    scanned_at: datetime
    results: ScanResult


class ScanHistoryItem(CamelModel):
    """Summary row of a stored scan."""
    id: UUID
    site_url: str
    scanned_at: datetime
    stats: ScanStats
    cookie_count: int


class ScanHistoryResponse(CamelModel):
    """Scan history for a site."""
    site_id: UUID
    total: int
    scans: List[ScanHistoryItem]


class ScanDeletedResponse(CamelModel):
    """Response for a deleted scan."""
    message: str
    scan_id: UUID
