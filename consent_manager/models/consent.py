"""
Consent data models.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field, StrictBool, field_validator

from consent_manager.models.common import CamelModel


class ConsentSubmission(CamelModel):
    """Consent choices sent by the embed client: ``{siteId, userId, choices}``."""
    site_id: UUID = Field(..., description="Site UUID")
    user_id: Optional[str] = Field(None, description="User identifier, null for anonymous visitors")
    choices: Dict[str, StrictBool] = Field(..., description="Category key to accepted flag")

    @field_validator('user_id')
    @classmethod
    def validate_user_id(cls, v):
        """userId must be a non-empty string or null."""
        if v is not None and not v.strip():
            raise ValueError('userId must be a non-empty string or null')
        return v


class ConsentRecord(CamelModel):
    """Persisted consent record."""
    id: UUID
    site_id: UUID
    user_id: Optional[str] = None
    choices: Dict[str, bool]
    timestamp: datetime


class SiteSummary(CamelModel):
    """Minimal site reference attached to user consent records."""
    id: UUID
    domain: str


class UserConsentRecord(ConsentRecord):
    """Consent record with the site it belongs to."""
    site: Optional[SiteSummary] = None


class ConsentCreatedResponse(CamelModel):
    """Response for a recorded consent."""
    message: str
    record: ConsentRecord


class UserConsentRecordsResponse(CamelModel):
    """Consent records of a single user."""
    records: List[UserConsentRecord]


class QueuedConsentItem(CamelModel):
    """Consent submission that failed delivery and awaits a drain pass."""
    site_id: str
    user_id: Optional[str] = None
    choices: Dict[str, bool]
    queued_at: datetime


class LastKnownConsent(CamelModel):
    """Single-slot mirror of the most recent consent action."""
    site_id: str
    user_id: Optional[str] = None
    choices: Dict[str, bool]
    timestamp: datetime


class DeliveryOutcome(CamelModel):
    """Result of a consent delivery with retries."""
    success: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    attempts: int = 0
    queued: bool = False
