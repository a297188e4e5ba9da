"""
Consent delivery with retry, a durable local queue and a last-known-consent mirror.

Every consent action is mirrored to a single local slot, then POSTed to the
backend with exponential backoff. Submissions that still fail are appended
to a local queue which ``drain_queue`` re-delivers later (``start`` runs the
drain in the background so new submissions are never blocked by it).
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union
from uuid import UUID

import httpx
from pydantic import ValidationError

from consent_manager.models.consent import (
    ConsentSubmission,
    DeliveryOutcome,
    LastKnownConsent,
    QueuedConsentItem,
)
from consent_manager.services.local_storage import LocalStorage
from consent_manager.services.retry import RetryPolicy, RetryStats, utc_now

logger = logging.getLogger(__name__)

CONSENT_BACKUP_KEY = 'consent_backup'
CONSENT_QUEUE_KEY = 'consent_queue'


class ConsentDeliveryError(Exception):
    """A single delivery attempt was rejected by the backend."""


def consent_url(endpoint: str) -> str:
    """Return the consent submission URL for an API base URL."""
    return f"{endpoint.rstrip('/')}/consent"


def build_choices_from_consent(
    accepted_services: Iterable[str],
    services: Iterable[Dict[str, Any]]
) -> Dict[str, bool]:
    """
    Build the choice set for a consent action.

    Accepted services are true, every other configured service is false,
    and required services are always true.

    Args:
        accepted_services: Names of the services the user accepted
        services: Configured services (``{'name': ..., 'required': ...}``)

    Returns:
        Mapping of service name to accepted flag
    """
    services = list(services)
    choices = {name: True for name in accepted_services or []}

    for service in services:
        if service['name'] not in choices and not service.get('required'):
            choices[service['name']] = False

    for service in services:
        if service.get('required'):
            choices[service['name']] = True

    return choices


class ConsentDeliveryManager:
    """
    Delivers consent choice sets to the backend API.

    Queue and mirror are read, mutated and written back whole under a lock,
    one operation at a time.
    """

    def __init__(
        self,
        storage: LocalStorage,
        client: Optional[httpx.AsyncClient] = None,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock=utc_now,
    ):
        """
        Initialize the delivery manager.

        Args:
            storage: Local storage holding the queue and the mirror
            client: HTTP client (created and owned by the manager when omitted)
            policy: Retry policy
            sleep: Awaitable used to wait between attempts
            clock: Callable returning the current aware datetime
        """
        self.storage = storage
        self.policy = policy or RetryPolicy()
        self.backoff = self.policy.backoff()
        self.sleep = sleep
        self.clock = clock
        self.stats = RetryStats()
        self._client = client
        self._owns_client = client is None
        self._lock = asyncio.Lock()
        self._drain_task: Optional[asyncio.Task] = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self):
        """Close the HTTP client if the manager created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    # Storage helpers

    def _read_queue(self) -> List[Dict[str, Any]]:
        raw = self.storage.get(CONSENT_QUEUE_KEY)
        if not raw:
            return []
        try:
            queue = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Discarding unreadable consent queue: {e}")
            return []
        return queue if isinstance(queue, list) else []

    def _write_queue(self, queue: List[Dict[str, Any]]):
        self.storage.set(CONSENT_QUEUE_KEY, json.dumps(queue))

    async def _store_last_consent(self, submission: ConsentSubmission):
        record = LastKnownConsent(
            site_id=str(submission.site_id),
            user_id=submission.user_id,
            choices=submission.choices,
            timestamp=self.clock(),
        )
        async with self._lock:
            self.storage.set(CONSENT_BACKUP_KEY, record.model_dump_json(by_alias=True))

    async def _enqueue(self, payload: Dict[str, Any]):
        item = QueuedConsentItem(
            site_id=payload['siteId'],
            user_id=payload.get('userId'),
            choices=payload['choices'],
            queued_at=self.clock(),
        )
        async with self._lock:
            queue = self._read_queue()
            queue.append(item.model_dump(mode='json', by_alias=True))
            self._write_queue(queue)
        logger.info(f"Queued failed consent for site {payload['siteId']} for later retry")

    def get_last_consent(self) -> Optional[LastKnownConsent]:
        """Return the most recent consent action, if any."""
        raw = self.storage.get(CONSENT_BACKUP_KEY)
        if not raw:
            return None
        try:
            return LastKnownConsent.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Failed to read last known consent: {e}")
            return None

    def get_queue(self) -> List[QueuedConsentItem]:
        """Return the queued consent items in insertion order."""
        return [QueuedConsentItem.model_validate(item) for item in self._read_queue()]

    # Delivery

    async def _attempt(self, url: str, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        response = await asyncio.wait_for(
            self.client.post(url, json=payload, timeout=self.policy.attempt_timeout),
            timeout=self.policy.attempt_timeout,
        )
        if not response.is_success:
            raise ConsentDeliveryError(f"HTTP {response.status_code}: {response.reason_phrase}")
        try:
            return response.json()
        except ValueError:
            return None

    async def deliver(self, endpoint: str, payload: Dict[str, Any]) -> DeliveryOutcome:
        """
        POST a consent payload, retrying with exponential backoff.

        Transport errors, timeouts and non-2xx responses are retried up to
        ``policy.max_retries`` more times. Never raises for delivery failures.

        Args:
            endpoint: API base URL
            payload: JSON body ``{siteId, userId, choices}``

        Returns:
            DeliveryOutcome with the number of attempts made
        """
        url = consent_url(endpoint)
        max_attempts = self.policy.max_attempts
        last_error = None

        for attempt in range(max_attempts):
            try:
                data = await self._attempt(url, payload)
            except (httpx.HTTPError, asyncio.TimeoutError, ConsentDeliveryError) as e:
                last_error = str(e) or e.__class__.__name__
                logger.warning(
                    f"Consent delivery failed on attempt {attempt + 1}/{max_attempts}: {last_error}"
                )
                if attempt < self.policy.max_retries:
                    delay = self.backoff.calculate_delay(attempt)
                    logger.info(f"Retrying consent delivery in {delay:.2f}s...")
                    await self.sleep(delay)
                continue

            if attempt > 0:
                logger.info(f"Consent delivery succeeded on attempt {attempt + 1}/{max_attempts}")
            self.stats.record_success(attempt)
            return DeliveryOutcome(success=True, data=data, attempts=attempt + 1)

        logger.error(f"Consent delivery failed after {max_attempts} attempts: {last_error}")
        self.stats.record_failure(max_attempts)
        return DeliveryOutcome(success=False, error=last_error, attempts=max_attempts)

    async def submit(
        self,
        endpoint: str,
        site_id: Union[str, UUID],
        user_id: Optional[str],
        choices: Dict[str, bool],
    ) -> DeliveryOutcome:
        """
        Record a consent action and deliver it to the backend.

        Args:
            endpoint: API base URL
            site_id: Site UUID
            user_id: User identifier, None for anonymous visitors
            choices: Category key to accepted flag

        Returns:
            DeliveryOutcome; ``queued`` is set when delivery failed for good

        Raises:
            ValidationError: If site_id is not a UUID or choices are not booleans
        """
        submission = ConsentSubmission(site_id=site_id, user_id=user_id, choices=choices)
        payload = submission.model_dump(mode='json', by_alias=True)

        await self._store_last_consent(submission)

        outcome = await self.deliver(endpoint, payload)
        if not outcome.success:
            await self._enqueue(payload)
            outcome = outcome.model_copy(update={'queued': True})
        return outcome

    async def drain_queue(self, endpoint: str) -> Dict[str, int]:
        """
        Re-deliver every queued item, one at a time, in insertion order.

        Each item gets a fresh retry budget and is removed only when its own
        delivery succeeds. Items queued while the drain runs are kept.

        Args:
            endpoint: API base URL

        Returns:
            ``{'delivered': n, 'remaining': m}``
        """
        async with self._lock:
            snapshot = self._read_queue()

        if not snapshot:
            return {'delivered': 0, 'remaining': 0}

        logger.info(f"Processing {len(snapshot)} queued consent(s)...")

        delivered = []
        for item in snapshot:
            payload = {
                'siteId': item.get('siteId'),
                'userId': item.get('userId'),
                'choices': item.get('choices', {}),
            }
            outcome = await self.deliver(endpoint, payload)
            if outcome.success:
                delivered.append(item)

        async with self._lock:
            queue = self._read_queue()
            for item in delivered:
                if item in queue:
                    queue.remove(item)
            self._write_queue(queue)

        logger.info(
            f"Processed consent queue: {len(delivered)} successful, {len(queue)} remaining"
        )
        return {'delivered': len(delivered), 'remaining': len(queue)}

    def start(self, endpoint: str) -> asyncio.Task:
        """
        Start draining the queue in the background.

        Returns:
            The drain task
        """
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.create_task(self.drain_queue(endpoint))
            self._drain_task.add_done_callback(self._on_drain_done)
        return self._drain_task

    @staticmethod
    def _on_drain_done(task: asyncio.Task):
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Error processing consent queue: {error}")
