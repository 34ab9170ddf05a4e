"""
Endpoint fallback orchestration.

Every logical operation knows several upstream endpoints that might serve it,
grouped in tiers (order2 -> legacy form -> JSON). The orchestrator walks them
in order and stops at the first one whose body decodes to a successful,
non-empty envelope.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from backoffice.integrations.clients.real_http.transport import TransportResult, UpstreamTransport
from backoffice.integrations.contracts.envelope import Envelope
from backoffice.integrations.policy.response_decoder import ResponseDecoder, is_empty_result

logger = logging.getLogger(__name__)


class RequestStyle(str, Enum):
    LEGACY_FORM = "legacy_form"
    JSON_GET = "json_get"
    JSON_POST = "json_post"


@dataclass(frozen=True)
class EndpointCandidate:
    path: str
    style: RequestStyle = RequestStyle.LEGACY_FORM
    form: Optional[Dict[str, str]] = None
    params: Optional[Dict[str, str]] = None
    payload: Any = None


@dataclass
class FallbackTier:
    name: str
    candidates: List[EndpointCandidate] = field(default_factory=list)


def legacy_tier(name: str, paths: Sequence[str], form: Optional[Dict[str, str]] = None) -> FallbackTier:
    return FallbackTier(name, [EndpointCandidate(path, RequestStyle.LEGACY_FORM, form=form) for path in paths])


def json_get_tier(name: str, paths: Sequence[str], params: Optional[Dict[str, str]] = None) -> FallbackTier:
    return FallbackTier(name, [EndpointCandidate(path, RequestStyle.JSON_GET, params=params) for path in paths])


def json_post_tier(name: str, paths: Sequence[str], payload: Any) -> FallbackTier:
    return FallbackTier(name, [EndpointCandidate(path, RequestStyle.JSON_POST, payload=payload) for path in paths])


class DetailCircuitBreaker:
    """One-way latch: once tripped, order-detail enrichment is skipped until reset()."""

    def __init__(self) -> None:
        self._open = False
        self.reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self._open

    def trip(self, reason: str) -> None:
        if not self._open:
            logger.warning("Order details disabled: %s", reason)
        self._open = True
        self.reason = reason

    def reset(self) -> None:
        self._open = False
        self.reason = None


def is_usable(envelope: Envelope) -> bool:
    return envelope.success and not is_empty_result(envelope.data)


def any_response(envelope: Envelope) -> bool:
    """Accept whatever the first 2xx endpoint answered (write operations)."""
    return True


class EndpointFallback:
    def __init__(self, transport: UpstreamTransport, decoder: Optional[ResponseDecoder] = None) -> None:
        self.transport = transport
        self.decoder = decoder or ResponseDecoder()

    async def send(self, candidate: EndpointCandidate) -> TransportResult:
        if candidate.style is RequestStyle.JSON_GET:
            return await self.transport.get_json(candidate.path, candidate.params)
        if candidate.style is RequestStyle.JSON_POST:
            return await self.transport.post_json(candidate.path, candidate.payload)
        return await self.transport.post_form(candidate.path, candidate.form)

    async def run(
        self,
        operation: str,
        tiers: Sequence[FallbackTier],
        target: Any,
        failure_message: Optional[str] = None,
        accept: Optional[Callable[[Envelope], bool]] = None,
        allow_empty: bool = False,
    ) -> Envelope:
        """
        First decoded envelope across all tiers that `accept` approves
        (default: successful and non-empty).

        With allow_empty, a successful but empty envelope is remembered and
        returned when no candidate yields data, instead of a failure.
        """
        accept = accept or is_usable
        empty_success: Optional[Envelope] = None
        for tier in tiers:
            logger.debug("Trying %s tier for %s", tier.name, operation)
            for candidate in tier.candidates:
                result = await self.send(candidate)
                if not result.ok:
                    logger.debug("%s endpoint failed: %s (status %d)", tier.name, candidate.path, result.status_code)
                    continue
                envelope = self.decoder.decode(result.body, target)
                if accept(envelope):
                    logger.info("%s succeeded via %s endpoint %s", operation, tier.name, candidate.path)
                    return envelope
                if allow_empty and empty_success is None and envelope.success and envelope.data is not None:
                    empty_success = envelope
                logger.debug("%s endpoint returned nothing usable: %s", tier.name, candidate.path)

        if empty_success is not None:
            logger.info("%s returned no records", operation)
            return empty_success
        logger.warning("All %s endpoints failed", operation)
        return Envelope.fail(failure_message or f"All {operation} endpoints failed")

    async def run_void(
        self,
        operation: str,
        tiers: Sequence[FallbackTier],
        failure_message: Optional[str] = None,
    ) -> Envelope:
        """Write operations without a meaningful body: a 2xx is enough."""
        for tier in tiers:
            for candidate in tier.candidates:
                result = await self.send(candidate)
                if result.ok:
                    logger.info("%s succeeded via %s endpoint %s", operation, tier.name, candidate.path)
                    return Envelope.ok()
                logger.debug("%s endpoint failed: %s (status %d)", tier.name, candidate.path, result.status_code)

        logger.warning("All %s endpoints failed", operation)
        return Envelope.fail(failure_message or f"All {operation} endpoints failed")
