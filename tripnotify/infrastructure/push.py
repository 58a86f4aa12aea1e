"""
Push dispatcher
===============

Delivers one notification to a batch of push handles through a
``PushProvider`` and reports the outcome per handle.

Delivery is best-effort: no retry, and a failure for one handle never stops
delivery to the others.  Providers report per-handle failures in their
results and raise ``DispatchFailure`` only when the whole request failed;
the dispatcher turns that into a report where every handle failed.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Sequence

from tripnotify.domain.entities import DeliveryResult, DispatchReport
from tripnotify.domain.errors import DispatchFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PushMessage:
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


class PushProvider(ABC):
    name: str = "push"

    @abstractmethod
    async def send(
        self, handles: Sequence[str], message: PushMessage
    ) -> list[DeliveryResult]:
        """Deliver *message* to every handle, one result per handle.

        Raise ``DispatchFailure`` only when nothing could be attempted.
        """

    async def aclose(self) -> None:
        """Release transport resources."""


def _mask(handle: str) -> str:
    return f"{handle[:12]}..." if len(handle) > 12 else handle


class PushDispatcher:
    def __init__(self, provider: PushProvider):
        self.provider = provider

    async def dispatch(
        self,
        handles: Sequence[str],
        title: str,
        body: str,
        data: dict[str, str] | None = None,
    ) -> DispatchReport:
        if not handles:
            logger.info("No push handles for %r; nothing sent", title)
            return DispatchReport()

        message = PushMessage(title=title, body=body, data=dict(data or {}))
        try:
            results = await self.provider.send(list(handles), message)
        except DispatchFailure as exc:
            logger.error("%s dispatch failed: %s", self.provider.name, exc)
            results = [DeliveryResult(h, False, str(exc)) for h in handles]

        report = DispatchReport(results)
        logger.info(
            "%s notification %r: %d sent, %d failed",
            self.provider.name,
            title,
            report.success_count,
            report.failure_count,
        )
        for idx, result in enumerate(report.results):
            if not result.success:
                logger.error(
                    "Push to handle %d (%s) failed: %s",
                    idx,
                    _mask(result.handle),
                    result.error,
                )
        return report
