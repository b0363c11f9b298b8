from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from linkedin_pipeline.application.ports.notification_port import INotificationPort

logger = logging.getLogger(__name__)


class LoggingNotificationAdapter(INotificationPort):
    def notify(self, event: str, payload: dict[str, Any]) -> None:
        logger.info("[%s] %s", event, payload)


class CompositeNotifier(INotificationPort):
    """Fan an advisory out to several channels. One failing channel does not stop the rest."""

    def __init__(self, channels: Sequence[INotificationPort]) -> None:
        self.channels = list(channels)

    def notify(self, event: str, payload: dict[str, Any]) -> None:
        errors: list[Exception] = []
        for channel in self.channels:
            try:
                channel.notify(event, payload)
            except Exception as exc:
                errors.append(exc)
        if errors:
            raise errors[0]
