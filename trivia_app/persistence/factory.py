"""Builds the configured persistence gateway."""

from __future__ import annotations

import logging

from trivia_app.config import Settings
from trivia_app.persistence.gateway import PersistenceGateway
from trivia_app.persistence.memory_gateway import InMemoryGateway
from trivia_app.persistence.rest_gateway import RestGateway

logger = logging.getLogger(__name__)


def build_gateway(settings: Settings) -> PersistenceGateway:
    if settings.storage == "memory":
        logger.info("Using the in-memory store; nothing is persisted across restarts.")
        return InMemoryGateway()
    return RestGateway(
        settings.backend_url,
        settings.backend_key,
        timeout=settings.backend_timeout_seconds,
    )
