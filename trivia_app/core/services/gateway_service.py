"""Common plumbing for services that read and write through the gateway."""

from __future__ import annotations

import logging

from trivia_app.persistence.gateway import PersistenceGateway


class GatewayService:
    """Base for services whose calls degrade to empty results when unconfigured."""

    def __init__(self, gateway: PersistenceGateway, logger: logging.Logger) -> None:
        self._gateway = gateway
        self._logger = logger

    def is_available(self) -> bool:
        return self._gateway.is_configured()

    def _require_backend(self, action: str) -> bool:
        if self._gateway.is_configured():
            return True
        self._logger.warning("Backend not configured; cannot %s.", action)
        return False
