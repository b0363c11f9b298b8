from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from linkedin_pipeline.application.ports.http_client_port import HttpClientPort
from linkedin_pipeline.application.ports.proxy_gateway_port import ProxyGatewayPort
from linkedin_pipeline.domain.errors import ConfigurationError
from linkedin_pipeline.domain.value_objects.proxy_config import ProxyConfig

logger = logging.getLogger(__name__)

DEFAULT_CHECK_URL = "https://api.ipify.org?format=json"

HttpFactory = Callable[[ProxyConfig | None], HttpClientPort]


class ProxyGateway(ProxyGatewayPort):
    """Owns the single egress proxy of a run and checks it before any login."""

    def __init__(
        self,
        config: ProxyConfig | None,
        http_factory: HttpFactory,
        *,
        check_url: str = DEFAULT_CHECK_URL,
    ) -> None:
        self._config = config
        self._http_factory = http_factory
        self.check_url = check_url

    @classmethod
    def from_settings(cls, settings: Any, http_factory: HttpFactory) -> "ProxyGateway":
        config = ProxyConfig.resolve(
            url=settings.proxy_url,
            host=settings.proxy_host,
            port=settings.proxy_port,
            username=settings.proxy_username,
            password=settings.proxy_password,
        )
        if config is None and settings.require_proxy:
            raise ConfigurationError("A proxy is required (REQUIRE_PROXY) but none is configured")
        return cls(config, http_factory, check_url=settings.proxy_check_url)

    @property
    def config(self) -> ProxyConfig | None:
        return self._config

    def launch_options(self) -> dict[str, Any] | None:
        if self._config is None:
            return None
        options: dict[str, Any] = {"server": self._config.endpoint}
        if self._config.credentials:
            options["username"] = self._config.credentials.username
            options["password"] = self._config.credentials.password
        return options

    def verify_egress(self) -> bool:
        if self._config is None:
            logger.warning("[ProxyGateway] no proxy configured, egress goes direct")
            return True
        http = self._http_factory(self._config)
        try:
            resp = http.get(self.check_url)
        except Exception as exc:
            logger.error("[ProxyGateway] egress via %s failed: %s", self._config.redacted(), exc)
            return False
        finally:
            http.close()
        if not resp.ok:
            logger.error("[ProxyGateway] egress check via %s -> HTTP %s", self._config.redacted(), resp.status_code)
            return False
        logger.info("[ProxyGateway] egress via %s ok: %s", self._config.redacted(), resp.text.strip()[:80])
        return True
