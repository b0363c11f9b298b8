from __future__ import annotations

from typing import Any, Protocol

from linkedin_pipeline.domain.value_objects.proxy_config import ProxyConfig


class ProxyGatewayPort(Protocol):
    @property
    def config(self) -> ProxyConfig | None: ...

    def launch_options(self) -> dict[str, Any] | None:
        """Proxy settings in the browser engine's launch shape, credentials included."""
        ...

    def verify_egress(self) -> bool: ...
