from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote, unquote, urlparse

from linkedin_pipeline.domain.errors import ConfigurationError


@dataclass(frozen=True)
class ProxyCredentials:
    username: str
    password: str

    def __repr__(self) -> str:
        return f"ProxyCredentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class ProxyConfig:
    """Egress proxy for one run. ``endpoint`` is ``scheme://host:port`` without credentials."""

    endpoint: str
    credentials: ProxyCredentials | None = None

    @classmethod
    def from_url(cls, url: str) -> "ProxyConfig":
        raw = url.strip()
        if "://" not in raw:
            raw = f"http://{raw}"
        parsed = urlparse(raw)
        if not parsed.hostname:
            raise ConfigurationError(f"Proxy URL has no host: {url!r}")
        try:
            port = parsed.port
        except ValueError as exc:
            raise ConfigurationError(f"Proxy URL has an invalid port: {url!r}") from exc
        endpoint = f"{parsed.scheme}://{parsed.hostname}"
        if port:
            endpoint = f"{endpoint}:{port}"
        creds = None
        if parsed.username:
            creds = ProxyCredentials(unquote(parsed.username), unquote(parsed.password or ""))
        return cls(endpoint=endpoint, credentials=creds)

    @classmethod
    def from_parts(
        cls,
        host: str,
        port: str | int | None = None,
        username: str | None = None,
        password: str | None = None,
        *,
        scheme: str = "http",
    ) -> "ProxyConfig":
        host = host.strip()
        if not host:
            raise ConfigurationError("Proxy host is empty")
        endpoint = f"{scheme}://{host}"
        if port not in (None, ""):
            try:
                endpoint = f"{endpoint}:{int(port)}"
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Proxy port is not a number: {port!r}") from exc
        creds = ProxyCredentials(username, password or "") if username else None
        return cls(endpoint=endpoint, credentials=creds)

    @classmethod
    def resolve(
        cls,
        *,
        url: str | None = None,
        host: str | None = None,
        port: str | int | None = None,
        username: str | None = None,
        password: str | None = None,
    ) -> "ProxyConfig | None":
        """Pick exactly one proxy: a full URL wins over the discrete fields."""
        if url and url.strip():
            return cls.from_url(url)
        if host and host.strip():
            return cls.from_parts(host, port, username, password)
        return None

    def url_with_credentials(self) -> str:
        if not self.credentials:
            return self.endpoint
        scheme, rest = self.endpoint.split("://", 1)
        user = quote(self.credentials.username, safe="")
        pwd = quote(self.credentials.password, safe="")
        return f"{scheme}://{user}:{pwd}@{rest}"

    def redacted(self) -> str:
        if not self.credentials:
            return self.endpoint
        return f"{self.endpoint} (user={self.credentials.username})"
