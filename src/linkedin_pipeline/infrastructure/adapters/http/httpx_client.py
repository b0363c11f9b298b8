from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

import httpx
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from linkedin_pipeline.application.ports.http_client_port import HttpClientPort, HttpResponse

logger = logging.getLogger(__name__)


class HttpTemporaryError(Exception):
    pass


class HttpxClient(HttpClientPort):
    def __init__(
        self,
        timeout: float = 45.0,
        *,
        proxy: str | None = None,
        max_attempts: int = 3,
        headers: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """HTTP client adapter backed by a persistent httpx.Client.

        - Transport errors and 5xx responses are retried with exponential jitter
        - 4xx responses are returned to the caller untouched
        - ``proxy`` routes every request through the egress proxy

        Args:
            timeout (float, optional): Timeout for requests. Defaults to 45.0.
            proxy (str | None, optional): Proxy URL including credentials.
            max_attempts (int, optional): Attempts per request. Defaults to 3.
            headers (Mapping[str, str] | None, optional): Extra default headers.
            transport (httpx.BaseTransport | None, optional): Custom transport, used by tests.
            sleep (Callable, optional): Sleep between retries. Defaults to time.sleep.
        """
        default_headers = {
            "Accept": "application/json, text/plain;q=0.9, */*;q=0.8",
            "User-Agent": "linkedin-pipeline/0.1 httpx",
        }
        default_headers.update(headers or {})
        kwargs: dict[str, Any] = {
            "timeout": timeout,
            "headers": default_headers,
            "follow_redirects": True,
        }
        if proxy:
            kwargs["proxy"] = proxy
        if transport is not None:
            kwargs["transport"] = transport
        self._client = httpx.Client(**kwargs)
        self.max_attempts = max(1, max_attempts)
        self._sleep = sleep

    def _retrying(self) -> Retrying:
        return Retrying(
            reraise=True,
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(initial=1, max=8),
            retry=retry_if_exception_type(HttpTemporaryError),
            sleep=self._sleep,
        )

    def _send(self, method: str, url: str, **kwargs: Any) -> HttpResponse:
        try:
            resp = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.debug("[HttpxClient] %s %s failed: %s", method, url, e)
            raise HttpTemporaryError(f"{method} {url}: {e}") from e
        if resp.status_code >= 500:
            raise HttpTemporaryError(f"{method} {url} -> {resp.status_code}")
        return HttpResponse(resp.status_code, resp.text, str(resp.url), resp.headers, raw=resp)

    def get(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        """Gets the given URL.

        Raises:
            HttpTemporaryError: When every attempt failed at transport level or with 5xx.
        """
        for attempt in self._retrying():
            with attempt:
                return self._send("GET", url, params=params, headers=headers)
        raise AssertionError("unreachable")

    def post(
        self,
        url: str,
        *,
        json: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> HttpResponse:
        for attempt in self._retrying():
            with attempt:
                return self._send("POST", url, json=json, headers=headers)
        raise AssertionError("unreachable")

    def close(self) -> None:
        self._client.close()
