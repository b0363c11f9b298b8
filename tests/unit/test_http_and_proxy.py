from __future__ import annotations

import httpx
import pytest

from linkedin_pipeline.config import Settings
from linkedin_pipeline.domain.errors import ConfigurationError
from linkedin_pipeline.domain.value_objects.proxy_config import ProxyConfig
from linkedin_pipeline.infrastructure.adapters.http.httpx_client import HttpTemporaryError, HttpxClient
from linkedin_pipeline.infrastructure.adapters.proxy.proxy_gateway import ProxyGateway
from tests.unit._fakes_pipeline import FakeHttpClient, SleepRecorder, json_response


def _client(handler, sleep=None, **kwargs) -> HttpxClient:
    return HttpxClient(transport=httpx.MockTransport(handler), sleep=sleep or SleepRecorder(), **kwargs)


def test_5xx_is_retried_then_succeeds():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json={"ip": "1.2.3.4"})

    sleep = SleepRecorder()
    resp = _client(handler, sleep).get("https://api.ipify.org", params={"format": "json"})

    assert resp.ok
    assert resp.json() == {"ip": "1.2.3.4"}
    assert len(calls) == 3
    assert calls[0].params["format"] == "json"
    assert len(sleep.calls) == 2


def test_transport_errors_surface_after_last_attempt():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("proxy refused", request=request)

    client = _client(handler, max_attempts=2)
    with pytest.raises(HttpTemporaryError):
        client.post("https://api.airtable.com/v0/app/t", json={"fields": {}})


def test_4xx_is_returned_without_retry():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(422, json={"error": "INVALID_VALUE"})

    resp = _client(handler).post("https://api.airtable.com/v0/app/t", json={})
    assert resp.status_code == 422
    assert not resp.ok
    assert calls == [1]


def _gateway(http: FakeHttpClient, config: ProxyConfig | None) -> ProxyGateway:
    seen = []

    def factory(cfg):
        seen.append(cfg)
        return http

    gw = ProxyGateway(config, factory, check_url="https://api.ipify.org?format=json")
    gw.seen = seen  # type: ignore[attr-defined]
    return gw


def test_egress_check_goes_through_the_configured_proxy():
    cfg = ProxyConfig.from_url("http://user:pw@proxy.example:8000")
    http = FakeHttpClient([json_response({"ip": "5.6.7.8"})])
    gw = _gateway(http, cfg)

    assert gw.verify_egress() is True
    assert gw.seen == [cfg]
    assert http.requests[0][1] == "https://api.ipify.org?format=json"
    assert http.closed


def test_egress_check_fails_on_error_or_bad_status():
    cfg = ProxyConfig.from_url("proxy.example:8000")
    assert _gateway(FakeHttpClient([HttpTemporaryError("tunnel failed")]), cfg).verify_egress() is False
    assert _gateway(FakeHttpClient([json_response({}, status=407)]), cfg).verify_egress() is False


def test_no_proxy_means_direct_egress():
    http = FakeHttpClient()
    gw = _gateway(http, None)
    assert gw.verify_egress() is True
    assert gw.launch_options() is None
    assert http.requests == []


def test_launch_options_carry_credentials():
    gw = _gateway(FakeHttpClient(), ProxyConfig.from_parts("10.0.0.1", 3128, "bob", "s3cret"))
    assert gw.launch_options() == {"server": "http://10.0.0.1:3128", "username": "bob", "password": "s3cret"}


def test_required_proxy_missing_is_configuration_error():
    settings = Settings.from_env({"REQUIRE_PROXY": "true"})
    with pytest.raises(ConfigurationError):
        ProxyGateway.from_settings(settings, lambda cfg: FakeHttpClient())


def test_proxy_optional_when_not_required():
    settings = Settings.from_env({"REQUIRE_PROXY": "no"})
    assert ProxyGateway.from_settings(settings, lambda cfg: FakeHttpClient()).config is None
