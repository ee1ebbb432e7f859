#!/usr/bin/env python3
"""
Tests for HttpClient and HttpPageHost against a local aiohttp server.
"""

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

import scrape_inbox
from core.infra.http import HttpClient
from plugins.hackerone.host import HttpPageHost

LANDING = '<html><head><meta name="csrf-token" content="from-page"></head></html>'


@pytest.fixture
async def server():
    state = {"flaky": 0, "seen_headers": {}}

    async def landing(request):
        state["seen_headers"] = dict(request.headers)
        return web.Response(text=LANDING, content_type="text/html")

    async def graphql(request):
        body = await request.text()
        if "fail" in body:
            return web.json_response({"errors": [{"message": "bad query"}]}, status=422)
        if "html" in body:
            return web.Response(text="<html>oops</html>", status=200, content_type="text/html")
        return web.json_response({"data": {"echo": body}})

    async def flaky(request):
        state["flaky"] += 1
        if state["flaky"] < 3:
            return web.Response(status=503)
        return web.json_response({"ok": True, "attempts": state["flaky"]})

    async def forbidden(request):
        state["forbidden"] = state.get("forbidden", 0) + 1
        return web.json_response({"error": "nope"}, status=403)

    async def expired(request):
        return web.Response(text="login required", status=401)

    app = web.Application()
    app.router.add_get("/", landing)
    app.router.add_post("/graphql", graphql)
    app.router.add_post("/flaky", flaky)
    app.router.add_post("/bugs.json", forbidden)
    app.router.add_get("/expired/", expired)

    srv = test_utils.TestServer(app)
    await srv.start_server()
    srv.state = state
    yield srv
    await srv.close()


def base_url(srv) -> str:
    return f"http://{srv.host}:{srv.port}"


async def test_post_for_status_returns_error_body(server):
    async with HttpClient(base_url=base_url(server), max_retries=1) as http:
        status, payload = await http.post_for_status("/graphql", '{"q": "fail"}')
    assert status == 422
    assert payload == {"errors": [{"message": "bad query"}]}


async def test_post_for_status_non_json_is_empty(server):
    async with HttpClient(base_url=base_url(server), max_retries=1) as http:
        status, payload = await http.post_for_status("/graphql", "html please")
    assert status == 200
    assert payload == {}


async def test_retries_retryable_status(server):
    async with HttpClient(base_url=base_url(server), max_retries=3, base_delay=0.001) as http:
        payload = await http.post_json("/flaky", json=False)
    assert payload == {"ok": True, "attempts": 3}


async def test_non_retryable_status_raises(server):
    async with HttpClient(base_url=base_url(server), max_retries=3, base_delay=0.001) as http:
        with pytest.raises(aiohttp.ClientResponseError) as info:
            await http.post_json("/bugs.json", json=False)
    assert info.value.status == 403
    assert server.state["forbidden"] == 1


async def test_default_headers_sent(server):
    http = HttpClient(base_url=base_url(server), default_headers={"Cookie": "session=1"})
    try:
        await http.get_text("/")
    finally:
        await http.close()
    assert server.state["seen_headers"]["Cookie"] == "session=1"


async def test_page_host_reads_token_from_landing_page(server):
    async with HttpPageHost(base_url=base_url(server), cookie="session=abc") as host:
        assert host.csrf_token() == "from-page"
        host.status("hello")
    assert server.state["seen_headers"]["Cookie"] == "session=abc"
    assert [e.message for e in host.events] == ["hello"]


async def test_page_host_explicit_token_skips_landing_page(server):
    async with HttpPageHost(base_url=base_url(server), csrf_token="explicit") as host:
        assert host.csrf_token() == "explicit"
    assert server.state["seen_headers"] == {}


def test_retry_after_accepts_http_date():
    assert HttpClient._parse_retry_after("Wed, 21 Oct 2099 07:28:00 GMT") > 0
    assert HttpClient._parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0
    assert HttpClient._parse_retry_after("120") == 120.0
    assert HttpClient._parse_retry_after("soon") is None
    assert HttpClient._parse_retry_after(None) is None


async def test_cli_reports_unreachable_landing_page(server, tmp_path, monkeypatch):
    monkeypatch.delenv("H1_CSRF_TOKEN", raising=False)
    monkeypatch.delenv("H1_SESSION_COOKIE", raising=False)
    template = tmp_path / "timeline.json"
    template.write_text('{"variables": {"id": "[report_id]"}}', encoding="utf-8")

    code = await scrape_inbox.main([
        "--inbox", "acme",
        "--start", "2024-01-01",
        "--end", "2024-01-31",
        "--timeline-template", str(template),
        "--output-dir", str(tmp_path / "out"),
        "--base-url", f"{base_url(server)}/expired",
    ])

    assert code == 1
    assert not (tmp_path / "out").exists()
