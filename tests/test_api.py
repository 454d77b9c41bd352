from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from conftest import FakeService, job_body
from tattoo_ideas.client import PredictionClient
from tattoo_ideas.main import SessionRegistry, app, content_disposition, get_registry


@pytest.fixture
def service():
    return FakeService(
        creates=[httpx.Response(201, json=job_body("starting"))],
        polls=[
            httpx.Response(200, json=job_body("processing", ["a"])),
            httpx.Response(200, json=job_body("succeeded", ["a", "b", "c", "d"])),
        ],
    )


@pytest.fixture
def registry(service, fast_settings):
    return SessionRegistry(service.client(), settings=fast_settings)


@pytest.fixture
async def api(registry):
    app.dependency_overrides[get_registry] = lambda: registry
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
    await registry.aclose()


@pytest.mark.anyio
async def test_health(api):
    r = await api.get("/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True


@pytest.mark.anyio
async def test_initial_state_shows_sample_gallery(api):
    r = await api.get("/api/state")

    body = r.json()
    assert body["phase"] == "idle"
    assert body["job"] is None
    assert body["in_flight"] is False
    assert [g["src"] for g in body["gallery"]][0] == "/images/dog.webp"


@pytest.mark.anyio
async def test_empty_prompt_returns_error_without_request(api, service):
    r = await api.post("/api/jobs", json={"message": ""})

    assert r.status_code == 200
    assert r.json()["error"].startswith("No text entered")
    assert service.requests == []


@pytest.mark.anyio
async def test_submit_then_poll_to_success(api, registry):
    r = await api.post("/api/jobs", json={"message": "tiger"})

    assert r.json()["in_flight"] is True
    assert r.json()["phase"] == "submitting"

    await registry.controller("default").task
    body = (await api.get("/api/state")).json()
    assert body["phase"] == "succeeded"
    assert body["progress"] == 100
    assert body["in_flight"] is False
    assert [g["src"] for g in body["gallery"]] == ["d", "c", "b", "a"]


@pytest.mark.anyio
async def test_sessions_are_isolated(api, registry):
    await api.post("/api/jobs", json={"message": "tiger"}, headers={"X-Session-Id": "other"})
    await registry.controller("other").task

    other = (await api.get("/api/state", headers={"X-Session-Id": "other"})).json()
    default = (await api.get("/api/state")).json()
    assert other["phase"] == "succeeded"
    assert default["phase"] == "idle"


@pytest.mark.anyio
async def test_cancel_clears_in_flight(api, registry, service):
    service.polls = [httpx.Response(200, json=job_body("processing"))]
    await api.post("/api/jobs", json={"message": "tiger"})

    r = await api.post("/api/cancel")
    await registry.controller("default").task

    assert r.json()["phase"] == "cancelled"
    assert r.json()["in_flight"] is False


async def download(handler, src: str) -> httpx.Response:
    reg = SessionRegistry(PredictionClient("http://site.test", transport=httpx.MockTransport(handler)))
    reg.downloads.origin = "http://site.test"
    app.dependency_overrides[get_registry] = lambda: reg
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            return await client.get("/api/download", params={"src": src})
    finally:
        app.dependency_overrides.clear()
        await reg.aclose()


@pytest.mark.anyio
async def test_download_returns_attachment():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, content=b"img", headers={"content-type": "image/webp"})

    r = await download(handler, "/images/dog.webp")

    assert seen == ["http://site.test/images/dog.webp"]
    assert r.status_code == 200
    assert r.content == b"img"
    assert r.headers["content-disposition"] == "attachment; filename=\"dog.webp\"; filename*=UTF-8''dog.webp"


@pytest.mark.anyio
async def test_download_failure_is_502():
    r = await download(lambda request: httpx.Response(404), "/images/nope.png")

    assert r.status_code == 502
    assert r.json()["detail"] == "The image could not be downloaded. Please try again."


@pytest.mark.anyio
async def test_download_from_unlisted_host_is_502():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, content=b"secret")

    r = await download(handler, "http://169.254.169.254/latest/meta-data/")

    assert r.status_code == 502
    assert seen == []


@pytest.mark.anyio
async def test_download_with_non_ascii_filename():
    def handler(request):
        return httpx.Response(200, content=b"img", headers={"content-type": "image/png"})

    r = await download(handler, "/images/龍.png")

    assert r.status_code == 200
    assert r.headers["content-disposition"] == "attachment; filename=\"_.png\"; filename*=UTF-8''%E9%BE%8D.png"


def test_content_disposition_escapes_quotes():
    header = content_disposition('a"b.png')

    assert header.startswith('attachment; filename="a_b.png";')
    assert header.endswith("filename*=UTF-8''a%22b.png")


def test_registry_evicts_idle_sessions(fast_settings):
    settings = fast_settings.model_copy(update={"MAX_SESSIONS": 2})
    reg = SessionRegistry(FakeService().client(), settings=settings)

    first = reg.controller("a")
    reg.controller("b")
    reg.controller("a")
    reg.controller("c")

    assert len(reg) == 2
    assert reg.controller("a") is first


def test_registry_keeps_sessions_with_running_jobs(fast_settings):
    settings = fast_settings.model_copy(update={"MAX_SESSIONS": 1})
    reg = SessionRegistry(FakeService().client(), settings=settings)

    busy = reg.controller("busy")
    busy.store.begin()
    reg.controller("other")

    assert reg.controller("busy") is busy
