"""Shared fixtures: fast settings and a scripted fake generation service."""

from __future__ import annotations

import httpx
import pytest

from tattoo_ideas.client import PredictionClient
from tattoo_ideas.config import Settings


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fast_settings() -> Settings:
    return Settings(
        _env_file=None,
        POLL_INTERVAL=0.01,
        PROGRESS_TICK=0.002,
        POLL_MAX_WAIT=5,
    )


def job_body(status: str, output: list[str] | None = None, detail: str | None = None, job_id: str = "job-1") -> dict:
    body = {"id": job_id, "status": status, "output": output}
    if detail is not None:
        body["detail"] = detail
    return body


class FakeService:
    """Replays scripted responses for the create and status resources.

    `creates` and `polls` hold httpx.Response objects or exceptions; the last
    poll entry repeats once the script runs out.
    """

    def __init__(self, creates=(), polls=()):
        self.creates = list(creates)
        self.polls = list(polls)
        self.requests: list[httpx.Request] = []
        self.on_poll = None

    @property
    def poll_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET" and "/api/predictionState/" in r.url.path]

    @property
    def create_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            item = self.creates.pop(0) if len(self.creates) > 1 else self.creates[0]
        else:
            if self.on_poll is not None:
                self.on_poll(request)
            item = self.polls.pop(0) if len(self.polls) > 1 else self.polls[0]
        if isinstance(item, Exception):
            raise item
        # fresh copy so repeated entries can be replayed
        return httpx.Response(item.status_code, headers=item.headers, content=item.content)

    def client(self) -> PredictionClient:
        return PredictionClient("http://site.test", transport=httpx.MockTransport(self.handler))
