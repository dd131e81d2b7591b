from typing import Callable, Optional

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from app.middleware import SlackSignatureMiddleware
from app.routes.slack_events import router as slack_router
from app.security import compute_slack_signature

SIGNING_SECRET = "my-secret-string"
BODY = '{"text":"Hello, world!"}'
NOW = 1_700_000_000


def signed_headers(secret: str = SIGNING_SECRET, timestamp: int = NOW, body: str = BODY) -> dict:
    return {
        "x-slack-signature": compute_slack_signature(secret, timestamp, body),
        "x-slack-request-timestamp": str(timestamp),
        "Content-Type": "application/json",
    }


def build_app(
    secret: Optional[str] = SIGNING_SECRET,
    now: float = NOW,
    path_prefix: Optional[str] = "/slack",
) -> FastAPI:
    app = FastAPI()
    app.add_middleware(
        SlackSignatureMiddleware,
        secret_provider=lambda: secret,
        clock=lambda: now,
        path_prefix=path_prefix,
    )
    app.include_router(slack_router)

    @app.post("/slack/echo")
    async def echo(request: Request):
        return {"body": (await request.body()).decode("utf-8")}

    @app.get("/health")
    def health():
        return {"ok": True}

    return app


@pytest.fixture()
def make_client() -> Callable[..., TestClient]:
    def _make(**kwargs) -> TestClient:
        return TestClient(build_app(**kwargs))

    return _make


@pytest.fixture()
def client(make_client) -> TestClient:
    return make_client()
