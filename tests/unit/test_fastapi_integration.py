"""Tests for integrations/fastapi.py (requires fastapi extra)."""
from __future__ import annotations

import asyncio
import io
import zipfile
from typing import AsyncIterator

import httpx
import pytest

from launch_forge.core.config import ForgeConfig
from launch_forge.core.service import BuildService
from launch_forge.gateway.base import TextGenerator
from launch_forge.gateway.mock import MockTextGenerator

try:
    from fastapi import FastAPI

    from launch_forge.integrations.fastapi import create_build_router

    _FASTAPI_AVAILABLE = True
except ImportError:
    _FASTAPI_AVAILABLE = False

pytestmark = pytest.mark.skipif(
    not _FASTAPI_AVAILABLE, reason="fastapi not installed"
)

IDEA = "A marketplace app that connects busy dog owners with vetted local dog walkers"


class GatedGenerator(TextGenerator):
    """Holds every call until ``gate`` is set, then answers with an empty object."""

    def __init__(self) -> None:
        self.entered = asyncio.Event()
        self.gate = asyncio.Event()

    async def generate(self, prompt: str, model_id: str, max_tokens: int) -> str:
        self.entered.set()
        await self.gate.wait()
        return "{}"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture
async def service(happy_generator, config, fake_sleep) -> AsyncIterator[BuildService]:
    svc = BuildService(happy_generator, config, sleep=fake_sleep)
    yield svc
    await svc.aclose()


def _make_client(service: BuildService, prefix: str = "/builds") -> httpx.AsyncClient:
    app = FastAPI()
    app.include_router(create_build_router(service, prefix=prefix))
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


# ---------------------------------------------------------------------------
# POST /builds
# ---------------------------------------------------------------------------


async def test_start_build_accepted(service) -> None:
    async with _make_client(service) as client:
        resp = await client.post("/builds", json={"idea": IDEA})
    assert resp.status_code == 202
    body = resp.json()
    assert body["status"] == "queued"
    assert body["status_url"] == f"/builds/{body['build_id']}"
    await service.wait(body["build_id"])


async def test_short_idea_is_400(service) -> None:
    async with _make_client(service) as client:
        resp = await client.post("/builds", json={"idea": "dog app"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "IdeaTooShort"


async def test_malformed_request_is_400(service) -> None:
    async with _make_client(service) as client:
        resp = await client.post("/builds", json={"idea": IDEA, "tier": "gold"})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "InvalidRequest"


# ---------------------------------------------------------------------------
# GET /builds/{id}, /files, /download
# ---------------------------------------------------------------------------


async def test_status_files_and_download(service) -> None:
    async with _make_client(service) as client:
        build_id = (
            await client.post("/builds", json={"idea": IDEA, "project_name": "Walkies"})
        ).json()["build_id"]
        await service.wait(build_id)

        status = (await client.get(f"/builds/{build_id}")).json()
        assert status["state"] == "completed"
        assert status["percent_complete"] == 100
        assert status["files_ready"] == 9
        assert "partial_files" not in status
        assert status["result"]["summary"]["qa_score"] == 82

        files = (await client.get(f"/builds/{build_id}/files")).json()
        assert files["state"] == "completed"
        assert len(files["files"]) == 9
        assert files["files"][-1]["path"] == "RESEARCH_REPORT.md"
        assert files["files"][-1]["origin"] == "docs"

        resp = await client.get(f"/builds/{build_id}/download")
    assert resp.status_code == 200
    assert resp.headers["content-type"] == "application/zip"
    assert resp.headers["content-disposition"] == 'attachment; filename="walkies.zip"'
    with zipfile.ZipFile(io.BytesIO(resp.content)) as archive:
        assert "README.md" in archive.namelist()
        assert "backend/prisma/schema.prisma" in archive.namelist()


async def test_unknown_build_is_404(service) -> None:
    async with _make_client(service) as client:
        for path in ("/builds/nope", "/builds/nope/files", "/builds/nope/download"):
            resp = await client.get(path)
            assert resp.status_code == 404
            assert resp.json()["detail"]["code"] == "NotFound"
        resp = await client.post("/builds/nope/cancel")
    assert resp.status_code == 404


async def test_download_of_failed_build_is_409(config, fake_sleep) -> None:
    gen = MockTextGenerator(default="no json at all")
    service = BuildService(gen, config, sleep=fake_sleep)
    async with _make_client(service) as client:
        build_id = (await client.post("/builds", json={"idea": IDEA})).json()["build_id"]
        await service.wait(build_id)
        resp = await client.get(f"/builds/{build_id}/download")
    await service.aclose()
    assert resp.status_code == 409
    assert resp.json()["detail"]["state"] == "failed"


# ---------------------------------------------------------------------------
# POST /builds/{id}/cancel
# ---------------------------------------------------------------------------


async def test_cancel_then_status(config, fake_sleep) -> None:
    gen = GatedGenerator()
    service = BuildService(gen, config, sleep=fake_sleep)
    async with _make_client(service, prefix="/api/builds") as client:
        build_id = (await client.post("/api/builds", json={"idea": IDEA})).json()["build_id"]
        await gen.entered.wait()
        resp = await client.post(f"/api/builds/{build_id}/cancel")
        assert resp.json() == {"build_id": build_id, "cancelled": True}
        gen.gate.set()
        await service.wait(build_id)
        status = (await client.get(f"/api/builds/{build_id}")).json()
    await service.aclose()
    assert status["state"] == "cancelled"
    assert status["error"]["cause"] == "Cancelled"


async def test_router_routes() -> None:
    service = BuildService(MockTextGenerator(default="{}"), ForgeConfig())
    router = create_build_router(service)
    paths = {route.path for route in router.routes}
    assert paths == {
        "/builds",
        "/builds/{build_id}",
        "/builds/{build_id}/cancel",
        "/builds/{build_id}/files",
        "/builds/{build_id}/download",
    }
