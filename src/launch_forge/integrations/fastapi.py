"""FastAPI router exposing a :class:`BuildService` over HTTP.

Usage::

    from launch_forge.integrations.fastapi import create_build_router

    service = BuildService.from_config(ForgeConfig.from_env())
    app = FastAPI()
    app.include_router(create_build_router(service, prefix="/api/builds"))

Requires the ``fastapi`` extra::

    pip install launch-forge[fastapi]
"""

from __future__ import annotations

import re
from typing import Any

try:
    from fastapi import APIRouter, Body, HTTPException
    from fastapi.responses import Response
except ImportError as _err:  # pragma: no cover
    raise ImportError(
        "FastAPI is required for launch_forge.integrations.fastapi. "
        "Install it with: pip install launch-forge[fastapi]"
    ) from _err

from launch_forge.core.exceptions import (
    BuildNotFoundError,
    ForgeError,
    InvalidBuildRequestError,
)
from launch_forge.core.service import BuildService
from launch_forge.output.bundle import write_zip


def _http_error(exc: ForgeError) -> HTTPException:
    status = exc.status_code
    if status is None:
        if isinstance(exc, BuildNotFoundError):
            status = 404
        elif isinstance(exc, InvalidBuildRequestError):
            status = 400
        else:
            status = 500
    return HTTPException(
        status_code=status,
        detail={"message": str(exc), "code": exc.code, "details": exc.details},
    )


def create_build_router(service: BuildService, prefix: str = "/builds") -> APIRouter:
    """Return an :class:`APIRouter` with build endpoints.

    Endpoints:
        - ``POST {prefix}``                 start a build (202)
        - ``GET  {prefix}/{build_id}``       progress, logs and final result
        - ``POST {prefix}/{build_id}/cancel`` request cancellation
        - ``GET  {prefix}/{build_id}/files`` generated files so far
        - ``GET  {prefix}/{build_id}/download`` ZIP of a completed build
    """
    router = APIRouter(prefix=prefix, tags=["builds"])

    @router.post("", status_code=202)
    async def start_build(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        try:
            handle = await service.start_build(payload)
        except InvalidBuildRequestError as exc:
            raise _http_error(exc) from exc
        return {
            "build_id": handle.build_id,
            "status": "queued",
            "status_url": f"{prefix}/{handle.build_id}",
        }

    @router.get("/{build_id}")
    async def build_status(build_id: str) -> dict[str, Any]:
        try:
            status = await service.get_status(build_id)
        except BuildNotFoundError as exc:
            raise _http_error(exc) from exc
        body = status.model_dump(mode="json", exclude={"partial_files"})
        body["files_ready"] = len(status.partial_files)
        return body

    @router.post("/{build_id}/cancel")
    async def cancel_build(build_id: str) -> dict[str, Any]:
        try:
            cancelled = await service.cancel_build(build_id)
        except BuildNotFoundError as exc:
            raise _http_error(exc) from exc
        return {"build_id": build_id, "cancelled": cancelled}

    @router.get("/{build_id}/files")
    async def build_files(build_id: str) -> dict[str, Any]:
        try:
            status = await service.get_status(build_id)
        except BuildNotFoundError as exc:
            raise _http_error(exc) from exc
        return {
            "build_id": build_id,
            "state": str(status.state),
            "files": [
                {
                    "path": f.path,
                    "origin": f.origin,
                    "size_bytes": f.size_bytes,
                    "content": f.content,
                }
                for f in status.partial_files
            ],
        }

    @router.get("/{build_id}/download")
    async def download(build_id: str) -> Response:
        try:
            status = await service.get_status(build_id)
        except BuildNotFoundError as exc:
            raise _http_error(exc) from exc
        if status.result is None:
            raise HTTPException(
                status_code=409,
                detail={"message": "Build is not complete", "state": str(status.state)},
            )
        name = re.sub(r"[^a-z0-9]+", "-", status.result.request.display_name.lower()).strip("-")
        return Response(
            content=write_zip(status.result.files),
            media_type="application/zip",
            headers={"Content-Disposition": f'attachment; filename="{name or "app"}.zip"'},
        )

    return router
