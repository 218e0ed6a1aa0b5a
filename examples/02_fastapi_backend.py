# RUN: python examples/02_fastapi_backend.py
"""FastAPI backend: expose BuildService over HTTP.

Run the server with:
    uvicorn examples.02_fastapi_backend:app --reload

Then test with:
    curl -X POST http://localhost:8000/api/builds \
         -H "Content-Type: application/json" \
         -d '{"idea": "A budget tracker for university students sharing rent"}'
    curl http://localhost:8000/api/builds/<build_id>
"""

import asyncio

from launch_forge import BuildService, ForgeConfig, MockTextGenerator, RetryPolicy

try:
    from fastapi import FastAPI
    from launch_forge.integrations.fastapi import create_build_router

    _FASTAPI_AVAILABLE = True
except ImportError:
    _FASTAPI_AVAILABLE = False


def make_service() -> BuildService:
    # Only market research is scripted; every optional step falls back.
    gen = MockTextGenerator(default="no JSON here")
    gen.register("Market Intelligence Analyst", {
        "market_overview": {"tam": "$800M"},
        "market_gaps": ["Shared rent splitting"],
        "target_audience": ["University students"],
    })
    return BuildService(gen, ForgeConfig(retry=RetryPolicy(max_retries=1, delay=0.0)))


# ---------------------------------------------------------------------------
# Build the app (only when FastAPI is installed)
# ---------------------------------------------------------------------------

if _FASTAPI_AVAILABLE:
    app = FastAPI(title="launch-forge demo", version="0.1.0")
    _service = make_service()
    app.include_router(create_build_router(_service, prefix="/api/builds"))

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await _service.aclose()

    @app.get("/")
    async def root() -> dict:
        return {
            "message": "launch-forge FastAPI demo",
            "note": "Uses MockTextGenerator; no API key required",
            "endpoints": [
                "POST /api/builds",
                "GET  /api/builds/{build_id}",
                "POST /api/builds/{build_id}/cancel",
                "GET  /api/builds/{build_id}/files",
                "GET  /api/builds/{build_id}/download",
            ],
        }


async def main() -> None:
    if _FASTAPI_AVAILABLE:
        print("FastAPI app created successfully.")
        print("Registered routes:")
        for route in app.routes:  # type: ignore[union-attr]
            if hasattr(route, "path"):
                print(f"  {route.path}")  # type: ignore[attr-defined]
        print("\nRun with: uvicorn examples.02_fastapi_backend:app --reload")
        await _service.aclose()
    else:
        print("FastAPI is not installed.")
        print("Install with: pip install launch-forge[fastapi] uvicorn")


if __name__ == "__main__":
    asyncio.run(main())
