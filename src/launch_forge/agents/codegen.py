"""Code-generation agents: schema, backend and frontend."""

from __future__ import annotations

from typing import Any

from launch_forge.agents import fallbacks
from launch_forge.agents.base import BaseAgent
from launch_forge.agents.models import CodeBundle, DatabaseSchema
from launch_forge.core.types import BuildRequest
from launch_forge.prompts import library
from launch_forge.prompts.template import bullet_list, embed_json
from launch_forge.resilience.invoker import Invocation


def describe_project(
    request: BuildRequest,
    features: list[str],
    principles: list[str] | None = None,
) -> str:
    """Compact JSON description of the project shared by the codegen prompts."""
    summary: dict[str, Any] = {
        "project_name": request.display_name,
        "description": request.idea,
        "target_market": request.target_market,
        "framework": request.framework,
        "database": request.database,
        "features": list(request.features) + features,
    }
    if principles:
        summary["ux_principles"] = principles
    return embed_json(summary, limit=2000)


class SchemaDesignerAgent(BaseAgent[DatabaseSchema]):
    """Designs the database; falls back to a two-table User/Session schema."""

    name = "schema_designer"
    role = "Database Schema Designer"
    template = library.SCHEMA_DESIGNER
    output_model = DatabaseSchema
    required_fields = ("prisma_schema",)

    async def run(self, request: BuildRequest, features: list[str]) -> Invocation[DatabaseSchema]:
        prompt = self.build_prompt(
            database=request.database,
            requirements=describe_project(request, features),
        )
        return await self._call(prompt, fallback=fallbacks.database_schema)


class BackendGeneratorAgent(BaseAgent[CodeBundle]):
    name = "backend_generator"
    role = "Backend Generator"
    template = library.BACKEND_GENERATOR
    output_model = CodeBundle
    required_fields = ("files",)

    async def run(
        self,
        request: BuildRequest,
        schema: DatabaseSchema,
        features: list[str],
    ) -> Invocation[CodeBundle]:
        prompt = self.build_prompt(
            requirements=describe_project(request, features),
            schema=schema.prisma_schema,
        )
        name = request.display_name
        return await self._call(prompt, fallback=lambda: fallbacks.backend_bundle(name))


class FrontendGeneratorAgent(BaseAgent[CodeBundle]):
    name = "frontend_generator"
    role = "Frontend Generator"
    template = library.FRONTEND_GENERATOR
    output_model = CodeBundle
    required_fields = ("files",)

    async def run(
        self,
        request: BuildRequest,
        features: list[str],
        principles: list[str],
    ) -> Invocation[CodeBundle]:
        prompt = self.build_prompt(
            framework=request.framework,
            requirements=describe_project(request, features, principles),
            principles=bullet_list(principles),
        )
        name = request.display_name
        return await self._call(prompt, fallback=lambda: fallbacks.frontend_bundle(name))
