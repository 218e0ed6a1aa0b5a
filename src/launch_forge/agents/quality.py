from __future__ import annotations

from launch_forge.agents import fallbacks
from launch_forge.agents.base import BaseAgent
from launch_forge.agents.models import QualityReport
from launch_forge.prompts import library
from launch_forge.prompts.template import bullet_list
from launch_forge.resilience.invoker import Invocation

_MAX_FILE_CHARS = 1500


class QualityAuditorAgent(BaseAgent[QualityReport]):
    """Reviews the generated files and scores them 0-100."""

    name = "quality_auditor"
    role = "Quality Auditor"
    template = library.QUALITY_AUDITOR
    output_model = QualityReport
    required_fields = ("overall_score",)

    async def run(
        self,
        project_name: str,
        files: dict[str, str],
        advantages: list[str],
        max_files: int = 12,
    ) -> Invocation[QualityReport]:
        prompt = self.build_prompt(
            project_name=project_name,
            advantages=bullet_list(advantages),
            files=render_files(files, max_files),
        )
        return await self._call(prompt, fallback=fallbacks.quality_report)


def render_files(files: dict[str, str], max_files: int) -> str:
    """Render the first *max_files* files, each truncated, for the audit prompt."""
    blocks: list[str] = []
    for path in sorted(files)[:max_files]:
        content = files[path]
        if len(content) > _MAX_FILE_CHARS:
            content = content[:_MAX_FILE_CHARS] + "\n... (truncated)"
        blocks.append(f"--- {path} ---\n{content}")
    skipped = len(files) - len(blocks)
    if skipped > 0:
        blocks.append(f"({skipped} more file(s) not shown)")
    return "\n\n".join(blocks) or "(no files)"
