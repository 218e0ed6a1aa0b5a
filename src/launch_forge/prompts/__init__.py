"""Prompt templates for the build agents."""

from launch_forge.prompts.template import PromptTemplate, bullet_list, embed_json

__all__ = ["PromptTemplate", "bullet_list", "embed_json"]
