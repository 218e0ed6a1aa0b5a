from __future__ import annotations

from abc import ABC
from typing import Any, Callable, ClassVar, Generic, TypeVar

import structlog
from pydantic import BaseModel

from launch_forge.core.exceptions import SchemaValidationError
from launch_forge.output.extractor import missing_fields
from launch_forge.prompts.library import with_defaults
from launch_forge.prompts.template import PromptTemplate
from launch_forge.resilience.invoker import Invocation, ResilientInvoker

logger = structlog.get_logger(__name__)

OutputT = TypeVar("OutputT", bound=BaseModel)


class BaseAgent(ABC, Generic[OutputT]):
    """One specialized step of a build: prompt, resilient call, typed output.

    Subclasses declare the prompt template, the role line that opens it, the
    output model and the top-level fields a record must contain. They add a
    ``run`` coroutine whose signature names the upstream data they need.

    Attributes:
        name: Config key for model id and token budget (``ForgeConfig.agents``).
        role: Opening role line of the prompt (``You are the <role>.``).
        required_fields: Top-level keys the parsed record must contain.
        output_model: Pydantic model the record is validated into.
    """

    name: ClassVar[str]
    role: ClassVar[str]
    template: ClassVar[PromptTemplate]
    output_model: ClassVar[type[BaseModel]]
    required_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, invoker: ResilientInvoker) -> None:
        self._invoker = invoker

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    def build_prompt(self, **values: Any) -> str:
        return with_defaults(self.template, self.role).render(**values)

    def shape(self, record: dict[str, Any]) -> OutputT:
        """Validate *record* into :attr:`output_model`.

        A ``provenance`` key in the record is ignored; only the invoker decides
        whether a value was generated or is a fallback.

        Raises:
            SchemaValidationError: A required top-level field is missing.
            pydantic.ValidationError: The record has the wrong shape.
        """
        missing = missing_fields(record, self.required_fields)
        if missing:
            raise SchemaValidationError(
                f"{self.name} record is missing {', '.join(missing)}",
                missing=missing,
            )
        fields = {key: value for key, value in record.items() if key != "provenance"}
        return self.output_model.model_validate(fields)  # type: ignore[return-value]

    async def _call(
        self,
        prompt: str,
        fallback: OutputT | Callable[[], OutputT] | None,
    ) -> Invocation[OutputT]:
        result = await self._invoker.invoke(
            prompt,
            validator=self.shape,
            fallback=fallback,
            label=self.name,
        )
        logger.debug(
            "agent_complete",
            agent=self.name,
            provenance=str(result.provenance),
            attempts=result.attempts,
        )
        return result
