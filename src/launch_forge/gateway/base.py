from __future__ import annotations

from abc import ABC, abstractmethod


class TextGenerator(ABC):
    """Abstract remote text-generation service.

    Implementations must raise :class:`~launch_forge.core.exceptions.TransportError`
    (or a subclass) when the call does not complete. A completed call returns
    the raw model text, which may be malformed; parsing is not their job.
    """

    async def connect(self) -> None:
        """Open any underlying connection. Optional."""

    async def close(self) -> None:
        """Release any underlying connection. Optional."""

    @abstractmethod
    async def generate(self, prompt: str, model_id: str, max_tokens: int) -> str:
        """Return the model's raw completion text for *prompt*."""

    async def __aenter__(self) -> TextGenerator:
        await self.connect()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
