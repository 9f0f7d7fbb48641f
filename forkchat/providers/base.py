"""Abstract completion provider interface and shared data types."""

from abc import ABC, abstractmethod

from pydantic import BaseModel


class GenerationRequest(BaseModel):
    """Everything a provider needs to answer one user turn."""

    model: str
    messages: list[dict[str, str]]
    system_prompt: str | None = None
    temperature: float | None = None
    max_tokens: int = 4000


class GenerationResult(BaseModel):
    content: str
    model: str
    finish_reason: str | None = None
    usage: dict[str, int] | None = None  # {input_tokens, output_tokens}
    latency_ms: int | None = None

    @property
    def total_tokens(self) -> int | None:
        if not self.usage:
            return None
        return sum(self.usage.values())


class LLMProvider(ABC):
    """A text-completion service that turns a message history into a reply."""

    suggested_models: tuple[str, ...] = ()

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g., 'anthropic')."""
        ...

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        ...
