import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from openai import OpenAI, OpenAIError

from chat_microservice.config import Settings

logger = logging.getLogger(__name__)

STUB_CREATED = 1234567890
STUB_MESSAGE = "Hello there, how may I assist you today"


class ProviderError(Exception):
    """The completion provider could not produce a reply."""


@dataclass(frozen=True)
class Completion:
    created: int
    message: str
    total_tokens: int


class CompletionProvider(ABC):
    """Turns a prompt into a reply, a timestamp and a token count."""

    name = "base"

    @abstractmethod
    def complete(self, prompt: str) -> Completion:
        ...


class StubProvider(CompletionProvider):
    """
    Fixed reply, no network: deterministic, cheap, and testable.
    Keeps the same interface as the live provider.
    """

    name = "stub"

    def complete(self, prompt: str) -> Completion:
        return Completion(created=STUB_CREATED, message=STUB_MESSAGE, total_tokens=0)


class OpenAIProvider(CompletionProvider):
    """Chat-completions call against the OpenAI API.

    Any SDK error is re-raised as :class:`ProviderError` so the HTTP layer
    only has one upstream failure to map.
    """

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        organization: str | None = None,
        timeout: float = 30.0,
    ):
        if not api_key:
            raise ValueError("OPENAI_API_KEY is required when LLM_MODE=openai")
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")

        self.model = model
        self.client = OpenAI(api_key=api_key, organization=organization, timeout=timeout)

    def complete(self, prompt: str) -> Completion:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except OpenAIError as e:
            raise ProviderError(f"OpenAI request failed: {e}") from e

        if not response.choices:
            raise ProviderError("OpenAI response contained no choices")

        usage = response.usage
        if usage is None:
            logger.warning("OpenAI response missing usage information, recording 0 tokens")
            total_tokens = 0
        else:
            total_tokens = usage.total_tokens

        return Completion(
            created=int(response.created),
            message=response.choices[0].message.content or "",
            total_tokens=total_tokens,
        )


def get_provider(settings: Settings) -> CompletionProvider:
    """Pick the provider named by LLM_MODE."""
    mode = settings.llm_mode
    if mode in ("mock", "stub"):
        return StubProvider()
    if mode == "openai":
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            organization=settings.openai_org_id,
            timeout=settings.openai_timeout,
        )
    raise ValueError(f"Unknown LLM_MODE {mode!r}")
