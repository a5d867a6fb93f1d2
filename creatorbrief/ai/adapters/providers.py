"""AI Provider Adapters for different LLM services."""
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Dict, Any, Optional

import httpx

from creatorbrief.core import metrics
from creatorbrief.core.errors import ConfigError, ProviderError

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a professional marketing strategist. "
    "Always respond with valid JSON only, no additional formatting or text."
)
DEFAULT_MAX_TOKENS = 4000
DEFAULT_TEMPERATURE = 0.7
DEFAULT_TIMEOUT = 60.0


class MessageRole(str, Enum):
    """Message roles for chat completion."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """Chat message."""
    role: MessageRole
    content: str


class BaseProvider(ABC):
    """Base class for AI providers.

    A provider holds only its fixed configuration, so one instance can serve
    any number of concurrent ``generate`` calls.
    """

    name: str = "base"
    default_model: str = ""
    default_base_url: str = ""
    api_key_env: str = ""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.api_key = api_key or os.environ.get(self.api_key_env)
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.model = model or self.default_model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

    async def generate(
        self,
        prompt: str,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Return the backend's text for ``prompt`` under the fixed system instruction."""
        if not prompt or not prompt.strip():
            raise ProviderError("Prompt must not be empty")

        messages = [
            Message(role=MessageRole.SYSTEM, content=SYSTEM_INSTRUCTION),
            Message(role=MessageRole.USER, content=prompt),
        ]
        max_tokens = max_tokens or self.max_tokens
        temperature = self.temperature if temperature is None else temperature

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self._endpoint(),
                    headers=self._headers(),
                    json=self._payload(messages, max_tokens, temperature),
                    timeout=self.timeout,
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            metrics.PROVIDER_CALLS.labels(provider=self.name, status="error").inc()
            message = _backend_message(e.response)
            logger.error(f"{self.name} API error: {message}")
            raise ProviderError(f"{self.name} API error: {message}") from e
        except httpx.HTTPError as e:
            metrics.PROVIDER_CALLS.labels(provider=self.name, status="error").inc()
            logger.error(f"{self.name} transport error: {e}")
            raise ProviderError(f"{self.name} transport error: {e}") from e
        except ValueError as e:
            metrics.PROVIDER_CALLS.labels(provider=self.name, status="error").inc()
            raise ProviderError(f"{self.name} returned a non-JSON body") from e

        try:
            content = self._extract_text(data)
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            metrics.PROVIDER_CALLS.labels(provider=self.name, status="error").inc()
            logger.error(f"Unexpected response shape from {self.name}: {e!r}")
            raise ProviderError(f"Unexpected response shape from {self.name}") from e

        if not isinstance(content, str) or not content.strip():
            metrics.PROVIDER_CALLS.labels(provider=self.name, status="empty").inc()
            raise ProviderError(f"No response generated from {self.name}")

        metrics.PROVIDER_CALLS.labels(provider=self.name, status="ok").inc()
        return content.strip()

    @abstractmethod
    def _endpoint(self) -> str:
        pass

    @abstractmethod
    def _headers(self) -> Dict[str, str]:
        pass

    @abstractmethod
    def _payload(self, messages: List[Message], max_tokens: int, temperature: float) -> Dict[str, Any]:
        pass

    @abstractmethod
    def _extract_text(self, data: Dict[str, Any]) -> str:
        pass

    def _convert_messages(self, messages: List[Message]) -> List[Dict[str, Any]]:
        """Convert Message objects to chat-completion format."""
        return [{"role": msg.role.value, "content": msg.content} for msg in messages]


class OpenAIProvider(BaseProvider):
    """OpenAI API provider (GPT-4o etc.)."""

    name = "openai"
    default_model = "gpt-4o"
    default_base_url = "https://api.openai.com/v1"
    api_key_env = "OPENAI_API_KEY"

    def _endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    def _payload(self, messages, max_tokens, temperature):
        return {
            "model": self.model,
            "messages": self._convert_messages(messages),
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

    def _extract_text(self, data):
        return data["choices"][0]["message"]["content"]


class AnthropicProvider(BaseProvider):
    """Anthropic API provider (Claude 3.5 Sonnet etc.)."""

    name = "anthropic"
    default_model = "claude-3-5-sonnet-20241022"
    default_base_url = "https://api.anthropic.com/v1"
    api_key_env = "ANTHROPIC_API_KEY"

    def _endpoint(self) -> str:
        return f"{self.base_url}/messages"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": "2023-06-01",
            "Content-Type": "application/json"
        }

    def _payload(self, messages, max_tokens, temperature):
        # Anthropic takes the system prompt as a top-level field
        system_prompt = ""
        anthropic_messages = []
        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_prompt = msg.content
            else:
                anthropic_messages.append({
                    "role": "user" if msg.role == MessageRole.USER else "assistant",
                    "content": msg.content
                })

        payload = {
            "model": self.model,
            "messages": anthropic_messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    def _extract_text(self, data):
        block = data["content"][0]
        if block.get("type", "text") != "text":
            raise TypeError(f"unexpected content block type {block.get('type')!r}")
        return block["text"]


class GeminiProvider(BaseProvider):
    """Google Gemini provider via the generateContent REST endpoint."""

    name = "gemini"
    default_model = "gemini-2.5-pro"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"
    api_key_env = "GOOGLE_API_KEY"

    def _endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key or "",
            "Content-Type": "application/json"
        }

    def _payload(self, messages, max_tokens, temperature):
        system = [m.content for m in messages if m.role == MessageRole.SYSTEM]
        contents = [
            {
                "role": "user" if msg.role == MessageRole.USER else "model",
                "parts": [{"text": msg.content}]
            }
            for msg in messages
            if msg.role != MessageRole.SYSTEM
        ]
        payload = {
            "contents": contents,
            "generationConfig": {
                "maxOutputTokens": max_tokens,
                "temperature": temperature,
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": "\n\n".join(system)}]}
        return payload

    def _extract_text(self, data):
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)


def _backend_message(response: httpx.Response) -> str:
    """Pull the backend-reported error message out of an error response."""
    try:
        body = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"HTTP {response.status_code}: {error['message']}"
    if isinstance(error, str):
        return f"HTTP {response.status_code}: {error}"
    return f"HTTP {response.status_code}"


PROVIDERS = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "gemini": GeminiProvider,
}


# Provider factory
def create_provider(provider_type: str, **kwargs) -> BaseProvider:
    """Create a provider instance by type."""
    provider_class = PROVIDERS.get(provider_type.lower())
    if not provider_class:
        raise ConfigError(f"Unsupported AI provider: {provider_type}")

    return provider_class(**kwargs)
