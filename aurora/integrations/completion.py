"""Completion service integration for Aurora.

The chatbot delegates text generation to an external completion API. Two
providers are supported:

- Google Gemini `generateContent` over HTTP (default)
- OpenAI chat completions via the official SDK

Clients return the raw text of the first candidate; validation and
formatting of that text belong to the chat orchestrator.
"""

import os
import logging
from typing import Dict, List, Optional
import requests
from openai import OpenAI, APIError, APITimeoutError
from dotenv import load_dotenv

from aurora.errors import BadGatewayError, ConfigurationError, UpstreamTimeoutError
from aurora.models.conversation import Message, MessageRole

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 30
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


def format_history(history: List[Message], assistant_role: str) -> List[Dict[str, str]]:
    """Convert stored messages to provider turns.

    Error messages and empty messages are dropped. Bot messages take the
    provider's assistant role; every other role is sent as "user". When two
    consecutive turns share a role only the later one is kept.

    Args:
        history: Stored messages in chronological order
        assistant_role: Provider name for the assistant ("model" for Gemini,
            "assistant" for OpenAI)

    Returns:
        List of {"role": ..., "text": ...} dicts
    """
    turns: List[Dict[str, str]] = []
    for message in history:
        if message.role == MessageRole.ERROR.value or not message.content:
            continue
        role = assistant_role if message.role == MessageRole.BOT.value else "user"
        if turns and turns[-1]["role"] == role:
            turns[-1]["text"] = message.content
        else:
            turns.append({"role": role, "text": message.content})
    return turns


class CompletionClient:
    """Interface for completion providers."""

    def complete(self, prompt: str, history: Optional[List[Message]] = None) -> Optional[str]:
        """Send the prompt (and optional prior messages) and return the reply text.

        Raises:
            UpstreamTimeoutError: If the provider did not answer in time
            BadGatewayError: If the provider failed or returned an error
        """
        raise NotImplementedError


class GeminiClient(CompletionClient):
    """Client for the Google Gemini generateContent endpoint."""

    def __init__(self, api_key: str, api_url: str, model: str, timeout: int = DEFAULT_TIMEOUT_SEC):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            api_url: Models base URL, e.g. https://generativelanguage.googleapis.com/v1beta/models
            model: Model name, e.g. gemini-pro
            timeout: Request timeout in seconds

        Raises:
            ConfigurationError: If any of key, URL or model is missing
        """
        if not (api_key and api_url and model):
            logger.error(
                f"Missing Gemini config: key={bool(api_key)} url={bool(api_url)} model={bool(model)}"
            )
            raise ConfigurationError("Missing Google Gemini configuration")
        self.api_key = api_key
        self.endpoint = f"{api_url.rstrip('/')}/{model}:generateContent"
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "GeminiClient":
        return cls(
            api_key=os.getenv("GOOGLE_GEMINI_API_KEY", ""),
            api_url=os.getenv("GOOGLE_GEMINI_API_URL", ""),
            model=os.getenv("GOOGLE_GEMINI_API_MODEL", ""),
            timeout=int(os.getenv("COMPLETION_TIMEOUT_SEC", str(DEFAULT_TIMEOUT_SEC))),
        )

    def build_payload(self, prompt: str, history: Optional[List[Message]] = None) -> Dict:
        contents = [
            {"role": turn["role"], "parts": [{"text": turn["text"]}]}
            for turn in format_history(history or [], assistant_role="model")
        ]
        contents.append({"role": "user", "parts": [{"text": prompt}]})
        return {"contents": contents}

    def complete(self, prompt: str, history: Optional[List[Message]] = None) -> Optional[str]:
        payload = self.build_payload(prompt, history)
        try:
            response = requests.post(
                self.endpoint,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.Timeout as e:
            logger.warning(f"Gemini request timed out after {self.timeout}s")
            raise UpstreamTimeoutError() from e
        except requests.RequestException as e:
            logger.error(f"Gemini request failed: {type(e).__name__}")
            raise BadGatewayError("Failed to reach the chatbot service.") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if not response.ok:
            error = body.get("error") if isinstance(body, dict) else None
            detail = (error or {}).get("message") or f"{response.status_code} {response.reason}"
            # Don't echo provider detail to clients; it can contain request metadata.
            logger.error(f"Gemini API error: {detail}")
            raise BadGatewayError("Received an error from the chatbot service.")

        try:
            return body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            logger.error("Unexpected Gemini response structure")
            return None


class OpenAIChatClient(CompletionClient):
    """Client for OpenAI chat completions."""

    def __init__(self, api_key: str, model: str = DEFAULT_OPENAI_MODEL, timeout: int = DEFAULT_TIMEOUT_SEC):
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY not configured")
        self.model = model
        self.timeout = timeout
        self.client = OpenAI(api_key=api_key)

    @classmethod
    def from_env(cls) -> "OpenAIChatClient":
        return cls(
            api_key=os.getenv("OPENAI_API_KEY", ""),
            model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
            timeout=int(os.getenv("COMPLETION_TIMEOUT_SEC", str(DEFAULT_TIMEOUT_SEC))),
        )

    def build_messages(self, prompt: str, history: Optional[List[Message]] = None) -> List[Dict[str, str]]:
        messages = [
            {"role": turn["role"], "content": turn["text"]}
            for turn in format_history(history or [], assistant_role="assistant")
        ]
        messages.append({"role": "user", "content": prompt})
        return messages

    def complete(self, prompt: str, history: Optional[List[Message]] = None) -> Optional[str]:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self.build_messages(prompt, history),
                timeout=self.timeout,
            )
        except APITimeoutError as e:
            logger.warning(f"OpenAI request timed out after {self.timeout}s")
            raise UpstreamTimeoutError() from e
        except APIError as e:
            error_code = getattr(e, 'code', None)
            status_code = getattr(e, 'status_code', None)
            # Don't log full error message as it might contain sensitive info
            logger.error(f"OpenAI API error: {status_code or 'unknown'} ({error_code or 'unknown'})")
            raise BadGatewayError("Received an error from the chatbot service.") from e

        if not response.choices:
            return None
        return response.choices[0].message.content


def build_completion_client() -> CompletionClient:
    """Construct the configured completion client.

    COMPLETION_PROVIDER selects "gemini" (default) or "openai".

    Raises:
        ConfigurationError: On an unknown provider or missing credentials
    """
    provider = os.getenv("COMPLETION_PROVIDER", "gemini").lower()
    if provider == "gemini":
        return GeminiClient.from_env()
    if provider == "openai":
        return OpenAIChatClient.from_env()
    raise ConfigurationError(f"Unknown COMPLETION_PROVIDER '{provider}'")
