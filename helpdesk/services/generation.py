"""
Generation Service client (Ollama-compatible HTTP API)
Used as the last-resort answer source when the FAQ has no confident match
"""
import logging
from enum import Enum
from typing import Optional

import httpx

from helpdesk.config import settings
from helpdesk.errors import GenerationError

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/generate"
STATUS_PATH = "/api/tags"

PROMPT_TEMPLATE = "Question: {question}\nContext: {context}\nAnswer:"


class GenerationStatus(str, Enum):
    """Result of the connectivity check"""

    CHECKING = "checking"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


def _error_detail(response: httpx.Response) -> str:
    # Ollama reports failures as {"error": "..."}
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return response.text[:200]


def build_prompt(question: str, context: str = "") -> str:
    """Render the prompt sent to the generation service."""
    return PROMPT_TEMPLATE.format(question=question, context=context)


class GenerationClient:
    """Synchronous, non-streaming client for /api/generate"""

    def __init__(
        self,
        base_url: str,
        model: str = "mistral",
        temperature: float = 0.7,
        top_p: float = 0.9,
        num_predict: int = 2048,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.num_predict = num_predict
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "GenerationClient":
        return cls(
            base_url=settings.generation_url,
            model=settings.generation_model,
            temperature=settings.generation_temperature,
            top_p=settings.generation_top_p,
            num_predict=settings.generation_num_predict,
            timeout=settings.generation_timeout,
        )

    def _client(self) -> httpx.Client:
        return httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    def build_payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": self.temperature,
                "top_p": self.top_p,
                "num_predict": self.num_predict,
            },
        }

    def generate(self, prompt: str) -> str:
        """
        Send one generation request and return the generated text.

        Args:
            prompt: Full prompt text

        Returns:
            The "response" field of the service reply

        Raises:
            GenerationError: connection failure, error status, or unreadable reply
        """
        logger.info("[generation] IN  model=%s prompt_len=%d", self.model, len(prompt))
        try:
            with self._client() as client:
                response = client.post(GENERATE_PATH, json=self.build_payload(prompt))
        except httpx.HTTPError as e:
            raise GenerationError(f"Failed to connect to generation service: {e}") from e

        if response.status_code >= 400:
            raise GenerationError(
                f"Generation service error {response.status_code}: {_error_detail(response)}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GenerationError("Generation service returned invalid JSON") from e

        if not isinstance(data, dict) or not isinstance(data.get("response"), str):
            raise GenerationError("Generation service reply has no 'response' text")

        out = data["response"]
        logger.info("[generation] OUT response_len=%d done=%s", len(out), data.get("done"))
        return out

    def check_status(self) -> GenerationStatus:
        """Check the service once. Only used for display."""
        try:
            with self._client() as client:
                response = client.get(STATUS_PATH)
        except httpx.HTTPError as e:
            logger.warning("[generation] status check failed: %s", e)
            return GenerationStatus.DISCONNECTED

        if response.status_code == 200:
            return GenerationStatus.CONNECTED
        logger.warning("[generation] status check returned %s", response.status_code)
        return GenerationStatus.ERROR
