"""
LLM client for OpenAI-compatible chat completion endpoints.

Works with any server exposing ``/v1/chat/completions`` (vLLM, llama.cpp
server, Ollama, TGI, hosted OpenAI-compatible APIs).
"""

import logging
import time
from typing import Optional

import requests

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (502, 503, 504)


class CustomEndpointLLM:
    """LLM client for OpenAI-compatible endpoints."""

    def __init__(
        self,
        endpoint_url: str,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 1024,
        timeout: int = 120,
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ):
        """
        Initialize custom endpoint client.

        Args:
            endpoint_url: Full URL to the /v1/chat/completions endpoint
            model: Model name sent in the payload (omitted when None)
            api_key: Bearer token (omitted when None)
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
            max_retries: Attempts for 502/503/504 and connection errors
            retry_delay: Initial delay between retries (doubles each attempt)
        """
        self.endpoint_url = endpoint_url
        self.model = model
        self.api_key = api_key
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    def _payload(self, prompt: str) -> dict:
        payload = {
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self.model:
            payload["model"] = self.model
        return payload

    def _headers(self) -> dict[str, str]:
        if self.api_key:
            return {"Authorization": f"Bearer {self.api_key}"}
        return {}

    def invoke(self, prompt: str) -> str:
        """
        Call the LLM with a prompt.

        Retries with exponential backoff on gateway errors and dropped
        connections, which serverless endpoints return during cold starts.

        Args:
            prompt: The input prompt text

        Returns:
            The generated response text

        Raises:
            requests.RequestException: If the request fails after all retries
            ValueError: If the response has no completion
        """
        for attempt in range(self.max_retries):
            try:
                response = requests.post(
                    self.endpoint_url,
                    json=self._payload(prompt),
                    headers=self._headers(),
                    timeout=self.timeout,
                )
                response.raise_for_status()
                break

            except requests.HTTPError as e:
                status = e.response.status_code if e.response is not None else None
                if status not in RETRYABLE_STATUS_CODES or attempt == self.max_retries - 1:
                    raise
                self._backoff(attempt, f"Endpoint returned {status}")

            except (requests.Timeout, requests.ConnectionError) as e:
                if attempt == self.max_retries - 1:
                    raise
                self._backoff(attempt, f"Connection error: {e}")

        result = response.json()
        try:
            return result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Endpoint returned no completion: {result!r}") from e

    def _backoff(self, attempt: int, reason: str) -> None:
        delay = self.retry_delay * (2 ** attempt)
        logger.warning(
            f"{reason}, retrying in {delay:.1f}s (attempt {attempt + 1}/{self.max_retries})"
        )
        time.sleep(delay)
