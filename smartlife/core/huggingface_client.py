"""
HuggingFace Inference API client for assistant responses.
Provides a thin wrapper around the hosted text-generation endpoint with retry logic.
"""

import logging
from typing import Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from smartlife.config import get_settings


logger = logging.getLogger(__name__)


class AssistantProviderError(Exception):
    """Raised when a hosted model returns an unusable answer."""


class HuggingFaceClient:
    """
    Wrapper for a HuggingFace Inference API text-generation model.
    """

    provider = "huggingface"

    def __init__(self, api_url: Optional[str] = None, api_key: Optional[str] = None, timeout: Optional[float] = None):
        settings = get_settings()
        self.api_url = api_url or settings.huggingface_api_url
        self.api_key = api_key or settings.huggingface_api_key
        self.timeout = timeout or settings.ai_request_timeout
        if not self.api_url:
            raise AssistantProviderError("HUGGINGFACE_API_URL is not configured")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(requests.RequestException),
        reraise=True,
    )
    def generate(self, prompt: str, max_new_tokens: int = 256) -> str:
        """
        Generate a completion for the prompt.

        Args:
            prompt: Full prompt including the assistant context
            max_new_tokens: Generation budget

        Returns:
            Generated text with the echoed prompt removed
        """
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        response = requests.post(
            self.api_url,
            headers=headers,
            json={
                "inputs": prompt,
                "parameters": {"max_new_tokens": max_new_tokens, "return_full_text": False},
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()

        # The inference API answers with [{"generated_text": ...}] or {"error": ...}
        if isinstance(data, dict) and data.get("error"):
            raise AssistantProviderError(str(data["error"]))
        if isinstance(data, list) and data:
            data = data[0]
        text = data.get("generated_text") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise AssistantProviderError("Unexpected response from HuggingFace")

        # Some models echo the prompt regardless of return_full_text
        if text.startswith(prompt):
            text = text[len(prompt):]
        text = text.strip()
        if not text:
            raise AssistantProviderError("Empty response from HuggingFace")
        return text
