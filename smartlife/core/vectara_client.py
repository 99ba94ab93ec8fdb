"""
Vectara query API client.
Answers assistant questions with a grounded summary over the configured corpus.
"""

from typing import Any, Dict, Optional

import requests
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from smartlife.config import get_settings
from smartlife.core.huggingface_client import AssistantProviderError


class VectaraClient:
    """
    Wrapper for the Vectara v2 query endpoint with summary generation enabled.
    """

    provider = "vectara"

    def __init__(
        self,
        api_key: Optional[str] = None,
        corpus_key: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.api_key = api_key or settings.vectara_api_key
        self.corpus_key = corpus_key or settings.vectara_corpus_key
        self.api_url = api_url or settings.vectara_api_url
        self.timeout = timeout or settings.ai_request_timeout
        if not self.api_key or not self.corpus_key:
            raise AssistantProviderError("VECTARA_API_KEY and VECTARA_CORPUS_KEY must be configured")

        # Set by the last successful query, used as the interaction confidence
        self.last_score: Optional[float] = None

    def _build_payload(self, query: str) -> Dict[str, Any]:
        return {
            "query": query,
            "search": {
                "corpora": [{"corpus_key": self.corpus_key}],
                "limit": 10,
            },
            "generation": {
                "max_used_search_results": 5,
                "response_language": "eng",
                "enable_factual_consistency_score": True,
                "model_parameters": {"max_tokens": 300},
            },
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(requests.RequestException),
        reraise=True,
    )
    def generate(self, prompt: str, query: Optional[str] = None) -> str:
        """
        Ask the corpus a question.

        Args:
            prompt: Prompt text, used as the query when no separate query is given
            query: The raw user question

        Returns:
            The generated summary
        """
        response = requests.post(
            self.api_url,
            headers={
                "x-api-key": self.api_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            json=self._build_payload(query or prompt),
            timeout=self.timeout,
        )
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise AssistantProviderError("Unexpected response from Vectara")

        summary = data.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            raise AssistantProviderError("Vectara returned no summary")
        score = data.get("factual_consistency_score")
        self.last_score = score if isinstance(score, (int, float)) else None
        return summary.strip()
