"""
Answer Engine Client
--------------------
The one external collaborator of the sampler: ask a question, get text back.

Talks to Perplexity's OpenAI-compatible chat completions endpoint with a
bearer key. No retries: a failed call surfaces as AnswerEngineError and the
caller decides what that means for the sample.
"""

import logging
from typing import Optional

import requests

from config.settings import settings

logger = logging.getLogger(__name__)


class AnswerEngineError(RuntimeError):
    """Transport failure or non-2xx response from the answer engine."""


class PerplexityClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[int] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = settings.PERPLEXITY_API_KEY if api_key is None else api_key
        self.model = model or settings.PERPLEXITY_MODEL
        self.api_url = api_url or settings.PERPLEXITY_API_URL
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def ask(self, system: str, prompt: str) -> str:
        """Send one system+user exchange and return the assistant text."""
        if not self.has_api_key:
            raise AnswerEngineError("PERPLEXITY_API_KEY not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": settings.PERPLEXITY_TEMPERATURE,
            "stream": False,
        }

        try:
            resp = self.session.post(self.api_url, headers=headers, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AnswerEngineError(f"Perplexity request failed: {e}") from e

        if resp.status_code < 200 or resp.status_code >= 300:
            raise AnswerEngineError(f"Perplexity API error {resp.status_code}: {resp.text[:300]}")

        try:
            data = resp.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AnswerEngineError(f"Unexpected Perplexity response shape: {e}") from e

    def __repr__(self):
        return f"<PerplexityClient model={self.model} key={'set' if self.has_api_key else 'missing'}>"
