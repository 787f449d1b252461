from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from portfolio_audit.config.settings import AppSettings, settings as default_settings
from portfolio_audit.errors import AuthenticationError, ProviderError, RateLimitError

# HTTP status codes that indicate a transient failure worth retrying
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class TransientProviderError(ProviderError):
    """A retryable transport failure (timeout, 429, 5xx)."""

    pass


def extract_text(payload: Dict[str, Any]) -> str:
    """Join the text parts of the first candidate of a generateContent response."""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        feedback = payload.get("promptFeedback")
        raise ProviderError(f"Response carries no candidates (feedback: {feedback})")

    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    pieces: List[str] = []
    for part in parts:
        if isinstance(part, dict) and isinstance(part.get("text"), str):
            # Skip reasoning summaries, keep the answer text only
            if part.get("thought"):
                continue
            pieces.append(part["text"])
    return "".join(pieces).strip()


class GeminiClient:
    """Async client for the generative language ``generateContent`` endpoint.

    Used both by the match source providers (search-augmented generation) and
    by the audit oracle. A single request is made per call; retries are left
    to the caller.
    """

    def __init__(
        self,
        app_settings: Optional[AppSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = app_settings or default_settings
        self.client = client or httpx.AsyncClient(
            base_url=self.settings.gemini_base_url,
            timeout=httpx.Timeout(self.settings.http_timeout_sec),
            follow_redirects=True,
        )

    def _build_body(
        self,
        prompt: str,
        system_instruction: Optional[str],
        use_search: bool,
        json_output: bool,
        thinking_budget: Optional[int],
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        }
        if system_instruction:
            body["systemInstruction"] = {"parts": [{"text": system_instruction}]}
        if use_search:
            body["tools"] = [{"google_search": {}}]

        generation_config: Dict[str, Any] = {}
        # Search grounding does not combine with a JSON mime type; callers strip
        # any markdown wrapping from the text instead.
        if json_output and not use_search:
            generation_config["responseMimeType"] = "application/json"
        if thinking_budget:
            generation_config["thinkingConfig"] = {"thinkingBudget": thinking_budget}
        if generation_config:
            body["generationConfig"] = generation_config
        return body

    async def generate(
        self,
        model: str,
        prompt: str,
        *,
        system_instruction: Optional[str] = None,
        use_search: bool = False,
        json_output: bool = True,
        thinking_budget: Optional[int] = None,
    ) -> str:
        """Run one generateContent call and return the response text.

        Raises:
            ConfigurationError: no API key configured (raised before any I/O).
            AuthenticationError: the key was rejected (401/403).
            RateLimitError: the service answered 429.
            TransientProviderError: network error or retryable 5xx.
            ProviderError: any other failure.
        """
        api_key = self.settings.require_api_key()
        body = self._build_body(
            prompt, system_instruction, use_search, json_output, thinking_budget
        )
        url = f"/models/{model}:generateContent"
        logger.debug("Calling generateContent", model=model, use_search=use_search)

        try:
            response = await self.client.post(
                url, json=body, headers={"x-goog-api-key": api_key}
            )
        except httpx.TimeoutException as e:
            raise TransientProviderError(f"Request to {model} timed out") from e
        except httpx.RequestError as e:
            raise TransientProviderError(f"Network error calling {model}: {e}") from e

        if response.status_code in {401, 403}:
            logger.warning(
                f"Authentication error ({response.status_code}) for model {model}. Check API key."
            )
            raise AuthenticationError(
                f"Authentication failed ({response.status_code}) for {model}"
            )

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            logger.warning(f"Rate limit hit (429) for {model}. Retry-After: {retry_after}")
            raise RateLimitError(f"Rate limited by {model}")

        if response.status_code in RETRYABLE_STATUS_CODES:
            raise TransientProviderError(
                f"HTTP {response.status_code} from {model}"
            )

        if response.status_code >= 400:
            logger.error(f"HTTP error from {model}: {response.status_code}")
            raise ProviderError(f"HTTP error: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError(f"Non-JSON envelope from {model}") from e
        if not isinstance(payload, dict):
            raise ProviderError(f"Unexpected envelope type from {model}: {type(payload)}")

        text = extract_text(payload)
        logger.debug(f"Received {len(text)} characters from {model}")
        return text

    async def close(self):
        """Closes the underlying HTTP client."""
        await self.client.aclose()
        logger.info("Closed HTTP client for generative provider")
