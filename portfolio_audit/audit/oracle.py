import json
from typing import Optional

from loguru import logger
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from portfolio_audit.audit.validator import validate_audit_response
from portfolio_audit.config.settings import AppSettings, settings as default_settings
from portfolio_audit.errors import AuditUnavailableError, ProviderError, RateLimitError
from portfolio_audit.models.audit import AuditRequest, AuditResult
from portfolio_audit.providers.gemini_client import GeminiClient, TransientProviderError

SYSTEM_INSTRUCTION = """You are a professional sports betting risk auditor. Your task is
to strictly audit the user's betting portfolio.

Rules:
1. Logical conflicts: picking a home win together with a 0:1 correct score on the
   same match is impossible; flag such combinations.
2. Correct score picks are very high risk; check the recent scoring curves. A 0:0
   pick on two strongly attacking teams is HIGH.
3. Odds divergence: if the international (Kelly) index is above 1.0 for the picked
   outcome, treat it as a bookmaker trap.
4. Football vs basketball: for football weigh European distraction and dressing room
   news; for basketball weigh back-to-backs and star rest.

Return JSON only, with exactly this structure:
{
  "summary": {"status": "PASS" | "WARNING" | "CRITICAL", "risk_score": 0-100, "text": "short verdict"},
  "details": [
    {
      "selection_ref": "match_id",
      "risk_level": "LOW" | "MEDIUM" | "HIGH",
      "tag": "short label",
      "analysis_text": "critique in under 50 words",
      "optimization": {"available": true, "type": "SAFETY_NET" | "PIVOT",
                       "suggested_pick": "alternative", "suggested_reason": "why"}
    }
  ]
}"""

AUDIT_PROMPT = """Audit this portfolio. Focus on live odds movement and Kelly index deviation.

Portfolio: {portfolio}

Match context: {context}

You must return JSON."""


class AuditOracle:
    """Submits portfolios to the external risk-assessment model.

    Each call is stateless. Transient transport failures are retried with
    exponential backoff; an invalid response is never retried and surfaces as
    ``MalformedResponseError``.
    """

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        app_settings: Optional[AppSettings] = None,
        max_attempts: Optional[int] = None,
        wait_multiplier: float = 1.0,
    ):
        self.settings = app_settings or default_settings
        self.client = client or GeminiClient(self.settings)
        self.max_attempts = max_attempts or self.settings.audit_max_attempts
        self.wait_multiplier = wait_multiplier

    def render_prompt(self, request: AuditRequest) -> str:
        payload = request.to_payload()
        return AUDIT_PROMPT.format(
            portfolio=json.dumps(payload["portfolio"], ensure_ascii=False),
            context=json.dumps(payload["context"], ensure_ascii=False),
        )

    async def _generate(self, prompt: str) -> str:
        return await self.client.generate(
            self.settings.audit_model,
            prompt,
            system_instruction=SYSTEM_INSTRUCTION,
            json_output=True,
            thinking_budget=self.settings.audit_thinking_budget,
        )

    async def submit(self, request: AuditRequest) -> AuditResult:
        """Send ``request`` to the oracle and return the validated result.

        Raises:
            ConfigurationError: no API key configured.
            AuditUnavailableError: the oracle could not be reached.
            MalformedResponseError: the oracle answered with an invalid payload.
        """
        prompt = self.render_prompt(request)
        logger.info(f"Submitting audit for {len(request.portfolio)} selection(s)")

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.wait_multiplier, min=0, max=10),
                retry=retry_if_exception_type((TransientProviderError, RateLimitError)),
                reraise=False,
            ):
                with attempt:
                    text = await self._generate(prompt)
        except RetryError as e:
            last = e.last_attempt.exception()
            logger.error(f"Audit oracle unreachable after {self.max_attempts} attempts: {last}")
            raise AuditUnavailableError(f"Audit engine unavailable: {last}") from last
        except ProviderError as e:
            logger.error(f"Audit oracle request failed: {e}")
            raise AuditUnavailableError(f"Audit engine unavailable: {e}") from e

        return validate_audit_response(text)

    async def close(self):
        await self.client.close()
