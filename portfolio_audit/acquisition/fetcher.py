from typing import List, Optional

from loguru import logger

from portfolio_audit.acquisition.provider_config import CatalogRequest, ProviderConfig
from portfolio_audit.config.settings import AppSettings, settings as default_settings
from portfolio_audit.models.match import Match
from portfolio_audit.normalization.catalog_decoder import decode_catalog
from portfolio_audit.providers.gemini_client import GeminiClient


class MatchCatalogFetcher:
    """Performs one round-trip to one match source provider.

    No retries and no timeout handling: the orchestrator owns both.
    """

    def __init__(
        self,
        client: Optional[GeminiClient] = None,
        app_settings: Optional[AppSettings] = None,
    ):
        self.settings = app_settings or default_settings
        self.client = client or GeminiClient(self.settings)

    async def fetch_once(
        self, provider: ProviderConfig, request: CatalogRequest
    ) -> List[Match]:
        """Fetch and decode a catalog from ``provider``.

        Raises:
            ConfigurationError: credentials are missing.
            ProviderError: the transport failed.
            SchemaError: the payload is not a valid match catalog.
        """
        prompt = provider.render_prompt(request, self.settings.matches_per_fetch)
        model = provider.model or self.settings.catalog_model
        logger.info(
            f"Fetching catalog from provider '{provider.name}' ({model}) for {request.as_of_date}"
        )

        text = await self.client.generate(
            model, prompt, use_search=provider.use_search, json_output=True
        )
        matches = decode_catalog(text)

        logger.info(f"Provider '{provider.name}' returned {len(matches)} matches.")
        return matches

    async def close(self):
        await self.client.close()
