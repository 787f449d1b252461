class PortfolioAuditError(Exception):
    """Base exception for the portfolio audit service."""

    pass


class ConfigurationError(PortfolioAuditError):
    """Raised when required configuration (API credentials) is missing."""

    pass


class ProviderError(PortfolioAuditError):
    """Custom exception for data provider transport errors."""

    pass


class AuthenticationError(ProviderError):
    """Exception raised for authentication failures (401, 403)."""

    pass


class RateLimitError(ProviderError):
    """Exception raised for rate limit errors (429)."""

    pass


class ProviderTimeout(ProviderError):
    """A provider did not answer within its wall-clock budget."""

    pass


class SchemaError(PortfolioAuditError):
    """Raised when a match catalog payload fails validation."""

    pass


class AllProvidersExhausted(PortfolioAuditError):
    """No provider produced a catalog for the requested source."""

    pass


class MalformedResponseError(PortfolioAuditError):
    """Raised when the audit oracle response does not match the result schema."""

    pass


class AuditUnavailableError(PortfolioAuditError):
    """The audit oracle could not be reached (after retries)."""

    pass


class AuditInProgressError(PortfolioAuditError):
    """An audit was triggered while another one is still outstanding."""

    pass
