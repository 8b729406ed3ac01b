"""
Failure taxonomy for the utility-bill scraping pipeline.
"""

from __future__ import annotations

from enum import Enum


class FailureCategory(str, Enum):
    CONFIGURATION_ERROR = "configuration_error"
    CAPTCHA_REQUIRED = "captcha_required"
    AUTHENTICATION_FAILED = "authentication_failed"
    RATE_LIMITED = "rate_limited"
    TIMEOUT = "timeout"
    TRANSPORT_FAILURE = "transport_failure"
    UNSUPPORTED_PROVIDER = "unsupported_provider"
    UNKNOWN = "unknown"


# Retrying with the same inputs cannot change the outcome.
FATAL_CATEGORIES = frozenset(
    {
        FailureCategory.CONFIGURATION_ERROR,
        FailureCategory.CAPTCHA_REQUIRED,
        FailureCategory.AUTHENTICATION_FAILED,
        FailureCategory.UNSUPPORTED_PROVIDER,
    }
)


class ScrapingError(Exception):
    """
    Base exception for scraping pipeline failures.

    Subclasses pin a category; the base class leaves it to the classifier's
    text rules.
    """

    category: FailureCategory | None = None


class ConfigurationError(ScrapingError):
    """Service-side setup is missing (automation API key, database extension, provider setup)."""

    category = FailureCategory.CONFIGURATION_ERROR


class DecryptionUnavailableError(ConfigurationError):
    """Raised when the credential decryption mechanism is not provisioned."""


class ProviderConfigurationError(ConfigurationError):
    """Raised when a provider profile is missing or has no property assignment."""


class CaptchaRequiredError(ScrapingError):
    category = FailureCategory.CAPTCHA_REQUIRED


class AuthenticationFailedError(ScrapingError):
    category = FailureCategory.AUTHENTICATION_FAILED


class CredentialsNotFoundError(AuthenticationFailedError):
    """Raised when the secret store holds no usable credentials for a provider."""


class RateLimitedError(ScrapingError):
    category = FailureCategory.RATE_LIMITED


class ScrapeTimeoutError(ScrapingError):
    category = FailureCategory.TIMEOUT


class TransportFailureError(ScrapingError):
    category = FailureCategory.TRANSPORT_FAILURE


class UnsupportedProviderError(ScrapingError):
    category = FailureCategory.UNSUPPORTED_PROVIDER


class AutomationServiceError(ScrapingError):
    """
    Raised for automation service responses; the message carries the
    service's error text or HTTP status for classification.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class MissingJobIdError(ScrapingError):
    """Raised when the automation service accepts a request but returns no job id."""


class CredentialsLookupError(ScrapingError):
    """Raised when the secret store fails for a reason other than missing decryption support."""


class ScrapeFailedError(ScrapingError):
    """
    Final outcome of a provider attempt that will not be retried.

    Attributes:
        provider_id: Provider whose scrape failed.
        category: Classified failure category.
        user_message: Message surfaced to the caller.
        attempts: Total number of attempts made.
    """

    def __init__(
        self,
        *,
        provider_id: str,
        category: FailureCategory,
        user_message: str,
        attempts: int,
    ) -> None:
        self.provider_id = provider_id
        self.category = category
        self.user_message = user_message
        self.attempts = attempts
        super().__init__(user_message)
