"""
Failure classification for scraping attempts and job records.

Raw failure text comes from three places: the automation service response,
transport errors raised while calling it, and the `error_message` column the
automation service writes on failed jobs. The text is vendor-controlled, so
classification is a prioritized list of rules; the first match wins and
anything unmatched falls back to `UNKNOWN`.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from app.scraping.errors import FailureCategory, ScrapingError

Predicate = Callable[[str], bool]

UNAVAILABLE_MESSAGE = "The utility provider service is currently unavailable. Please try again later."
UNKNOWN_MESSAGE = "An unexpected error occurred while fetching utility bills. Please try again later."

DEFAULT_MESSAGES: dict[FailureCategory, str] = {
    FailureCategory.CONFIGURATION_ERROR: (
        "The scraping service is not configured correctly. Please contact an administrator."
    ),
    FailureCategory.CAPTCHA_REQUIRED: (
        "The provider website requires CAPTCHA verification which could not be solved "
        "automatically. Please complete the action manually on the provider's website."
    ),
    FailureCategory.AUTHENTICATION_FAILED: (
        "Failed to log in to the provider website. Please check your credentials and try again."
    ),
    FailureCategory.RATE_LIMITED: (
        "The scraping service quota has been exceeded. Please try again later."
    ),
    FailureCategory.TIMEOUT: (
        "The provider website is responding slowly or is temporarily down. Please try again later."
    ),
    FailureCategory.TRANSPORT_FAILURE: UNAVAILABLE_MESSAGE,
    FailureCategory.UNSUPPORTED_PROVIDER: (
        "This utility provider is not supported for automatic bill retrieval yet."
    ),
    FailureCategory.UNKNOWN: UNKNOWN_MESSAGE,
}


def contains(*needles: str) -> Predicate:
    """Case-insensitive substring predicate matching any of `needles`."""

    lowered = tuple(needle.lower() for needle in needles)
    return lambda text: any(needle in text.lower() for needle in lowered)


def matches(pattern: str) -> Predicate:
    """Case-insensitive regex search predicate."""

    compiled = re.compile(pattern, re.IGNORECASE)
    return lambda text: compiled.search(text) is not None


@dataclass(frozen=True)
class ClassificationRule:
    category: FailureCategory
    message: str
    predicate: Predicate

    def applies_to(self, text: str) -> bool:
        return self.predicate(text)


@dataclass(frozen=True)
class ClassifiedFailure:
    category: FailureCategory
    message: str
    raw: str


DEFAULT_RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        FailureCategory.CONFIGURATION_ERROR,
        "The pgcrypto database extension is not enabled, so provider credentials cannot be "
        "decrypted. Please contact an administrator.",
        contains("pgcrypto"),
    ),
    ClassificationRule(
        FailureCategory.CONFIGURATION_ERROR,
        "The scraping service is missing its automation API key. Please contact an administrator.",
        matches(r"api[\s_-]?key|browserless"),
    ),
    ClassificationRule(
        FailureCategory.CONFIGURATION_ERROR,
        "There is a configuration issue with the scraping service. Please contact support.",
        matches(r"\"?(?:options|elements)\"? is not allowed"),
    ),
    ClassificationRule(
        FailureCategory.CONFIGURATION_ERROR,
        "This utility provider is not linked to a property. Please update the provider settings.",
        contains("invalid provider configuration"),
    ),
    ClassificationRule(
        FailureCategory.TIMEOUT,
        "CAPTCHA was submitted but the process was interrupted afterward. Please try again.",
        matches(r"captcha.*submitted"),
    ),
    ClassificationRule(
        FailureCategory.CAPTCHA_REQUIRED,
        DEFAULT_MESSAGES[FailureCategory.CAPTCHA_REQUIRED],
        contains("captcha"),
    ),
    ClassificationRule(
        FailureCategory.AUTHENTICATION_FAILED,
        "No credentials are stored for this provider. Please update the provider credentials.",
        contains("no credentials found", "no valid utility provider credentials"),
    ),
    ClassificationRule(
        FailureCategory.AUTHENTICATION_FAILED,
        DEFAULT_MESSAGES[FailureCategory.AUTHENTICATION_FAILED],
        contains(
            "login failed",
            "invalid credentials",
            "invalid username or password",
            "incorrect password",
            "authentication failed",
        ),
    ),
    ClassificationRule(
        FailureCategory.RATE_LIMITED,
        DEFAULT_MESSAGES[FailureCategory.RATE_LIMITED],
        matches(r"rate.?limit|too many requests|quota|\b429\b"),
    ),
    ClassificationRule(
        FailureCategory.UNSUPPORTED_PROVIDER,
        DEFAULT_MESSAGES[FailureCategory.UNSUPPORTED_PROVIDER],
        contains("unsupported provider", "no scraper implementation"),
    ),
    ClassificationRule(
        FailureCategory.TIMEOUT,
        "Successfully logged in but the process timed out when navigating to the invoices page. "
        "The provider website is responding slowly. Please try again during off-peak hours.",
        contains("waiting for login navigation", "/prima-pagina"),
    ),
    ClassificationRule(
        FailureCategory.TIMEOUT,
        "The process failed while selecting the consumption location on the provider website. "
        "Please try again later.",
        contains("schimbă locul de consum", "alege locul de consum", "change consumption location"),
    ),
    ClassificationRule(
        FailureCategory.TIMEOUT,
        "The process timed out while waiting for the invoices table to load. Please try again later.",
        contains("istoric-facturi", "table/tbody"),
    ),
    ClassificationRule(
        FailureCategory.TIMEOUT,
        "The process was interrupted by a promotional popup on the provider website. "
        "Please try again later.",
        contains("myengie app popup", "mai târziu"),
    ),
    ClassificationRule(
        FailureCategory.TRANSPORT_FAILURE,
        "The scraping process was terminated because the provider website responded too slowly. "
        "Please try again in a few minutes.",
        contains("function is shutdown", "earlydrop"),
    ),
    ClassificationRule(
        FailureCategory.TRANSPORT_FAILURE,
        "Failed to retrieve invoice history from the provider. The service might be temporarily "
        "unavailable.",
        contains("myservices/v1/invoices/history"),
    ),
    ClassificationRule(
        FailureCategory.TRANSPORT_FAILURE,
        "Failed to retrieve consumption locations from the provider. Please try again later.",
        contains("myservices/v1/placesofconsumption"),
    ),
    ClassificationRule(
        FailureCategory.TRANSPORT_FAILURE,
        "Failed to download invoice files from the provider. Please try again later.",
        contains("myservices/v1/invoices/download"),
    ),
    ClassificationRule(
        FailureCategory.TRANSPORT_FAILURE,
        "Failed to communicate with the provider's services. Please try again later.",
        contains("gwss.engie.ro"),
    ),
    ClassificationRule(
        FailureCategory.TRANSPORT_FAILURE,
        UNAVAILABLE_MESSAGE,
        matches(
            r"non-2xx|status code [45]\d\d\b|internal server error|bad gateway|service unavailable"
            r"|temporarily unavailable|connection (?:error|refused|reset|aborted)"
            r"|failed to establish|name resolution|network (?:error|is unreachable)"
        ),
    ),
    ClassificationRule(
        FailureCategory.TIMEOUT,
        DEFAULT_MESSAGES[FailureCategory.TIMEOUT],
        matches(r"time(?:d)?\s?out"),
    ),
    ClassificationRule(
        FailureCategory.UNKNOWN,
        "The scraping service did not return a job reference. Please try again.",
        contains("no job id returned"),
    ),
)


class ErrorClassifier:
    """
    Maps raw failures to a category and a user-facing message.
    """

    def __init__(self, rules: Sequence[ClassificationRule] | None = None) -> None:
        self._rules: tuple[ClassificationRule, ...] = tuple(rules if rules is not None else DEFAULT_RULES)

    def classify(self, error: BaseException | str | None) -> ClassifiedFailure:
        raw = "" if error is None else str(error).strip()
        pinned = error.category if isinstance(error, ScrapingError) else None

        if pinned is not None:
            for rule in self._rules:
                if rule.category is pinned and rule.applies_to(raw):
                    return ClassifiedFailure(category=pinned, message=rule.message, raw=raw)
            return ClassifiedFailure(category=pinned, message=DEFAULT_MESSAGES[pinned], raw=raw)

        if raw:
            for rule in self._rules:
                if rule.applies_to(raw):
                    return ClassifiedFailure(category=rule.category, message=rule.message, raw=raw)

        return ClassifiedFailure(category=FailureCategory.UNKNOWN, message=UNKNOWN_MESSAGE, raw=raw)
