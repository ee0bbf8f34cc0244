"""
Exceptions raised by the tender aggregator.

Provider failures are absorbed where the provider is called and never reach
the caller.  Only bad caller input (an unknown jurisdiction code or a
malformed filter) propagates out of the aggregator.
"""

from typing import Iterable, Optional


class TenderAggregatorError(Exception):
    """Base class for every error raised by this package."""


class ProviderUnavailableError(TenderAggregatorError):
    """A provider's live source could not be used for this fetch."""

    def __init__(self, provider: str, reason: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason
        self.cause = cause


class UnsupportedJurisdictionError(TenderAggregatorError, ValueError):
    def __init__(self, code: str, supported: Iterable[str]) -> None:
        self.code = code
        self.supported = sorted(supported)
        super().__init__(
            f"Unsupported country: {code}. "
            f"Supported countries: {', '.join(self.supported)}"
        )


class InvalidFilterError(TenderAggregatorError, ValueError):
    def __init__(self, field: str, value) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Invalid value for filter '{field}': {value!r}")
