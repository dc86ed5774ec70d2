"""Exception types raised by the calculator core.

Network problems (``ProviderFailure``, ``AllProvidersFailure``,
``RateFetchFailure``) stay inside the fetcher and are recovered with static
data. ``ValidationError`` and ``PreconditionError`` reach the caller and are
meant to be shown to the user.
"""


class CryptoCalcError(Exception):
    pass


class ProviderFailure(CryptoCalcError):
    """A single price provider returned an error status or unusable body."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class AllProvidersFailure(CryptoCalcError):
    """Every configured price provider failed in one fetch cycle."""

    def __init__(self, failures: list[ProviderFailure]):
        detail = "; ".join(str(f) for f in failures) or "no providers configured"
        super().__init__(f"All price providers failed ({detail})")
        self.failures = failures


class RateFetchFailure(CryptoCalcError):
    pass


class ValidationError(CryptoCalcError, ValueError):
    """User input cannot be used for a calculation."""


class PreconditionError(CryptoCalcError):
    """Market data needed for a calculation has not been loaded."""
