"""Error kinds raised by the swap flow.

Every error keeps the structured data it was raised with (status code,
body, transaction hash...) so callers can branch on it instead of parsing
messages. A monitor timeout is not an error: it is reported as
``MonitorOutcome.TIMED_OUT``.
"""

from typing import Any, Optional


class SwapIntentError(Exception):
    """Base class for all swap errors."""


class ConfigurationError(SwapIntentError):
    """Required credential or endpoint missing at startup."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(f"Missing required configuration: {', '.join(self.missing)}")


class VenueError(SwapIntentError):
    """Base class for failed calls to the order venue."""


class VenueRejection(VenueError):
    """The venue answered with a non-2xx status."""

    def __init__(self, status_code: int, body: Any, url: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.url = url
        super().__init__(f"API Error: {status_code} - {body}")


class NetworkUnavailable(VenueError):
    """The request was sent but no response was received."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.message = message
        self.url = url
        super().__init__(f"No response received from server: {message}")


class RequestConstructionError(VenueError):
    """The request could not be built locally."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Request Error: {message}")


class MalformedResponse(VenueError):
    """A 2xx response whose payload could not be understood."""

    def __init__(self, message: str, body: Any = None):
        self.message = message
        self.body = body
        super().__init__(f"Malformed response: {message}")


class SigningFailure(SwapIntentError):
    """The signing collaborator refused or failed."""


class ChainTransactionFailure(SwapIntentError):
    """An on-chain transaction failed to submit, reverted or never confirmed."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message if not tx_hash else f"{message} (tx {tx_hash})")


class ChainReadFailure(SwapIntentError):
    """A read-only chain call failed (RPC unreachable, bad response...)."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ContractCallReverted(ChainReadFailure):
    """The contract has no such function or the call reverted."""
