"""Error types of the document question service.

ExtractionError ends up on a Document as its failed state. SynthesisError and
its subclasses are converted to user-facing answer strings by the answer
synthesizer and never reach the caller.
"""


class ExtractionError(Exception):
    """A payload could not be turned into page texts."""


class SynthesisError(Exception):
    """Base class for failures of one answer strategy attempt."""

    def __init__(self, message: str, provider: str = "", model: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.model = model


class ProviderAuthError(SynthesisError):
    """The provider rejected (or was never given) the credential."""


class ProviderRequestError(SynthesisError):
    """The provider answered with a non-success status."""

    def __init__(self, message: str, provider: str = "", model: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message, provider=provider, model=model)
        self.status_code = status_code


class ProviderTransportError(SynthesisError):
    """The request never produced a usable HTTP response (timeout, connection, ...)."""


class MalformedResponseError(SynthesisError):
    """A success response did not match the provider's documented shape."""
