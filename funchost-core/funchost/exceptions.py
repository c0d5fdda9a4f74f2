class FunctionHostError(Exception):
    """Base class for errors raised by funchost."""


class ConfigurationError(FunctionHostError):
    """Raised when a server configuration value cannot be resolved into a valid setting."""


class UnrecognizedFunctionKind(FunctionHostError):
    """Raised when a server is created for a function whose kind it cannot dispatch. This is a programming
    error of the embedder and is not meant to be recovered from."""

    def __init__(self, kind) -> None:
        super().__init__(f"Unrecognized function type: {kind}")
        self.kind = kind


class UnexpectedResponseType(FunctionHostError):
    """Raised (or rather, rendered) when a function returns a value that cannot be turned into a response."""

    def __init__(self, value) -> None:
        super().__init__(f"Unexpected response type: {type(value).__name__}")
        self.value = value


class EventDecodeError(FunctionHostError):
    """Raised by an event decoder that recognized a request, but could not decode it."""
