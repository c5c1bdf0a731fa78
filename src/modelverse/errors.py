"""Exception types shared across the chat and LLM layers."""


class ModelVerseError(Exception):
    """Base class for all ModelVerse errors."""


class UnknownModelError(ModelVerseError, ValueError):
    """Raised when a model identifier has no registered provider prefix."""


class ProviderUnavailableError(ModelVerseError):
    """Raised when the provider owning a model has no credentials configured."""


class EmptyResponseError(ModelVerseError):
    """Raised when a provider answers without any text."""


class ChatBusyError(ModelVerseError):
    """Raised when the chat log is changed while a request is in flight."""


class TranscriptFormatError(ModelVerseError, ValueError):
    """Raised when an imported chat transcript does not match the export shape."""
