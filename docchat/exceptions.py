"""Error taxonomy shared by the chat pipeline and its transport."""


class DocChatError(Exception):
    """Base class for errors raised by docchat."""


class ValidationError(DocChatError):
    """Client input is missing or malformed."""


class UpstreamError(DocChatError):
    """An embedding, vector index or completion provider call failed."""

    def __init__(self, provider: str, message: str) -> None:
        """Record which provider failed alongside its message."""
        super().__init__(message)
        self.provider = provider
        self.message = message


class InternalError(DocChatError):
    """An unexpected failure inside the orchestration logic."""
