"""Typed failures of a chat turn, each with a fixed user-facing message."""

from app.core.schemas_chat import ChatErrorKind


class ChatTurnError(Exception):
    """Base for chat turn failures surfaced to the caller."""

    kind: ChatErrorKind = ChatErrorKind.UPSTREAM
    status_code: int = 500
    message: str = "AI service error"

    def __init__(self, detail: str | None = None):
        """
        Args:
            detail: Operator-facing detail for logs; never sent to the caller
        """
        super().__init__(detail or self.message)
        self.detail = detail

    def to_detail(self) -> dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}


class ConfigurationError(ChatTurnError):
    """Completion credential missing or rejected. Needs an operator, not a retry."""

    kind = ChatErrorKind.CONFIGURATION
    status_code = 500
    message = "The AI assistant is not configured. Please contact support."


class RateLimitedError(ChatTurnError):
    kind = ChatErrorKind.RATE_LIMITED
    status_code = 429
    message = "Rate limit exceeded. Please try again later."


class QuotaExhaustedError(ChatTurnError):
    kind = ChatErrorKind.QUOTA_EXHAUSTED
    status_code = 402
    message = "Payment required. Please add credits to your workspace."


class UpstreamError(ChatTurnError):
    kind = ChatErrorKind.UPSTREAM
    status_code = 500
    message = "AI service error"


class ContextUnavailableError(ChatTurnError):
    """Product content could not be read, so no directive was compiled."""

    kind = ChatErrorKind.CONTEXT_UNAVAILABLE
    status_code = 500
    message = "Support content is temporarily unavailable. Please try again."
