"""Domain-specific exceptions"""

from typing import List, Tuple


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class RecordNotFoundError(DomainException):
    """Requested account or transaction does not exist for the user"""

    pass


# --- Model call failures -----------------------------------------------------


class ModelCallError(DomainException):
    """A single call to a model provider failed"""

    retryable = False


class RateLimitExceeded(ModelCallError):
    """Local outbound quota for a provider is used up"""

    def __init__(self, retry_after_ms: int):
        super().__init__(f"Rate limit exceeded, retry after {retry_after_ms}ms")
        self.retry_after_ms = retry_after_ms


class ContentBlocked(ModelCallError):
    """Provider safety filter refused the prompt or the answer"""

    def __init__(self, reason: str):
        super().__init__(f"Content blocked by provider: {reason}")
        self.reason = reason


class MalformedResponse(ModelCallError):
    """HTTP 200 with a body that does not match the provider envelope"""

    pass


class HttpError(ModelCallError):
    """Provider answered with a non-2xx status"""

    def __init__(self, status: int, body: str = ""):
        super().__init__(f"Provider HTTP error {status}")
        self.status = status
        self.body = body

    @property
    def retryable(self) -> bool:
        # 4xx means the request itself is wrong, except throttling and request timeout
        return self.status >= 500 or self.status in (408, 429)


class ModelTimeout(ModelCallError):
    """Request aborted after the provider timeout"""

    retryable = True


class NetworkError(ModelCallError):
    """Transport-level failure (DNS, refused connection, reset)"""

    retryable = True


# --- Analysis pipeline failures ----------------------------------------------


class AIAnalysisError(DomainException):
    """AI path could not produce a trustworthy analysis"""

    pass


class AllProvidersExhausted(AIAnalysisError):
    """Every configured provider failed"""

    def __init__(self, failures: List[Tuple[str, ModelCallError]]):
        summary = ", ".join(f"{name}: {type(err).__name__}" for name, err in failures) or "no provider configured"
        super().__init__(f"All providers exhausted ({summary})")
        self.failures = failures


class UnparseableResponse(AIAnalysisError):
    """Model text did not contain a usable JSON object"""

    def __init__(self, reason: str, raw: str = ""):
        super().__init__(f"Unparseable model response: {reason}")
        self.reason = reason
        self.raw = raw


class IncompleteAnalysis(AIAnalysisError):
    """Parsed response carries no insights or recommendations"""

    pass
