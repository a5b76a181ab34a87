"""Custom exception hierarchy for Weave.

All application exceptions inherit from :class:`WeaveError`, which carries
an optional ``provider_name`` so error handlers can identify which external
service (e.g. "openai", "tesseract", "youtube") caused the failure, and a
class-level ``status_code`` used by the API error middleware.

The hierarchy is organized by concern:

    WeaveError  (base -- catch-all for any Weave error)
    +-- InvalidSourceError        (400: unusable URL / input)
    +-- UnauthorizedError         (401: missing caller identity)
    +-- CreditsExhaustedError     (402: AI gateway out of credits)
    +-- NotFoundError             (404: row missing or owned by another user)
    +-- InsufficientContentError  (422: too little text to analyse)
    +-- RateLimitError            (429: per-user or provider rate limit)
    +-- ExtractionError           (text extraction failed)
    |   +-- OCRExtractionError    (every OCR provider failed)
    +-- LLMError                  (any LLM API call failure)
    +-- StorageError              (content store / file storage failure)
    +-- ConfigurationError        (startup / missing config)
    +-- ProviderUnavailableError  (503: external service down)

Extraction strategies catch these to fall through to the next strategy;
route handlers let them propagate to ``ErrorHandlingMiddleware``.
"""


class WeaveError(Exception):
    """Base exception for all Weave errors.

    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[openai] Rate limit exceeded``.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Caller errors
# ---------------------------------------------------------------------------

class InvalidSourceError(WeaveError):
    """Raised when an ingestion input is not a usable URL, id or file."""

    status_code = 400

    def __init__(
        self,
        message: str = "Invalid source",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnauthorizedError(WeaveError):
    """Raised when a request carries no caller identity."""

    status_code = 401

    def __init__(
        self,
        message: str = "Unauthorized",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NotFoundError(WeaveError):
    """Raised when a row does not exist for the requesting user."""

    status_code = 404

    def __init__(
        self,
        message: str = "Not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InsufficientContentError(WeaveError):
    """Raised when a document has too little text for analysis."""

    status_code = 422

    def __init__(
        self,
        message: str = "Document appears to be empty or has insufficient content",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Quota errors
# ---------------------------------------------------------------------------

class RateLimitError(WeaveError):
    """Raised when a per-user window or a provider rate limit is exceeded."""

    status_code = 429

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class CreditsExhaustedError(WeaveError):
    """Raised when the AI gateway reports that credits are used up (HTTP 402)."""

    status_code = 402

    def __init__(
        self,
        message: str = "AI credits exhausted. Please add credits to continue.",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class ExtractionError(WeaveError):
    """Raised when a text-extraction strategy fails outright."""

    def __init__(
        self,
        message: str = "Text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class OCRExtractionError(ExtractionError):
    """Raised when OCR text extraction fails (Tesseract, LLM Vision)."""

    def __init__(
        self,
        message: str = "OCR text extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / infrastructure errors
# ---------------------------------------------------------------------------

class LLMError(WeaveError):
    """Raised when an LLM API call fails or returns an unparseable response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageError(WeaveError):
    """Raised when the content store or file storage cannot complete an operation."""

    def __init__(
        self,
        message: str = "Storage operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(WeaveError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(WeaveError):
    """Raised when an external service or provider is unreachable."""

    status_code = 503

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
