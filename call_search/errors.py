"""Custom exceptions for the Gong call search."""


class SearchError(Exception):
    """Base exception for call search errors."""

    def __init__(self, message: str, error_type: str, recoverable: bool = False):
        self.message = message
        self.error_type = error_type
        self.recoverable = recoverable
        super().__init__(message)


class UpstreamUnavailableError(SearchError):
    """Raised when a retrieval step the whole pipeline depends on fails.

    Covers the call listing and the transcript batch fetch. Nothing can be
    grounded without them, so the request is aborted.
    """

    def __init__(self, operation: str, original_error: str):
        self.operation = operation
        self.original_error = original_error
        message = (
            f"Gong {operation} failed: {original_error}. "
            "No answer can be grounded without this data. Please try again in a few moments."
        )
        super().__init__(message, "upstream_unavailable", recoverable=False)


class PartialDataUnavailableError(SearchError):
    """Raised when supplementary evidence (emails, CRM context) cannot be fetched."""

    def __init__(self, source: str, original_error: str):
        self.source = source
        self.original_error = original_error
        message = f"{source} unavailable: {original_error}. Continuing without it."
        super().__init__(message, "partial_data_unavailable", recoverable=True)


class FilterEvaluationError(SearchError):
    """Raised when a refinement filter cannot be evaluated."""

    def __init__(self, filter_name: str, original_error: str):
        self.filter_name = filter_name
        self.original_error = original_error
        message = f"Could not evaluate {filter_name} filter: {original_error}. Filter skipped."
        super().__init__(message, "filter_evaluation_failure", recoverable=True)


class AnswerGenerationError(SearchError):
    """Raised when the LLM fails to produce an answer."""

    def __init__(self, original_error: str):
        self.original_error = original_error
        message = (
            f"AI analysis failed: {original_error}. "
            "This may be due to rate limits or service issues. Please try again."
        )
        super().__init__(message, "llm_error", recoverable=True)


class GongAPIError(SearchError):
    """Raised when the Gong REST API returns an error or cannot be reached."""

    def __init__(self, status_code: int | None, detail: str):
        self.status_code = status_code
        self.detail = detail
        prefix = f"Gong API error ({status_code})" if status_code else "Gong API request failed"
        super().__init__(f"{prefix}: {detail}", "gong_api_error", recoverable=True)


class CrmQueryError(SearchError):
    """Raised when a Salesforce query fails."""

    def __init__(self, status_code: int | None, detail: str):
        self.status_code = status_code
        self.detail = detail
        prefix = f"Salesforce query error ({status_code})" if status_code else "Salesforce query failed"
        super().__init__(f"{prefix}: {detail}", "crm_query_error", recoverable=True)
