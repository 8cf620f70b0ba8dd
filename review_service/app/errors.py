"""
errors.py - failure kinds a pipeline run can end in.
Every stage raises one of these; the API layer maps them to status codes.
"""


class AnalysisError(Exception):
    kind = "internal"
    status_code = 500
    default_message = "An unknown server error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class ValidationError(AnalysisError):
    kind = "validation"
    status_code = 400
    default_message = "URL is required."


class FetchError(AnalysisError):
    kind = "fetch"
    default_message = "Failed to fetch the product page."

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message)
        # Upstream HTTP status of the page, not the status we answer with
        self.upstream_status = status_code


class NoReviewsFoundError(AnalysisError):
    kind = "no_reviews"
    status_code = 404
    default_message = "Could not find any reviews. The selector is likely wrong or the site blocked the request."


class UpstreamAuthError(AnalysisError):
    kind = "upstream_auth"
    default_message = "Invalid API Key: set GEMINI_API_KEY in the environment or .env file."


class UpstreamAPIError(AnalysisError):
    kind = "upstream_api"
    default_message = "The AI service rejected the request."


class UpstreamTransportError(AnalysisError):
    kind = "upstream_transport"
    default_message = "Failed to communicate with the Gemini API."


class MalformedAnalysisError(AnalysisError):
    kind = "malformed_analysis"
    default_message = "The AI returned an analysis that could not be parsed."


class AnalysisTimeoutError(AnalysisError):
    kind = "timeout"
    default_message = "The analysis took too long and was aborted."


class ConfigError(Exception):
    """Raised at startup when the environment cannot produce a usable config."""
