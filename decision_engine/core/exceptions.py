"""Exception taxonomy for the Decision Engine."""

from typing import Any


class AnalysisError(Exception):
    """Base exception for all analysis errors."""

    code = "analysis_error"
    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """
        Initialize analysis error.

        Args:
            message: Error message
            details: Optional structured context (provider, model, reason, ...)
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for HTTP error bodies."""
        return {"error": self.message, "code": self.code, "details": self.details}


class ProviderUnavailableError(AnalysisError):
    """No healthy generation backend for the requested preference."""

    code = "provider_unavailable"
    status_code = 503


class ModelOutputInvalidError(AnalysisError):
    """Generated output failed schema validation."""

    code = "model_output_invalid"
    status_code = 422


class ModelTimeoutError(AnalysisError):
    """Generation exceeded its deadline."""

    code = "model_timeout"
    status_code = 504


class MissingBriefError(AnalysisError):
    """Run has no associated decision brief."""

    code = "missing_brief"
    status_code = 404


class IncompleteRunError(AnalysisError):
    """Worker pool finished but at least one framework result is absent."""

    code = "incomplete_run"
    status_code = 500


class VisualizationContractViolation(AnalysisError):
    """Visualization payload failed its contract; repaired, never fatal."""

    code = "visualization_contract_violation"
    status_code = 422

    def __init__(self, framework_id: str, issues: list[str]):
        super().__init__(
            f"Visualization for {framework_id} violates its contract: {' '.join(issues)}",
            details={"framework_id": framework_id, "issues": issues},
        )
        self.framework_id = framework_id
        self.issues = issues


class UnknownFrameworkError(AnalysisError):
    """Framework id is not part of the catalog."""

    code = "unknown_framework"
    status_code = 400


class RunNotFoundError(AnalysisError):
    """Analysis run does not exist."""

    code = "run_not_found"
    status_code = 404


# Recoverable generation failures; absorbed by the analyzer failover chain
GENERATION_ERRORS = (ProviderUnavailableError, ModelOutputInvalidError, ModelTimeoutError)
