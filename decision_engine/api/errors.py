"""Mapping of analysis errors onto HTTP responses."""

from fastapi import HTTPException

from decision_engine.core.exceptions import AnalysisError


def http_error(error: AnalysisError) -> HTTPException:
    """HTTPException carrying the error's status code and {error, code, details} body."""
    return HTTPException(status_code=error.status_code, detail=error.to_dict())
