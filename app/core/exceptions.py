from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class ScoringError(HTTPException):
    """Base class for errors raised by the scoring engine.

    Subclasses carry a stable ``error_code`` that the global exception
    handler puts in the error response, so grader-facing clients can tell
    a rejected grade apart from a missing attempt.
    """
    status_code: int = status.HTTP_400_BAD_REQUEST
    error_code: str = "SCORING_ERROR"

    def __init__(self, detail: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=self.status_code, detail=detail)
        self.details = details


class NotFoundError(ScoringError):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"


class InvalidGradeError(ScoringError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "INVALID_GRADE"


class DataInconsistencyError(ScoringError):
    status_code = status.HTTP_409_CONFLICT
    error_code = "DATA_INCONSISTENCY"


class PersistenceFailureError(ScoringError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "PERSISTENCE_FAILURE"
