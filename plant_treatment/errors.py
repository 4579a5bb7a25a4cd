"""
Failure taxonomy shared by the generation client and the HTTP layer.
"""

from __future__ import annotations

from typing import Dict, Optional


class TreatmentError(Exception):
    status_code = 500
    error = "Internal server error"

    def __init__(self, details: Optional[str] = None, *, error: Optional[str] = None):
        super().__init__(details or error or self.error)
        if error is not None:
            self.error = error
        self.details = details

    def to_dict(self) -> Dict[str, str]:
        body = {"error": self.error}
        if self.details is not None:
            body["details"] = self.details
        return body


class InvalidInputError(TreatmentError, ValueError):
    status_code = 400
    error = "Disease name is required."


class GenerationFailure(TreatmentError):
    error = "Failed to generate treatment data."


class MalformedOutputError(GenerationFailure):
    error = "Failed to process the generated treatment data."


class ExternalServiceError(TreatmentError):
    error = "Failed to process request due to an internal API error."
