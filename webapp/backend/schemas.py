"""
Pydantic models for request and response payloads.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from plant_treatment.models import TreatmentResult


class TreatmentRequest(BaseModel):
    disease: Optional[str] = Field(None, description="Name of the plant disease to treat.")

    class Config:
        json_schema_extra = {
            "example": {
                "disease": "Powdery Mildew",
            }
        }


class TreatmentResponse(BaseModel):
    disease: str
    data: TreatmentResult


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
