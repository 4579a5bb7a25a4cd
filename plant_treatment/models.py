"""
Typed treatment payload checked after the model output is decoded.
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, field_validator

PREVENTION_COUNT = 5


class TreatmentResult(BaseModel):
    organic: str = Field(..., description="Organic treatment methods (1-2 sentences).")
    biological: str = Field(..., description="Biological control methods (1-2 sentences).")
    chemical: str = Field(..., description="Chemical treatment methods (1-2 sentences).")
    prevention: List[str] = Field(
        ...,
        min_length=PREVENTION_COUNT,
        max_length=PREVENTION_COUNT,
        description="Five distinct prevention measures.",
    )

    class Config:
        str_strip_whitespace = True
        json_schema_extra = {
            "example": {
                "organic": "Spray diluted neem oil or potassium bicarbonate on affected leaves weekly.",
                "biological": "Apply Bacillus subtilis or Ampelomyces quisqualis based biofungicides.",
                "chemical": "Use sulfur or myclobutanil fungicides at the first sign of infection.",
                "prevention": [
                    "Space plants to improve air circulation.",
                    "Water at the base of plants in the morning.",
                    "Remove and destroy infected plant debris.",
                    "Plant resistant cultivars where available.",
                    "Avoid excess nitrogen fertilisation.",
                ],
            }
        }

    @field_validator("organic", "biological", "chemical")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value.strip()

    @field_validator("prevention")
    @classmethod
    def _no_blank_measures(cls, value: List[str]) -> List[str]:
        measures = [item.strip() for item in value]
        if not all(measures):
            raise ValueError("prevention measures must not be empty")
        return measures
