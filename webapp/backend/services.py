"""
Service layer that bridges the FastAPI endpoints with the generation client.
"""

from __future__ import annotations

from typing import Dict, Optional

from plant_treatment.errors import InvalidInputError
from plant_treatment.generation import GeminiClient, generate_treatment
from plant_treatment.utils import clean_disease_name


def run_treatment(disease: Optional[str], client: GeminiClient) -> Dict:
    """
    Generate the treatment recommendation for a single disease name.
    """

    name = clean_disease_name(disease)
    if not name:
        raise InvalidInputError()

    result = generate_treatment(name, client)
    return {"disease": disease, "data": result.model_dump()}
