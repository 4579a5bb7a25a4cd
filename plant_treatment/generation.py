import json
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from .errors import ExternalServiceError, GenerationFailure, MalformedOutputError
from .models import PREVENTION_COUNT, TreatmentResult

logger = logging.getLogger(__name__)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.3

BLOCKED_DETAIL = "Response blocked by safety settings."
EMPTY_DETAIL = "Empty response or no text part found."


# ======================= Response Schema =======================
TREATMENT_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "organic": {
            "type": "STRING",
            "description": "Organic treatment methods (1-2 sentences).",
        },
        "biological": {
            "type": "STRING",
            "description": "Biological control methods (1-2 sentences).",
        },
        "chemical": {
            "type": "STRING",
            "description": "Chemical treatment methods (1-2 sentences).",
        },
        "prevention": {
            "type": "ARRAY",
            "description": "A list of five distinct prevention measures.",
            "items": {"type": "STRING"},
            "minItems": PREVENTION_COUNT,
            "maxItems": PREVENTION_COUNT,
        },
    },
    "required": ["organic", "biological", "chemical", "prevention"],
    "propertyOrdering": ["organic", "biological", "chemical", "prevention"],
}


def build_prompt(disease: str) -> str:
    return (
        "You are a professional plant pathologist AI. Provide the comprehensive treatment "
        f'and prevention information for the plant disease "{disease}".'
    )


# ======================= Gemini Client =======================
class GeminiClient:
    def __init__(
        self,
        api_key,
        base_url=GEMINI_BASE_URL,
        model_name=DEFAULT_MODEL,
        temperature=DEFAULT_TEMPERATURE,
        request_timeout=120,
        session=None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model_name = model_name
        self.temperature = temperature
        self.request_timeout = request_timeout
        self.session = session or requests.Session()
        self.headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model_name}:generateContent"

    def generate_content(self, prompt: str, response_schema: Dict[str, Any]) -> Dict[str, Any]:
        # One generateContent round trip constrained to JSON output
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "responseMimeType": "application/json",
                "responseSchema": response_schema,
            },
        }
        try:
            resp = self.session.post(
                self.endpoint,
                headers=self.headers,
                json=payload,
                timeout=self.request_timeout,
            )
        except requests.RequestException as exc:
            raise ExternalServiceError(str(exc)) from exc

        if resp.status_code >= 400:
            raise ExternalServiceError(_api_error_message(resp))
        try:
            return resp.json()
        except ValueError as exc:
            raise ExternalServiceError(f"Gemini API returned a non-JSON body: {exc}") from exc


def _api_error_message(resp) -> str:
    # Gemini error bodies look like {"error": {"code": 403, "message": "...", "status": "..."}}
    try:
        error = resp.json().get("error") or {}
    except (ValueError, AttributeError):
        error = {}
    message = error.get("message") if isinstance(error, dict) else None
    return message or f"{resp.status_code} {resp.reason or 'error'} from Gemini API"


# ======================= Candidate Handling =======================
def _is_blocked(response: Dict[str, Any], candidate: Dict[str, Any]) -> bool:
    if (response.get("promptFeedback") or {}).get("blockReason"):
        return True
    if candidate.get("finishReason") == "SAFETY":
        return True
    return any(rating.get("blocked") for rating in candidate.get("safetyRatings") or [])


def extract_candidate_text(response: Dict[str, Any]) -> str:
    """
    Return the first candidate's first text part.

    Raises GenerationFailure naming a safety block or an empty response when
    there is no text to use.
    """
    if not isinstance(response, dict):
        raise GenerationFailure(EMPTY_DETAIL)
    candidates = response.get("candidates") or []
    candidate = candidates[0] if candidates else {}
    parts = (candidate.get("content") or {}).get("parts") or []
    text: Optional[str] = parts[0].get("text") if parts else None
    if not text:
        raise GenerationFailure(BLOCKED_DETAIL if _is_blocked(response, candidate) else EMPTY_DETAIL)
    return text


def parse_treatment(text: str) -> TreatmentResult:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise MalformedOutputError(f"Model output is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedOutputError(f"Model output is a JSON {type(data).__name__}, expected an object.")
    try:
        return TreatmentResult.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or 'payload'}: {err['msg']}" for err in exc.errors()
        )
        raise MalformedOutputError(f"Model output does not match the treatment schema: {problems}") from exc


def generate_treatment(disease: str, client: GeminiClient) -> TreatmentResult:
    response = client.generate_content(build_prompt(disease), TREATMENT_SCHEMA)
    text = extract_candidate_text(response)
    logger.debug(f"Gemini raw response for '{disease}': {text[:500]}")
    result = parse_treatment(text)
    logger.info(f'Successfully generated structured data for "{disease}"')
    return result
