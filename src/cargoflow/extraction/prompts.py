"""LLM prompt templates for freight document extraction."""

import json
from typing import Any, Dict, Iterable

# Template for text extraction (emails, PDF text layers, OCR output)
FREIGHT_EXTRACT_TEXT_V1_SYSTEM = """You are an information extraction engine for a freight forwarder.
Your job: extract a transport request into STRICT JSON that matches the provided schema exactly.
Rules:
- Output ONLY JSON. No markdown. No explanations.
- If a field is unknown or not present, use null (do NOT invent).
- Dimensions are meters, weight is kilograms. Convert cm/mm/ft yourself. Use dot as decimal separator.
- route.origin / route.destination are cities or places; ports go into port_of_loading / port_of_discharge.
- vehicle.brand is the manufacturer, vehicle.model the model name without the brand.
- Incoterm and currency are 3-letter uppercase codes.
- Dates must be ISO format YYYY-MM-DD if present, else null.
- Do not add keys that are not in the schema.
- Include a "confidence" object mapping dotted field paths (e.g. "vehicle.model") to 0..1."""

FREIGHT_EXTRACT_TEXT_V1_USER = """CONTEXT (do not output, only use):
- fields_most_needed: {{required_fields}}
- already_found_by_rules: {{known_values}}

STRICT JSON SCHEMA:
{{schema_json}}

TASK:
Extract the transport request from the text below into STRICT JSON.

TEXT:
<<<
{{document_text}}
>>>"""

# Template for vision extraction (photos, screenshots, scanned PDFs)
FREIGHT_EXTRACT_VISION_V1_SYSTEM = """You are an information extraction engine for a freight forwarder.
You receive images of documents, chat screenshots or photos of vehicles and machines.
Rules:
- Output ONLY JSON.
- Never invent values. Use null when unsure.
- Read type plates and spec sheets for brand, model, year, VIN, dimensions and weight.
- Dimensions are meters, weight is kilograms.
- Do not add keys that are not in the schema.
- Provide a "confidence" object mapping dotted field paths to 0..1."""

FREIGHT_EXTRACT_VISION_V1_USER = """CONTEXT (do not output):
- fields_most_needed: {{required_fields}}
- accompanying_text: {{document_text}}

STRICT JSON SCHEMA:
{{schema_json}}

TASK:
Extract the transport request from the attached images into STRICT JSON.
Return ONLY JSON."""


def _render_known_values(known_values: Dict[str, Any] | None) -> str:
    if not known_values:
        return "none"
    return ", ".join(f"{k}={v}" for k, v in sorted(known_values.items()))


def build_text_extraction_prompt(
    document_text: str,
    schema: Dict[str, Any],
    required_fields: Iterable[str] = (),
    known_values: Dict[str, Any] | None = None,
) -> tuple[str, str]:
    """Build text extraction prompt from template.

    Args:
        document_text: Decoded document text
        schema: JSON schema of the expected response
        required_fields: Canonical keys the pipeline needs most
        known_values: Values the pattern extractor already found (hints)

    Returns:
        Tuple of (system_prompt, user_prompt)
    """
    user_prompt = FREIGHT_EXTRACT_TEXT_V1_USER.replace(
        "{{required_fields}}", ", ".join(required_fields) or "none"
    )
    user_prompt = user_prompt.replace("{{known_values}}", _render_known_values(known_values))
    user_prompt = user_prompt.replace("{{schema_json}}", json.dumps(schema, separators=(",", ":")))
    user_prompt = user_prompt.replace("{{document_text}}", document_text)

    return FREIGHT_EXTRACT_TEXT_V1_SYSTEM, user_prompt


def build_vision_extraction_prompt(
    schema: Dict[str, Any],
    required_fields: Iterable[str] = (),
    document_text: str = "",
) -> tuple[str, str]:
    """Build vision extraction prompt from template.

    Returns:
        Tuple of (system_prompt, user_prompt)
    """
    user_prompt = FREIGHT_EXTRACT_VISION_V1_USER.replace(
        "{{required_fields}}", ", ".join(required_fields) or "none"
    )
    user_prompt = user_prompt.replace("{{document_text}}", document_text.strip() or "none")
    user_prompt = user_prompt.replace("{{schema_json}}", json.dumps(schema, separators=(",", ":")))

    return FREIGHT_EXTRACT_VISION_V1_SYSTEM, user_prompt
