from .ai_output import (
    AIExtractionOutput,
    AIOutputSchemaError,
    ParsedAIOutput,
    ai_output_json_schema,
    parse_ai_output,
)

__all__ = [
    "AIExtractionOutput",
    "AIOutputSchemaError",
    "ParsedAIOutput",
    "ai_output_json_schema",
    "parse_ai_output",
]
