"""
client.py - Mistral structured-extraction layer for ProposalMatch.

Components:
  build_system_prompt()  - enumerates every target field and, for closed
                           enumerations, the exact allowed values
  parse_response()       - raw completion text -> JSON object, or MALFORMED_RESPONSE
  normalize_fields()     - untrusted JSON -> one typed value per FieldSpec
  ExtractionClient       - one-shot async Mistral call, no retry

The Mistral client is created once in main.py lifespan and injected here.
No HTTPException anywhere: this is pure business logic, HTTP lives in routes.py.
"""
import json
import logging
import re
from typing import Any, Optional

from mistralai import Mistral

from proposalmatch.errors import StructuredExtractionError, UpstreamError
from proposalmatch.extraction.fields import FieldSet, FieldSpec

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Mistral API constants
# ---------------------------------------------------------------------------

DEFAULT_MODEL = "mistral-small-latest"
EXTRACTION_TEMPERATURE = 0.3
RESPONSE_FORMAT = {"type": "json_object"}


# ---------------------------------------------------------------------------
# Prompt builder
# ---------------------------------------------------------------------------

def build_system_prompt(field_set: FieldSet) -> str:
    """
    Build the system instruction for one extraction.

    Scalar fields default to null, array fields to an empty array. Fields with
    choices list every allowed value verbatim, one per line, so the model can
    copy the literal instead of paraphrasing it.
    """
    lines = [
        f"You are {field_set.role}. Extract the following information from the "
        f"{field_set.source} and return it as JSON:",
        "",
    ]
    for spec in field_set.fields:
        kind = "Array of strings" if spec.many else "String"
        lines.append(f"- {spec.name}: {spec.description} ({kind})")
        if spec.choices:
            pick = "each item MUST be" if spec.many else "MUST be"
            lines.append(f"  Allowed values ({pick} exactly one of these, copied verbatim):")
            lines.extend(f"    * {choice}" for choice in spec.choices)

    array_names = [s.name for s in field_set.fields if s.many]
    default_rule = "If any field is not found in the text, set it to null"
    if array_names:
        default_rule += f" (except {', '.join(array_names)}, which should be empty arrays)"
    lines += [
        "",
        default_rule + ".",
        "For fields with allowed values, choose the closest allowed value or use null / an empty array if none fits.",
        "Be thorough and extract as much relevant information as possible from the document.",
        "Return ONLY valid JSON, no additional text.",
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _content_text(content: Any) -> str:
    """Mistral returns either a plain string or a list of content chunks."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(getattr(chunk, "text", "") or "" for chunk in content)
    return str(content)


def parse_response(raw: str) -> dict[str, Any]:
    """
    Parse completion text as a JSON object.

    Raises:
        StructuredExtractionError: empty text, invalid JSON, or JSON that is not an object.
    """
    if not raw or not raw.strip():
        raise StructuredExtractionError("Failed to extract data: empty response from language model")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise StructuredExtractionError("Failed to extract data: language model returned invalid JSON") from exc
    if not isinstance(data, dict):
        raise StructuredExtractionError("Failed to extract data: language model did not return a JSON object")
    return data


# ---------------------------------------------------------------------------
# Normalization: untrusted JSON -> typed values
# ---------------------------------------------------------------------------

_DASHES = re.compile(r"[‐-―−]")
_SPACES = re.compile(r"\s+")


def _choice_key(value: str) -> str:
    return _SPACES.sub(" ", _DASHES.sub("-", value)).strip().casefold()


def snap_choice(value: str, choices: tuple[str, ...]) -> str:
    """
    Return the canonical literal when value matches an allowed choice ignoring
    case, dash style and whitespace. Anything else passes through unchanged:
    enumeration enforcement here is advisory, save-time validation is not.
    """
    if not choices:
        return value
    key = _choice_key(value)
    for choice in choices:
        if _choice_key(choice) == key:
            return choice
    return value


def _scalar(value: Any, choices: tuple[str, ...]) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value)
    if isinstance(value, str):
        text = value.strip()
        return snap_choice(text, choices) if text else None
    if isinstance(value, list):
        # A list where a scalar was asked for: keep the first usable entry
        for item in value:
            text = _scalar(item, choices)
            if text is not None:
                return text
    return None


def _many(value: Any, choices: tuple[str, ...]) -> list[str]:
    if value is None:
        return []
    items = [value] if isinstance(value, (str, int, float)) else value
    if not isinstance(items, list):
        return []
    out: list[str] = []
    for item in items:
        if isinstance(item, (dict, list)):
            continue
        text = _scalar(item, choices)
        if text is not None and text not in out:
            out.append(text)
    return out


def normalize_fields(data: dict[str, Any], field_set: FieldSet) -> dict[str, Any]:
    """
    Map an untrusted JSON object onto the field set, field by field.

    Every declared field is present in the result; unknown keys are dropped.
    """
    result: dict[str, Any] = {}
    for spec in field_set.fields:
        raw = data.get(spec.name)
        result[spec.name] = _many(raw, spec.choices) if spec.many else _scalar(raw, spec.choices)
    return result


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class ExtractionClient:
    """
    Thin wrapper over the Mistral async chat API.

    client is None when MISTRAL_API_KEY is unset; every call then fails with
    UpstreamError(NOT_CONFIGURED) before any network traffic.
    """

    def __init__(
        self,
        client: Optional[Mistral],
        model: str = DEFAULT_MODEL,
        temperature: float = EXTRACTION_TEMPERATURE,
    ) -> None:
        self._client = client
        self.model = model
        self.temperature = temperature

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def extract_fields(self, text: str, field_set: FieldSet) -> dict[str, Any]:
        """
        Send text to Mistral and return one normalized value per field.

        Raises:
            UpstreamError: provider not configured or the call itself failed.
            StructuredExtractionError: provider answered with unusable content.
        """
        if self._client is None:
            raise UpstreamError("Language model API key not configured", reason="NOT_CONFIGURED")

        logger.info(
            "Calling Mistral API model=%s fields=%d text_len=%d",
            self.model, len(field_set.fields), len(text),
        )
        try:
            response = await self._client.chat.complete_async(
                model=self.model,
                messages=[
                    {"role": "system", "content": build_system_prompt(field_set)},
                    {"role": "user", "content": text},
                ],
                response_format=RESPONSE_FORMAT,
                temperature=self.temperature,
            )
        except Exception as exc:
            logger.error("Mistral extraction call failed: %s", type(exc).__name__)
            raise UpstreamError(
                "Structured extraction service is unavailable", reason="PROVIDER_ERROR"
            ) from exc

        choices = getattr(response, "choices", None) or []
        raw = _content_text(choices[0].message.content) if choices else ""
        logger.info("Mistral response received response_len=%d", len(raw))

        fields = normalize_fields(parse_response(raw), field_set)
        filled = sum(1 for v in fields.values() if v not in (None, []))
        logger.info("Structured extraction complete filled=%d/%d", filled, len(fields))
        return fields


__all__ = [
    "ExtractionClient",
    "FieldSet",
    "FieldSpec",
    "build_system_prompt",
    "normalize_fields",
    "parse_response",
    "snap_choice",
]
