"""
LLM-backed extractor.

Sends task text to an OpenAI-compatible chat completions endpoint (a
hosted router such as OpenRouter, or a local Ollama / LM Studio server)
and validates the JSON reply with pydantic.

Design Considerations:
- Structured JSON output for reliable parsing
- Bounded retries with exponential backoff
- Every call bounded by the configured timeout
- Any failure surfaces as ExtractorError; the tracker degrades to no fields
"""

import json
import logging
import time
from datetime import date
from typing import Any, Callable, Literal, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from tx.core.config import ExtractorConfig, TxConfig
from tx.core.constants import FieldKind
from tx.core.exceptions import ConfigurationError, ExtractorError
from tx.extractors.base import Extraction
from tx.tasks.models import FieldValue, RecurrenceDescriptor, normalize_field_name

logger = logging.getLogger(__name__)


EXTRACTION_SYSTEM_PROMPT = '''You extract structure from personal task descriptions.

Today is {today} ({weekday}).

Identify the attributes the text states or clearly implies: people, projects,
clients, places, deadlines, priority (urgent, high, medium, low), task type
(call, email, meeting, review, errand, ...), and any recurrence.

Rules:
1. Use short lowercase snake_case field names (person, project, due, priority, type).
2. Resolve relative dates against today and give them as YYYY-MM-DD with type "date".
3. Use type "enum" for values from a small closed set such as priority or type.
4. Keep names exactly as written in the text.
5. Only report recurrence when the text says the task repeats.
6. Return an empty "fields" object if nothing can be extracted.

Respond with valid JSON only, no other text:
{{
  "fields": {{
    "field_name": {{"value": "text", "type": "string"}}
  }},
  "recurrence": {{"frequency": "daily|weekly|monthly|yearly", "anchor": "monday or 15 or null"}},
  "confidence": 0.85
}}'''


# =============================================================================
# Response Models
# =============================================================================

class ExtractedField(BaseModel):
    """One field as reported by the model."""

    value: str
    type: Literal["string", "date", "enum"] = "string"

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str:
        return "" if value is None else str(value)


class ExtractedRecurrence(BaseModel):
    """Recurrence as reported by the model."""

    frequency: Literal["daily", "weekly", "monthly", "yearly"]
    anchor: Optional[str] = None

    @field_validator("frequency", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("anchor", mode="before")
    @classmethod
    def _anchor(cls, value: Any) -> Optional[str]:
        if value is None or str(value).strip().lower() in ("", "null", "none"):
            return None
        return str(value)


class ExtractionPayload(BaseModel):
    """Validated JSON reply of the extraction prompt."""

    fields: dict[str, ExtractedField] = Field(default_factory=dict)
    recurrence: Optional[ExtractedRecurrence] = None
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    @field_validator("fields", mode="before")
    @classmethod
    def _wrap_bare_values(cls, value: Any) -> Any:
        # Models often answer {"person": "John"} instead of the nested form
        if isinstance(value, dict):
            return {
                k: v if isinstance(v, dict) else {"value": v}
                for k, v in value.items()
                if v is not None
            }
        return value

    @field_validator("recurrence", mode="before")
    @classmethod
    def _drop_empty_recurrence(cls, value: Any) -> Any:
        if isinstance(value, dict) and not value.get("frequency"):
            return None
        return value

    def to_extraction(self) -> Extraction:
        fields: dict[str, FieldValue] = {}
        for raw_name, extracted in self.fields.items():
            name = normalize_field_name(raw_name)
            text = extracted.value.strip()
            if not name or not text:
                continue
            try:
                fields[name] = FieldValue(kind=FieldKind(extracted.type), value=text)
            except ValueError:
                logger.debug(f"Field '{name}' is not a valid {extracted.type}, keeping as text")
                fields[name] = FieldValue(kind=FieldKind.STRING, value=text)

        recurrence = None
        if self.recurrence is not None:
            recurrence = RecurrenceDescriptor(
                frequency=self.recurrence.frequency,
                anchor=self.recurrence.anchor,
            )

        return Extraction(fields=fields, recurrence=recurrence, confidence=self.confidence)


def parse_payload(response_text: str) -> ExtractionPayload:
    """
    Parse the model's reply into an ExtractionPayload.

    Raises:
        ExtractorError: If the reply is not valid JSON of the expected shape
    """
    cleaned = response_text.strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    if cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    cleaned = cleaned.strip()

    try:
        return ExtractionPayload.model_validate(json.loads(cleaned))
    except json.JSONDecodeError as e:
        raise ExtractorError(f"JSON parse error: {e}") from e
    except PydanticValidationError as e:
        raise ExtractorError(f"Unexpected response shape: {e.error_count()} errors") from e


# =============================================================================
# Extractor
# =============================================================================

class LLMExtractor:
    """Extractor backed by an OpenAI-compatible chat completions API."""

    name = "llm"

    def __init__(
        self,
        provider: str,
        base_url: str,
        model: str,
        api_key: Optional[str] = None,
        config: Optional[ExtractorConfig] = None,
        client: Optional[httpx.Client] = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """
        Initialize the LLM extractor.

        Args:
            provider: Provider name, used in errors and logs
            base_url: API root, e.g. https://openrouter.ai/api/v1
            model: Model identifier
            api_key: Bearer token; omitted for local servers without auth
            config: Timeout and retry settings
            client: HTTP client to use instead of a per-call one
            today: Clock for resolving relative dates
        """
        self.provider = provider
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._api_key = api_key
        self._config = config or ExtractorConfig()
        self._client = client
        self._today = today
        self._call_count = 0

    @classmethod
    def from_config(cls, config: TxConfig, client: Optional[httpx.Client] = None) -> "LLMExtractor":
        """
        Build the extractor for the configured provider.

        Raises:
            ConfigurationError: If the provider is not LLM-backed
        """
        if config.provider == "openai":
            settings = config.openai
        elif config.provider == "local":
            settings = config.local
        else:
            raise ConfigurationError(
                f"Provider '{config.provider}' has no LLM endpoint",
                details={"provider": config.provider},
            )
        return cls(
            provider=config.provider,
            base_url=settings.base_url,
            model=settings.model,
            api_key=settings.api_key,
            config=config.extractor,
            client=client,
        )

    @property
    def call_count(self) -> int:
        return self._call_count

    def extract(self, text: str) -> Extraction:
        """
        Extract fields from text.

        Raises:
            ExtractorError: If every attempt fails
        """
        today = self._today()
        system_prompt = EXTRACTION_SYSTEM_PROMPT.format(
            today=today.isoformat(), weekday=today.strftime("%A")
        )

        attempts = self._config.max_retries + 1
        last_error: Optional[str] = None

        for attempt in range(attempts):
            try:
                response_text = self._call_llm(system_prompt, text)
                self._call_count += 1
                return parse_payload(response_text).to_extraction()

            except httpx.TimeoutException:
                last_error = "Request timed out"
                logger.warning(f"LLM call attempt {attempt + 1} timed out")

            except (httpx.HTTPError, ExtractorError) as e:
                last_error = str(e)
                logger.warning(f"LLM call attempt {attempt + 1} failed: {e}")

            if attempt < attempts - 1:
                delay = self._config.retry_delay_seconds * (2 ** attempt)
                time.sleep(delay)

        raise ExtractorError(
            f"All {attempts} attempts failed: {last_error}",
            provider=self.provider,
        )

    def _call_llm(self, system_prompt: str, text: str) -> str:
        """
        Make one chat completions request.

        Returns:
            The assistant message content
        """
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        body = {
            "model": self._model,
            "temperature": self._config.temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": text},
            ],
        }
        url = f"{self._base_url}/chat/completions"
        timeout = self._config.timeout_seconds

        if self._client is not None:
            response = self._client.post(url, json=body, headers=headers, timeout=timeout)
        else:
            with httpx.Client(timeout=timeout) as client:
                response = client.post(url, json=body, headers=headers)

        response.raise_for_status()

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ExtractorError(f"Malformed completion response: {e}") from e

        if not isinstance(content, str):
            raise ExtractorError("Completion response has no text content")
        return content
