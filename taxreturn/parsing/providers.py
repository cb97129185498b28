"""Extraction strategies.

Each provider turns (document type, raw text) into a partial or complete field
set plus a self-reported confidence. FieldExtractor only depends on the
``ExtractionProvider`` contract.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any

import anthropic

from taxreturn.exceptions import ExtractionProviderError
from taxreturn.models.documents import ProviderResult
from taxreturn.models.enums import DocumentType, ParsingMethod
from taxreturn.parsing.extractors import get_extractor
from taxreturn.parsing.prompts import FORM_PROMPTS, SYSTEM_PROMPT, build_user_prompt
from taxreturn.parsing.redactor import Redactor
from taxreturn.settings import DEFAULT_LLM_MODEL

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
INITIAL_BACKOFF = 1.0


class ExtractionProvider(ABC):
    """One extraction strategy."""

    method: ParsingMethod

    @property
    def name(self) -> str:
        return self.method.value

    @abstractmethod
    def try_extract(self, document_type: DocumentType, raw_text: str) -> ProviderResult:
        """Extract fields. Raise ExtractionProviderError on failure."""
        ...


class PatternExtractionProvider(ExtractionProvider):
    """Regex extraction; confidence is the share of expected fields found."""

    method = ParsingMethod.PATTERN

    def try_extract(self, document_type: DocumentType, raw_text: str) -> ProviderResult:
        try:
            extractor = get_extractor(document_type)
        except KeyError:
            raise ExtractionProviderError(self.name, f"no pattern extractor for {document_type}")
        fields = extractor.extract(raw_text)
        for warning in extractor.get_warnings(fields):
            logger.warning("%s pattern extraction: %s", document_type, warning)
        return ProviderResult(
            fields=fields,
            confidence=extractor.confidence(fields),
            missing_fields=extractor.missing_fields(fields),
        )


def _salvage_truncated_json_array(text: str) -> list | None:
    """Recover the complete objects of a JSON array cut off mid-stream."""
    depth = 0
    last_complete_end = -1
    in_string = False
    escape_next = False

    for i, ch in enumerate(text):
        if escape_next:
            escape_next = False
            continue
        if ch == "\\":
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                last_complete_end = i

    if last_complete_end <= 0:
        return None

    salvaged = text[:last_complete_end + 1].rstrip().rstrip(",") + "]"
    try:
        result = json.loads(salvaged, parse_float=Decimal)
    except json.JSONDecodeError:
        return None
    if isinstance(result, list) and result:
        return result
    return None


def parse_json_response(response_text: str) -> dict | None:
    """Parse a JSON object from the model's reply.

    Handles markdown fences, leading or trailing prose, and a 1099-B entries
    array truncated by the token limit. A bare array is read as entries.
    """
    text = response_text.strip()

    if text.startswith("```"):
        first_newline = text.index("\n") if "\n" in text else len(text)
        text = text[first_newline + 1:]
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3].rstrip()

    candidates = [text]
    start, end = text.find("{"), text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])
    for candidate in candidates:
        try:
            parsed = json.loads(candidate, parse_float=Decimal)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
        if isinstance(parsed, list):
            return {"entries": parsed}

    entries_at = text.find('"entries"')
    array_start = text.find("[", entries_at if entries_at != -1 else 0)
    if array_start != -1:
        entries = _salvage_truncated_json_array(text[array_start:])
        if entries is not None:
            logger.warning("Salvaged %d complete entries from truncated JSON response", len(entries))
            return {"entries": entries}
    return None


def _clean(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _clean(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [_clean(item) for item in value]
    return value


def _clamp(value: Any) -> float | None:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return None
    return min(max(confidence, 0.0), 1.0)


class LLMExtractionProvider(ExtractionProvider):
    """Extraction through the Anthropic Messages API.

    Text is redacted before it is sent. Calls are bounded by the client
    timeout and retried with exponential backoff on rate limits, server
    errors and connection failures.
    """

    method = ParsingMethod.LLM

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_LLM_MODEL,
        timeout: float = 30.0,
        max_tokens: int = 4096,
        client: Any = None,
        redactor: Redactor | None = None,
    ):
        self._api_key = api_key
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self._client = client
        self.redactor = redactor or Redactor()

    @property
    def client(self):
        if self._client is None:
            if not self._api_key:
                raise ExtractionProviderError(self.name, "ANTHROPIC_API_KEY not set")
            self._client = anthropic.Anthropic(api_key=self._api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def try_extract(self, document_type: DocumentType, raw_text: str) -> ProviderResult:
        if document_type not in FORM_PROMPTS:
            raise ExtractionProviderError(self.name, f"no prompt for {document_type}")

        redaction = self.redactor.redact(raw_text)
        if redaction.redactions_made:
            logger.info("Redacted before LLM call: %s", "; ".join(redaction.redactions_made))

        response_text = self._call_claude(build_user_prompt(document_type, redaction.text))
        parsed = parse_json_response(response_text)
        if parsed is None:
            raise ExtractionProviderError(self.name, "response contained no parseable JSON")

        confidence = _clamp(parsed.pop("confidence", None))
        fields = _clean(parsed)
        extractor = get_extractor(document_type)
        if confidence is None:
            logger.info("LLM reply has no confidence; using field coverage")
            confidence = extractor.confidence(fields)
        return ProviderResult(
            fields=fields,
            confidence=confidence,
            missing_fields=extractor.missing_fields(fields),
        )

    @staticmethod
    def _is_retryable(exc: Exception) -> bool:
        if isinstance(exc, anthropic.APIConnectionError):
            return True
        if isinstance(exc, anthropic.APIStatusError):
            return exc.status_code == 429 or exc.status_code >= 500
        return False

    def _call_claude(self, user_prompt: str) -> str:
        """Call the Messages API with retry logic. Returns the reply text."""
        msg_params = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": user_prompt}],
        }

        last_error: Exception | None = None
        for attempt in range(MAX_RETRIES):
            try:
                response = self.client.messages.create(**msg_params)
            except ExtractionProviderError:
                raise
            except Exception as exc:
                last_error = exc
                if self._is_retryable(exc) and attempt < MAX_RETRIES - 1:
                    backoff = INITIAL_BACKOFF * (2 ** attempt)
                    logger.warning(
                        "LLM call failed (attempt %d/%d): %s. Retrying in %.1fs...",
                        attempt + 1, MAX_RETRIES, exc, backoff,
                    )
                    time.sleep(backoff)
                    continue
                break
            if response.stop_reason == "max_tokens":
                logger.warning("LLM response was truncated (hit max_tokens=%d)", self.max_tokens)
            return response.content[0].text

        raise ExtractionProviderError(self.name, f"API call failed: {last_error}")
