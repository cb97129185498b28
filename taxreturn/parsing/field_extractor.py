"""Ordered multi-strategy field extraction.

Strategies run in order. The first result whose confidence reaches the
threshold is returned as is and later strategies are not called. Otherwise
the highest-confidence partial result is returned with its true confidence.
Every strategy tried is recorded as a ParsingAttempt.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from taxreturn.exceptions import ExtractionProviderError
from taxreturn.models.documents import ExtractionResult, ParsingAttempt, ProviderResult
from taxreturn.models.enums import DocumentType
from taxreturn.parsing.providers import ExtractionProvider, LLMExtractionProvider, PatternExtractionProvider
from taxreturn.settings import Settings

logger = logging.getLogger(__name__)


class FieldExtractor:
    def __init__(
        self,
        strategies: list[ExtractionProvider],
        confidence_threshold: float = 0.7,
        timeout_seconds: float | None = 30.0,
    ):
        if not strategies:
            raise ValueError("FieldExtractor needs at least one strategy")
        if not 0.0 <= confidence_threshold <= 1.0:
            raise ValueError(f"confidence_threshold must be within [0, 1], got {confidence_threshold}")
        self.strategies = strategies
        self.confidence_threshold = confidence_threshold
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "FieldExtractor":
        strategies: list[ExtractionProvider] = [PatternExtractionProvider()]
        if settings.use_llm_fallback and settings.anthropic_api_key:
            strategies.append(
                LLMExtractionProvider(
                    api_key=settings.anthropic_api_key,
                    model=settings.llm_model,
                    timeout=settings.provider_timeout_seconds,
                )
            )
        elif settings.use_llm_fallback:
            logger.info("ANTHROPIC_API_KEY not set; LLM fallback disabled")
        return cls(strategies, settings.confidence_threshold, settings.provider_timeout_seconds)

    def extract(self, document_type: DocumentType, raw_text: str) -> ExtractionResult:
        if document_type == DocumentType.UNKNOWN:
            return ExtractionResult(document_type=document_type, needs_review=True)

        attempts: list[ParsingAttempt] = []
        best: tuple[ExtractionProvider, ProviderResult] | None = None

        for strategy in self.strategies:
            started = time.monotonic()
            try:
                result = self._run(strategy, document_type, raw_text)
            except Exception as exc:
                elapsed = int((time.monotonic() - started) * 1000)
                logger.warning("%s extraction failed for %s: %s", strategy.name, document_type, exc)
                attempts.append(
                    ParsingAttempt(
                        parsing_method=strategy.method,
                        confidence_score=0.0,
                        processing_time_ms=elapsed,
                        error_message=str(exc),
                    )
                )
                continue

            elapsed = int((time.monotonic() - started) * 1000)
            attempts.append(
                ParsingAttempt(
                    parsing_method=strategy.method,
                    confidence_score=result.confidence,
                    extracted_data=result.fields,
                    processing_time_ms=elapsed,
                )
            )
            if result.confidence >= self.confidence_threshold:
                logger.info(
                    "Accepted %s extraction for %s (confidence %.2f)",
                    strategy.name, document_type, result.confidence,
                )
                return self._result(document_type, strategy, result, attempts, needs_review=False)

            logger.info(
                "%s extraction for %s below threshold (%.2f < %.2f)",
                strategy.name, document_type, result.confidence, self.confidence_threshold,
            )
            if best is None or result.confidence > best[1].confidence:
                best = (strategy, result)

        if best is None:
            logger.warning("All extraction strategies failed for %s", document_type)
            return ExtractionResult(
                document_type=document_type,
                attempts=attempts,
                needs_review=True,
                failed=True,
            )

        strategy, result = best
        logger.warning(
            "Low-confidence extraction for %s: best was %s at %.2f",
            document_type, strategy.name, result.confidence,
        )
        return self._result(document_type, strategy, result, attempts, needs_review=True)

    def _run(self, strategy: ExtractionProvider, document_type: DocumentType, raw_text: str) -> ProviderResult:
        if self.timeout_seconds is None:
            return strategy.try_extract(document_type, raw_text)
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(strategy.try_extract, document_type, raw_text)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            future.cancel()
            raise ExtractionProviderError(strategy.name, f"timed out after {self.timeout_seconds}s")
        finally:
            executor.shutdown(wait=False)

    @staticmethod
    def _result(
        document_type: DocumentType,
        strategy: ExtractionProvider,
        result: ProviderResult,
        attempts: list[ParsingAttempt],
        needs_review: bool,
    ) -> ExtractionResult:
        return ExtractionResult(
            document_type=document_type,
            fields=result.fields,
            confidence=result.confidence,
            method=strategy.method,
            attempts=attempts,
            missing_fields=result.missing_fields,
            needs_review=needs_review,
        )
