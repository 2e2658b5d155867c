"""
EchoNote Backend: Google Gemini Client
=======================================

What:  The one Gemini client of the process, shared by the transcription
       and summary providers.
How:   Configures the google-generativeai SDK once from Settings, sends
       prompt + optional inline parts through `generate_content_async`, and
       guards every call with a circuit breaker and a tenacity retry loop.
Who:   Built by `build_container()` at application startup.

Resilience Strategy:
    1. Circuit breaker: after N consecutive failures, calls fail instantly
       with CircuitBreakerOpenError until the recovery timeout elapses
    2. Tenacity retry with exponential backoff + jitter; the default of one
       attempt means a failed call is not retried
    3. Per-request timeout passed to the SDK
"""

import asyncio
import logging
import time
import uuid
from typing import Any, List, Optional, Sequence

import google.generativeai as genai
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    stop_after_attempt,
    wait_exponential_jitter,
)

from echonote.config import Settings
from echonote.exceptions import CircuitBreakerOpenError, ProviderError

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "your_gemini_api_key_here"


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker around the Gemini API.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN

        OPEN (rejecting all requests)
            → All calls raise CircuitBreakerOpenError immediately
            → After recovery_timeout seconds: transition to HALF_OPEN

        HALF_OPEN (testing recovery)
            → Allow ONE request through
            → On success: transition to CLOSED (reset failure_count)
            → On failure: transition back to OPEN (reset timer)

    Not thread-safe; a single asyncio event loop owns it.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Check whether a call may proceed.

        Raises:
            CircuitBreakerOpenError: circuit OPEN and still inside the recovery window
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker transitioning to HALF_OPEN after %.1fs",
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker transitioning to CLOSED (service recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning("Circuit breaker returning to OPEN (test request failed)")
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker OPENING after %d consecutive failures",
                self.failure_count,
            )
            self.state = self.OPEN


# ══════════════════════════════════════════════════════════════════════════
# Gemini Client
# ══════════════════════════════════════════════════════════════════════════

class GeminiClient:
    """
    Thin async wrapper over `genai.GenerativeModel`.

    Error Handling Chain:
        circuit open → CircuitBreakerOpenError (no API call)
        API call fails → tenacity retries up to retry_max_attempts
        → still failing → record failure, raise ProviderError(str(cause))
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.model_name = settings.gemini_model
        self.api_key = settings.gemini_api_key

        if self.is_configured:
            genai.configure(api_key=self.api_key)

        self.model = genai.GenerativeModel(self.model_name)
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=settings.cb_failure_threshold,
            recovery_timeout=settings.cb_recovery_timeout,
        )

        logger.info(
            "GeminiClient initialized with model=%s, retry_attempts=%d, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            self.model_name,
            settings.retry_max_attempts,
            settings.cb_failure_threshold,
            settings.cb_recovery_timeout,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY

    async def generate(self, parts: Sequence[Any], label: str = "generate") -> str:
        """
        Send content parts to Gemini and return the stripped response text.

        Args:
            parts: prompt string followed by optional inline blobs
                   ({"mime_type": ..., "data": bytes})
            label: operation name for log lines

        Returns:
            Response text, stripped. May be empty; callers decide whether
            an empty answer is an error.

        Raises:
            CircuitBreakerOpenError: circuit is open
            ProviderError: API key missing or the call failed on every attempt
        """
        if not self.is_configured:
            raise ProviderError(message="GEMINI_API_KEY environment variable is required")

        call_id = str(uuid.uuid4())[:8]
        self.circuit_breaker.can_execute()

        try:
            text = await self._generate_with_retry(list(parts), label, call_id)
        except Exception as e:
            self.circuit_breaker.record_failure()
            logger.error("[%s] Gemini %s failed: %s", call_id, label, e)
            raise ProviderError(
                message=str(e) or type(e).__name__,
                context={"call_id": call_id, "error_type": type(e).__name__},
            ) from e

        self.circuit_breaker.record_success()
        return text

    async def _generate_with_retry(self, parts: List[Any], label: str, call_id: str) -> str:
        """Only the API call is retried; the circuit breaker check is not."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.retry_max_attempts),
            wait=wait_exponential_jitter(
                initial=self.settings.retry_min_wait,
                max=self.settings.retry_max_wait,
                jitter=1,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._call(parts, label, call_id)
        return ""

    async def _call(self, parts: List[Any], label: str, call_id: str) -> str:
        start_time = time.time()
        try:
            response = await self.model.generate_content_async(
                parts,
                request_options={"timeout": self.settings.gemini_timeout},
            )
            text = (response.text or "").strip()
        except Exception as e:
            logger.warning(
                "[%s] Gemini %s call failed after %.0fms: %s",
                call_id,
                label,
                (time.time() - start_time) * 1000,
                e,
            )
            raise

        logger.info(
            "[%s] Gemini %s completed in %.0fms, %d chars",
            call_id,
            label,
            (time.time() - start_time) * 1000,
            len(text),
        )
        return text

    async def health_check(self) -> bool:
        """
        Lightweight reachability check (lists models, no token cost).

        Returns False instead of raising; the health endpoint reports it.
        """
        if not self.is_configured:
            return False
        try:
            names = await asyncio.to_thread(lambda: [m.name for m in genai.list_models()])
        except Exception as e:
            logger.warning("Gemini health check failed: %s", e)
            return False

        target = f"models/{self.model_name}"
        if target not in names:
            logger.warning("Configured model %s not found in available models", target)
        return True
