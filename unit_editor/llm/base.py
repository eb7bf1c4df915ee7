import logging
import random
import time
from abc import ABC, abstractmethod
from typing import Iterator, Optional

from ..cli_display import UsageTracker

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """Raised when all LLM retries are exhausted."""


class LLMClient(ABC):

    def __init__(self, max_retries: int = 3, retry_delay: float = 2.0,
                 usage: Optional[UsageTracker] = None):
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.usage = usage if usage is not None else UsageTracker()

    # ── Public entry points ──

    def complete(self, prompt: str) -> str:
        """Generate a response with automatic retry and exponential backoff.

        Raises :class:`LLMError` after all retries are exhausted.
        """
        last_error: Exception | None = None

        for attempt in range(1, self.max_retries + 1):
            try:
                result = self._generate(prompt)

                if not result or not result.strip():
                    logger.warning(
                        f"[LLM] Empty response on attempt {attempt}/{self.max_retries}")
                    if attempt < self.max_retries:
                        time.sleep(self._backoff(attempt))
                        continue
                    raise LLMError("LLM returned empty response after all retries")

                return result

            except LLMError:
                raise
            except Exception as e:
                last_error = e
                logger.warning(
                    f"[LLM] Error on attempt {attempt}/{self.max_retries}: {e}")

                if attempt < self.max_retries:
                    wait = self._backoff(attempt)
                    # Special handling for 429: wait longer
                    if "429" in str(e):
                        wait *= 2
                        logger.info(f"[LLM] Rate limit detected (429). Backing off for {wait:.1f}s")
                    time.sleep(wait)

        raise LLMError(
            f"LLM failed after {self.max_retries} retries: {last_error}")

    def complete_stream(self, prompt: str) -> Iterator[str]:
        """Yield response fragments as they arrive.

        The sequence is finite and cannot be restarted, so there is no
        retry; a transport failure mid-stream raises :class:`LLMError`.
        """
        try:
            for fragment in self._stream(prompt):
                if fragment:
                    yield fragment
        except LLMError:
            raise
        except Exception as e:
            raise LLMError(f"LLM stream failed: {e}") from e

    def _backoff(self, attempt: int) -> float:
        """Jittered exponential backoff for *attempt* (1-based)."""
        wait = self.retry_delay * (2 ** (attempt - 1))
        return wait + wait * 0.1 * random.random()

    # ── Subclass hooks ──

    @abstractmethod
    def _generate(self, prompt: str) -> str:
        """Synchronous (non-streaming) generation."""

    @abstractmethod
    def _stream(self, prompt: str) -> Iterator[str]:
        """Streaming generation; yields text fragments."""
