import logging
import os
from datetime import datetime

# Per 1M tokens; matched by substring against the model name
DEFAULT_PRICING = {
    "claude-3-sonnet": {"input": 3.0, "output": 15.0},
    "claude-3-haiku": {"input": 0.25, "output": 1.25},
}


class UsageTracker:
    """Token usage and cost for one edit session.

    Passed explicitly to every LLM client so callers (and tests) read the
    totals from the object they own.
    """

    def __init__(self, pricing: dict | None = None):
        self.total_prompt_tokens = 0
        self.total_completion_tokens = 0
        self.total_cost = 0.0
        self.call_count = 0
        self.pricing = DEFAULT_PRICING if pricing is None else pricing

    def record(self, prompt_tokens: int, completion_tokens: int, model_name: str | None = None):
        self.total_prompt_tokens += prompt_tokens
        self.total_completion_tokens += completion_tokens
        self.call_count += 1

        if model_name:
            self._calculate_cost(model_name, prompt_tokens, completion_tokens)

    def _calculate_cost(self, model_name: str, prompt: int, completion: int):
        price_entry = None
        for pattern, prices in self.pricing.items():
            if pattern in model_name.lower():
                price_entry = prices
                break

        if price_entry:
            cost = (prompt * price_entry["input"] / 1_000_000) + \
                   (completion * price_entry["output"] / 1_000_000)
            self.total_cost += cost

    @property
    def total_tokens(self):
        return self.total_prompt_tokens + self.total_completion_tokens

    def summary(self) -> str:
        return (f"Session summary:\n"
                f"Total requests: {self.call_count}\n"
                f"Total tokens: {self.total_tokens}\n"
                f"Total cost: ${self.total_cost:.2f}")


def setup_logger(log_dir: str = ".uniteditor/logs") -> logging.Logger:
    """Creates a file logger. All verbose output goes here."""
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = os.path.join(log_dir, f"editor_{timestamp}.log")

    logger = logging.getLogger("unit_editor")
    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # File handler: everything
    fh = logging.FileHandler(log_file, encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S"
    ))
    logger.addHandler(fh)

    # Console handler: warnings and errors
    ch = logging.StreamHandler()
    ch.setLevel(logging.WARNING)
    ch.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(ch)

    return logger


def print_stream_fragment(fragment: str) -> None:
    """Echo a streamed fragment without a newline."""
    print(fragment, end="", flush=True)
