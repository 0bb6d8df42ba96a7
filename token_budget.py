"""Token budget management: per-task limits and usage tracking.

Provides:
  - Per-task max_tokens / temperature / timeout defaults
  - Prompt size guardrail
  - Token usage logging per call site (in-process, rolling window)
"""

import logging
import time

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Per-task token budgets (max_tokens for output)
# ---------------------------------------------------------------------------
# The report is four short sections; 25s keeps us under a 30s request limit

TASK_BUDGETS = {
    'career_report': {'max_tokens': 1500, 'temperature': 0.7, 'timeout': 25.0},
}

# Rendered prompt size before we warn (chars, approximate)
MAX_PROMPT_CHARS = 6000

# Rough per-token prices for the default model (USD per 1M tokens)
PRICE_INPUT_PER_M = 2.00
PRICE_OUTPUT_PER_M = 6.00


# ---------------------------------------------------------------------------
# Prompt size guardrail
# ---------------------------------------------------------------------------

def check_payload_size(prompt: str, task: str) -> bool:
    """Warn if the prompt exceeds the threshold. Returns True when within it."""
    total = len(prompt)
    if total > MAX_PROMPT_CHARS:
        logger.warning('Payload size for %s: %d chars (threshold: %d)',
                       task, total, MAX_PROMPT_CHARS)
        return False
    return True


# ---------------------------------------------------------------------------
# Token usage tracking / observability
# ---------------------------------------------------------------------------

class TokenTracker:
    """Tracks completion calls per task for observability."""

    def __init__(self, max_entries: int = 500):
        self._calls: list[dict] = []
        self._max_entries = max_entries

    def log_call(self, task: str, input_chars: int, output_chars: int,
                 elapsed_secs: float, model: str = '',
                 outcome: str = 'ok') -> None:
        """Log a single completion call."""
        # ~4 chars per token for English text
        est_input_tokens = input_chars // 4
        est_output_tokens = output_chars // 4
        est_cost = (est_input_tokens * PRICE_INPUT_PER_M
                    + est_output_tokens * PRICE_OUTPUT_PER_M) / 1_000_000

        self._calls.append({
            'task': task,
            'timestamp': time.time(),
            'input_chars': input_chars,
            'output_chars': output_chars,
            'est_input_tokens': est_input_tokens,
            'est_output_tokens': est_output_tokens,
            'est_cost_usd': round(est_cost, 6),
            'elapsed_secs': round(elapsed_secs, 2),
            'model': model,
            'outcome': outcome,
        })
        if len(self._calls) > self._max_entries:
            self._calls = self._calls[-self._max_entries:]

        logger.info(
            'TOKEN_USAGE | task=%s | input=%d chars (~%d tok) | '
            'output=%d chars (~%d tok) | cost=$%.6f | %.1fs | outcome=%s',
            task, input_chars, est_input_tokens,
            output_chars, est_output_tokens,
            est_cost, elapsed_secs, outcome
        )

    def summary(self) -> dict:
        """Return aggregate usage summary."""
        if not self._calls:
            return {'total_calls': 0}

        by_outcome = {}
        for c in self._calls:
            by_outcome[c['outcome']] = by_outcome.get(c['outcome'], 0) + 1

        return {
            'total_calls': len(self._calls),
            'total_input_tokens': sum(c['est_input_tokens'] for c in self._calls),
            'total_output_tokens': sum(c['est_output_tokens'] for c in self._calls),
            'total_cost_usd': round(sum(c['est_cost_usd'] for c in self._calls), 4),
            'by_outcome': by_outcome,
        }

    def reset(self) -> None:
        self._calls = []


# Global tracker instance
_tracker = TokenTracker()


def get_tracker() -> TokenTracker:
    """Return the global token tracker instance."""
    return _tracker
