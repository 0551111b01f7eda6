"""Optional assistant hooks (e.g. a language-model service).

The assistant is never required: every call goes through a timeout and
a retry budget, its output is re-validated here, and callers fall back
to the deterministic implementation whenever these helpers return None.
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from .errors import AssistantUnavailable
from .repair import strict_loads

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
DEFAULT_RETRIES = 1
DEFAULT_MAX_LENGTH = 100_000


@dataclass(frozen=True)
class AssistResult:
    text: str
    succeeded: bool


@runtime_checkable
class Assistant(Protocol):
    """Best-effort helper for repair, merge and analysis.

    Uses structural subtyping - no inheritance required.
    """

    def repair_text(self, text: str, max_length: int) -> AssistResult:
        """Return `text` rewritten as valid JSON."""
        ...

    def merge_documents(self, texts: List[str]) -> AssistResult:
        """Return a JSON array of objects combining the given JSON documents."""
        ...

    def analyze_structure(self, text: str) -> AssistResult:
        """Return a JSON object describing the structure of a JSON document."""
        ...


def _run_in_daemon(fn: Callable[..., AssistResult], args: tuple, timeout: float) -> AssistResult:
    """Run `fn` on a daemon thread so a hung call never blocks interpreter exit."""
    outcome: Dict[str, Any] = {}

    def target():
        try:
            outcome['result'] = fn(*args)
        except Exception as exc:
            outcome['error'] = exc

    worker = threading.Thread(target=target, name='assistant-call', daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise TimeoutError(f"timed out after {timeout}s")
    if 'error' in outcome:
        raise outcome['error']
    return outcome['result']


def call_with_timeout(fn: Callable[..., AssistResult], *args: Any, timeout: float = DEFAULT_TIMEOUT, retries: int = DEFAULT_RETRIES) -> str:
    """Call an assistant method, returning its text only when it succeeded.

    A call that outlives `timeout` is abandoned; its daemon thread is left
    running and does not hold up shutdown. Raises AssistantUnavailable once
    `retries + 1` attempts failed.
    """
    last_problem = 'no attempts made'
    for attempt in range(1, max(0, retries) + 2):
        try:
            result = _run_in_daemon(fn, args, timeout)
        except TimeoutError as exc:
            last_problem = str(exc)
        except Exception as exc:
            last_problem = f"raised {exc.__class__.__name__}: {exc}"
        else:
            if isinstance(result, AssistResult) and result.succeeded:
                return result.text
            last_problem = 'reported failure'
        logger.warning("Assistant %s attempt %d %s", getattr(fn, '__name__', 'call'), attempt, last_problem)
    raise AssistantUnavailable(f"Assistant unavailable: {last_problem}")


def assisted_repair(assistant: Optional[Assistant], text: str, max_length: int = DEFAULT_MAX_LENGTH,
                    timeout: float = DEFAULT_TIMEOUT, retries: int = DEFAULT_RETRIES) -> Optional[str]:
    """Ask the assistant to repair `text`; None unless its answer is strict JSON."""
    if assistant is None:
        return None
    try:
        candidate = call_with_timeout(assistant.repair_text, text, max_length, timeout=timeout, retries=retries)
        strict_loads(candidate)
    except AssistantUnavailable as exc:
        logger.warning("Falling back to deterministic repair: %s", exc)
        return None
    except (ValueError, TypeError, RecursionError) as exc:
        logger.warning("Assistant repair output is not valid JSON (%s); falling back", exc)
        return None
    return candidate


def assisted_merge(assistant: Optional[Assistant], texts: List[str],
                   timeout: float = DEFAULT_TIMEOUT, retries: int = DEFAULT_RETRIES) -> Optional[List[Dict[str, Any]]]:
    """Ask the assistant to merge documents; None unless it returns a JSON array of objects."""
    if assistant is None:
        return None
    try:
        merged = strict_loads(call_with_timeout(assistant.merge_documents, texts, timeout=timeout, retries=retries))
    except AssistantUnavailable as exc:
        logger.warning("Falling back to deterministic merge: %s", exc)
        return None
    except (ValueError, TypeError, RecursionError) as exc:
        logger.warning("Assistant merge output is not valid JSON (%s); falling back", exc)
        return None
    if not isinstance(merged, list) or not merged or not all(isinstance(item, dict) for item in merged):
        logger.warning("Assistant merge output is not a non-empty array of objects; falling back")
        return None
    return merged


def assisted_analysis(assistant: Optional[Assistant], value: Any,
                      timeout: float = DEFAULT_TIMEOUT, retries: int = DEFAULT_RETRIES) -> Optional[Dict[str, Any]]:
    """Ask the assistant to describe a document; None unless it returns a JSON object."""
    if assistant is None:
        return None
    text = json.dumps(value, ensure_ascii=False, indent=2)
    try:
        analysis = strict_loads(call_with_timeout(assistant.analyze_structure, text, timeout=timeout, retries=retries))
    except AssistantUnavailable as exc:
        logger.warning("Falling back to deterministic analysis: %s", exc)
        return None
    except (ValueError, TypeError, RecursionError) as exc:
        logger.warning("Assistant analysis output is not valid JSON (%s); falling back", exc)
        return None
    if not isinstance(analysis, dict):
        logger.warning("Assistant analysis output is not an object; falling back")
        return None
    return analysis
