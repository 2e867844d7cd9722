"""
Observability module for pagecapture.

Provides tracing decorators that optionally integrate with lmnr (Laminar).
If lmnr is not installed, the decorators are no-op wrappers that accept the
same parameters, so preprocessing code can be decorated unconditionally.

Features:
- Optional lmnr integration - works with or without lmnr installed
- Debug mode support - observe_debug only traces when in debug mode
- No-op fallbacks when lmnr is unavailable
"""

import logging
import os
from collections.abc import Callable
from functools import wraps
from typing import Any, Literal, TypeVar, cast

from dotenv import load_dotenv

from pagecapture.config import CONFIG

load_dotenv()

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])


def _is_debug_mode() -> bool:
    """Check if we're in debug mode based on environment variables or logging level."""
    if os.getenv('LMNR_LOGGING_LEVEL', '').lower() == 'debug':
        return True

    if CONFIG.DEBUG:
        return True

    return logging.root.level <= logging.DEBUG


_LMNR_AVAILABLE = False
_lmnr_observe = None

try:
    from lmnr import observe as _lmnr_observe  # type: ignore

    _LMNR_AVAILABLE = True
except ImportError:
    _LMNR_AVAILABLE = False

if os.environ.get('PAGECAPTURE_VERBOSE_OBSERVABILITY', 'false').lower() == 'true':
    logger.debug(f'Lmnr available for observability: {_LMNR_AVAILABLE}')


def _create_no_op_decorator(**kwargs: Any) -> Callable[[F], F]:
    """Create a decorator that accepts all lmnr observe parameters but does nothing."""

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            return func(*args, **kwargs)

        return cast(F, wrapper)

    return decorator


def _observe_kwargs(
    name: str | None,
    ignore_input: bool,
    ignore_output: bool,
    metadata: dict[str, Any] | None,
    span_type: str,
    tag: str,
    **kwargs: Any,
) -> dict[str, Any]:
    return {
        'name': name,
        'ignore_input': ignore_input,
        'ignore_output': ignore_output,
        'metadata': metadata,
        'span_type': span_type,
        'tags': [tag],
        **kwargs,
    }


def observe(
    name: str | None = None,
    ignore_input: bool = False,
    ignore_output: bool = False,
    metadata: dict[str, Any] | None = None,
    span_type: Literal['DEFAULT', 'LLM', 'TOOL'] = 'DEFAULT',
    **kwargs: Any,
) -> Callable[[F], F]:
    """
    Observability decorator that traces function execution when lmnr is available.

    Args:
        name: Name of the span/trace
        ignore_input: Whether to ignore function input parameters in tracing
        ignore_output: Whether to ignore function output in tracing
        metadata: Additional metadata to attach to the span
        span_type: Type of span (DEFAULT, LLM, TOOL)
        **kwargs: Additional parameters passed to lmnr observe

    Example:
        @observe(name="capture_pipeline")
        def run(root, url):
            ...
    """
    observe_kwargs = _observe_kwargs(name, ignore_input, ignore_output, metadata, span_type, 'observe', **kwargs)
    if _LMNR_AVAILABLE and _lmnr_observe:
        return cast(Callable[[F], F], _lmnr_observe(**observe_kwargs))
    return _create_no_op_decorator(**observe_kwargs)


def observe_debug(
    name: str | None = None,
    ignore_input: bool = False,
    ignore_output: bool = False,
    metadata: dict[str, Any] | None = None,
    span_type: Literal['DEFAULT', 'LLM', 'TOOL'] = 'DEFAULT',
    **kwargs: Any,
) -> Callable[[F], F]:
    """
    Debug-only observability decorator.

    Traces through lmnr only when lmnr is installed AND debug mode is on
    (LMNR_LOGGING_LEVEL=debug, PAGECAPTURE_DEBUG=1/true/yes/on, or a root
    logger at DEBUG). Debug mode is evaluated when the decorator is applied.
    """
    observe_kwargs = _observe_kwargs(name, ignore_input, ignore_output, metadata, span_type, 'observe_debug', **kwargs)
    if _LMNR_AVAILABLE and _lmnr_observe and _is_debug_mode():
        return cast(Callable[[F], F], _lmnr_observe(**observe_kwargs))
    return _create_no_op_decorator(**observe_kwargs)


def get_observability_status() -> dict[str, bool]:
    """Get the current status of observability features."""
    return {
        'lmnr_available': _LMNR_AVAILABLE,
        'debug_mode': _is_debug_mode(),
        'observe_active': _LMNR_AVAILABLE,
        'observe_debug_active': _LMNR_AVAILABLE and _is_debug_mode(),
    }
