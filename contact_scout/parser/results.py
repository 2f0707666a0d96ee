"""
Tagged results for isolated extractor runs.

Each extractor is a plain function returning a collection. ``run_extractor``
wraps one call and turns it into either :class:`Extracted` or
:class:`Failed`; ``merge_successful`` unions the successful values only, so a
broken extractor never blanks the output of its siblings.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Sequence, TypeVar, Union

from contact_scout.logger import LOGGER_NAME

__all__: Sequence[str] = ("Extracted", "Failed", "ExtractResult", "run_extractor", "merge_successful")

logger = logging.getLogger(LOGGER_NAME)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Extracted:
    """Successful extractor run."""

    name: str
    value: Any

    ok = True


@dataclass(frozen=True, slots=True)
class Failed:
    """Extractor run that raised; ``error`` keeps the exception for diagnostics."""

    name: str
    error: BaseException

    ok = False


ExtractResult = Union[Extracted, Failed]


def run_extractor(name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> ExtractResult:
    """Call ``fn(*args, **kwargs)`` and tag the outcome."""
    try:
        return Extracted(name, fn(*args, **kwargs))
    except Exception as exc:  # noqa: BLE001 - any extractor bug becomes an empty result
        logger.debug("Extractor %s failed: %s", name, exc)
        return Failed(name, exc)


def merge_successful(results: Iterable[ExtractResult]) -> List[str]:
    """Concatenate the values of successful results, preserving first-seen order."""
    merged: dict[str, None] = {}
    for result in results:
        if isinstance(result, Extracted):
            for item in result.value or ():
                merged.setdefault(item, None)
    return list(merged)
