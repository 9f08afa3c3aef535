"""Menu option building and reconciliation of the user's picks."""

from __future__ import annotations

from typing import Callable, Collection, Iterable, List, Sequence, TypeVar

from .errors import EmptySelectionError
from .interactive import multi_select

T = TypeVar("T")

ALL = "All"


def build_options(candidates: Sequence[str], sentinel: str = ALL) -> List[str]:
    """Return menu options, prefixed with ``sentinel`` when there is a choice to make."""
    if len(candidates) > 1:
        return [sentinel, *candidates]
    return list(candidates)


def reconcile(
    candidates: Sequence[str],
    raw_selection: Collection[str],
    sentinel: str = ALL,
) -> List[str]:
    """Turn raw menu picks into the final list of candidate names.

    Picking only ``sentinel`` selects every candidate in listing order.
    Otherwise names unknown to ``candidates`` (the sentinel included) are
    dropped along with duplicates.  Raises :class:`EmptySelectionError` when
    nothing is left.
    """
    picked = set(raw_selection)
    if picked == {sentinel}:
        result = list(dict.fromkeys(candidates))
    else:
        result = [c for c in dict.fromkeys(candidates) if c in picked]
    if not result:
        raise EmptySelectionError("No items selected")
    return result


def map_to_entries(
    selected_names: Iterable[str],
    entries: Sequence[T],
    name: Callable[[T], str],
) -> List[T]:
    """Map display names back to their entries; the first entry with a name wins."""
    by_name: dict[str, T] = {}
    for entry in entries:
        by_name.setdefault(name(entry), entry)
    return [by_name[n] for n in selected_names if n in by_name]


def select_entries(
    message: str,
    candidates: Sequence[str],
    *,
    prompt: Callable[[str, Sequence[str]], Iterable[str]] | None = None,
    sentinel: str = ALL,
) -> List[str]:
    """Ask the user to pick from ``candidates`` and return the reconciled names."""
    ask = prompt or multi_select
    raw = ask(message, build_options(candidates, sentinel))
    return reconcile(candidates, set(raw), sentinel)
