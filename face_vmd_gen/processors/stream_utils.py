"""Streaming utilities for unified batch/stream processing."""

from typing import Any, Iterable, Iterator, Optional, Tuple, TypeVar

T = TypeVar('T')


def is_iterator(obj: Any) -> bool:
    """
    Check if object is an iterator (excluding string, bytes, dict and sequences).

    Args:
        obj: Object to check

    Returns:
        True if object is an iterator that should be treated as stream
    """
    if isinstance(obj, (str, bytes, dict, list, tuple, set)):
        return False

    return hasattr(obj, '__iter__')


def index_stream(stream: Iterable[Optional[T]], start: int = 0) -> Iterator[Tuple[int, T]]:
    """
    Pair each present item with its position in the source, dropping None items.

    The counter advances for dropped items too, so frame numbers stay aligned
    with the source frames.

    Args:
        stream: Input stream with None for missing items
        start: Index of the first item

    Yields:
        (index, item) for every non-None item
    """
    for index, item in enumerate(stream, start):
        if item is not None:
            yield index, item
