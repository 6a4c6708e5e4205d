"""Memoization for derived report data keyed by record-set fingerprint."""

from __future__ import annotations

import functools
import hashlib
import threading
from collections import OrderedDict
from typing import Any, Callable, Dict, Hashable, Iterable, Optional, TypeVar

T = TypeVar("T")

_cache_lock = threading.Lock()
_memory_cache: Dict[str, "OrderedDict[Hashable, Any]"] = {}


def memoize(
    prefix: str,
    key: Optional[Callable[..., Hashable]] = None,
    maxsize: Optional[int] = 128,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Thread-safe LRU memoization decorator.

    Entries are grouped under ``prefix`` so a whole concern can be dropped with
    :func:`clear_prefix`. ``key`` maps the call arguments to a hashable cache
    key; without it the raw positional and keyword arguments are used, which
    requires them to be hashable. Each prefix holds at most ``maxsize`` entries,
    least recently used first out; ``None`` leaves it unbounded.
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if key is not None:
                cache_key = key(*args, **kwargs)
            else:
                cache_key = (args, tuple(sorted(kwargs.items())))
            with _cache_lock:
                entries = _memory_cache.setdefault(prefix, OrderedDict())
                if cache_key in entries:
                    entries.move_to_end(cache_key)
                    return entries[cache_key]
            result = func(*args, **kwargs)
            with _cache_lock:
                entries = _memory_cache.setdefault(prefix, OrderedDict())
                entries[cache_key] = result
                entries.move_to_end(cache_key)
                while maxsize is not None and len(entries) > maxsize:
                    entries.popitem(last=False)
            return result

        return wrapper

    return decorator


def clear_prefix(prefix: str) -> None:
    """Clear all cache entries for the given prefix."""

    with _cache_lock:
        _memory_cache.pop(prefix, None)


def cache_size(prefix: str) -> int:
    with _cache_lock:
        return len(_memory_cache.get(prefix, ()))


def fingerprint(documents: Iterable[str]) -> str:
    """SHA-256 over the sorted documents, so the digest ignores input order."""

    digest = hashlib.sha256()
    for document in sorted(documents):
        digest.update(document.encode("utf-8"))
        digest.update(b"\x00")
    return digest.hexdigest()


__all__ = ["memoize", "clear_prefix", "cache_size", "fingerprint"]
