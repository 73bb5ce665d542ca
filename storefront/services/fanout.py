from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from ..settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class FanoutResult(Generic[T]):
    """Lookups keyed by id. `found` keeps the order the ids were given in."""
    found: Dict[str, T] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def complete(self) -> bool:
        return not self.missing and not self.failed


def fetch_all(ids: Sequence[str], lookup: Callable[[str], Optional[T]],
              max_workers: Optional[int] = None) -> FanoutResult[T]:
    """
    Run one lookup per id in parallel and wait for all of them.

    A lookup returning None counts as missing; one that raises is recorded
    in `failed` and does not stop the others.
    """
    unique = list(dict.fromkeys(i for i in ids if i))
    result: FanoutResult[T] = FanoutResult()
    if not unique:
        return result

    found: Dict[str, T] = {}
    workers = min(max_workers or settings.fanout_workers, len(unique))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(lookup, i): i for i in unique}
        for future in as_completed(futures):
            key = futures[future]
            try:
                value = future.result()
            except Exception as e:
                logger.warning("lookup for %s failed: %s", key, e)
                result.failed[key] = str(e)
                continue
            if value is None:
                result.missing.append(key)
            else:
                found[key] = value

    result.found = {i: found[i] for i in unique if i in found}
    result.missing = [i for i in unique if i in set(result.missing)]
    return result
