"""RFC identifier strategies."""

from __future__ import annotations

import itertools
import time
from typing import Callable

# Returns a fresh identifier; also used as the workspace (branch) name
IdentifierFactory = Callable[[], str]


def time_identifier() -> str:
    """Identifier based on the current epoch second."""
    return str(int(time.time()))


def sequential_identifiers(prefix: str = "rfc-", start: int = 1) -> IdentifierFactory:
    """Deterministic factory yielding prefix-1, prefix-2, ..."""
    counter = itertools.count(start)

    def factory() -> str:
        return f"{prefix}{next(counter)}"

    return factory
