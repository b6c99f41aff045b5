"""Driver flag entities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class DriverFlag:
    """One create-time flag advertised by a machine driver.

    ``kind`` is one of ``string``, ``int``, ``bool``, ``bool_true`` or
    ``string_slice``; anything else is rejected during translation.
    """

    name: str
    kind: str
    usage: str = ""
    value: Any = None
