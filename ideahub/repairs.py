"""Text rewrites applied to near-JSON model output before a second parse."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Pattern, Tuple


@dataclass(frozen=True)
class RepairRule:
    """A single regex rewrite with a stable name for logging."""

    name: str
    pattern: Pattern[str]
    replacement: str

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


QUOTE_BARE_KEYS = RepairRule(
    name="quote_bare_keys",
    pattern=re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:"),
    replacement=r'\1"\2":',
)

SINGLE_TO_DOUBLE_QUOTES = RepairRule(
    name="single_to_double_quotes",
    pattern=re.compile(r"'"),
    replacement='"',
)

STRIP_TRAILING_COMMAS = RepairRule(
    name="strip_trailing_commas",
    pattern=re.compile(r",(\s*[}\]])"),
    replacement=r"\1",
)

# Order matters: keys are quoted before quote characters are normalized.
REPAIR_RULES: Tuple[RepairRule, ...] = (
    QUOTE_BARE_KEYS,
    SINGLE_TO_DOUBLE_QUOTES,
    STRIP_TRAILING_COMMAS,
)


def apply_repairs(text: str, rules: Iterable[RepairRule] = REPAIR_RULES) -> str:
    """Run every rule over *text* in order and return the rewritten text."""

    for rule in rules:
        text = rule.apply(text)
    return text
