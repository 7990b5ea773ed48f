from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str


def format_errors(errs: list[ValidationError]) -> str:
    return "; ".join(e.message for e in errs)


def parse_date(s: str | None) -> date | None:
    """Parse YYYY-MM-DD date string."""
    if not s:
        return None
    s = s.strip()
    if not s:
        return None
    return date.fromisoformat(s)
