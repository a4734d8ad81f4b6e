"""
Small validation helpers shared by schemas, services and routers.
"""

import re
import uuid as uuid_lib
from decimal import Decimal, ROUND_HALF_UP

PHONE_PATTERN = r"^[0-9+\-\s()]+$"
_PHONE_RE = re.compile(PHONE_PATTERN)


def is_uuid_identifier(identifier: str | int) -> bool:
    """
    Restaurant identifiers on public routes are either numeric ids or UUIDs.
    Any string containing a hyphen is treated as a UUID.
    """
    return isinstance(identifier, str) and "-" in identifier


def is_valid_uuid(value: str) -> bool:
    try:
        uuid_lib.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        return False
    return True


def parse_numeric_id(value: str | int) -> int | None:
    """Return the positive integer in ``value`` or None."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def is_valid_phone(value: str) -> bool:
    return bool(_PHONE_RE.match(value))


def escape_like(term: str) -> str:
    """Escape LIKE wildcards in a user-supplied search term."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def round_money(value: Decimal | float | int) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
