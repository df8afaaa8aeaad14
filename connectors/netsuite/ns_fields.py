"""NetSuite field limits.

NetSuite rejects a whole record when one field is too long, so values are
trimmed to the column limits before they leave the connector. Truncation is
logged at warning and never fails the request.
"""

import logging
from typing import Any, Dict, Optional

from core.models import EMAIL_MAX_LENGTH, is_valid_email

logger = logging.getLogger(__name__)


# Customer record
COMPANY_NAME_MAX = 83
FIRST_NAME_MAX = 32
LAST_NAME_MAX = 32
PHONE_MAX = 22

# Address book address
ADDRESSEE_MAX = 150
ADDR_MAX = 150
CITY_MAX = 50
STATE_MAX = 50
ZIP_MAX = 36
COUNTRY_MAX = 2


def truncate(value: Optional[str], max_length: int, field_name: str) -> Optional[str]:
    """Trim and cut a value to a NetSuite column limit.

    Empty values are returned unchanged.
    """
    if not value:
        return value
    value = str(value).strip()
    if len(value) > max_length:
        logger.warning(
            f"Field {field_name} truncated for NetSuite limits "
            f"({len(value)} > {max_length}): {value!r}"
        )
        value = value[:max_length]
    return value


def clean_email(value: Optional[str]) -> str:
    """Email accepted by NetSuite, or empty when missing or invalid."""
    if not value:
        return ""
    value = str(value).strip()
    if len(value) > EMAIL_MAX_LENGTH:
        logger.warning(f"Email too long for NetSuite ({len(value)} chars), sending blank")
        return ""
    if not is_valid_email(value):
        logger.warning(f"Invalid email format {value!r}, sending blank")
        return ""
    return value


def compact(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Drop empty values so NetSuite keeps its defaults for them."""
    return {key: value for key, value in fields.items() if value not in (None, "")}
