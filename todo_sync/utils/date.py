"""
Date parsing utilities.
"""

import re
from datetime import date, datetime, timezone
from typing import Optional, Union


_FRACTION_RE = re.compile(r'\.(\d+)')


def parse_date(date_str: Optional[str]) -> Optional[date]:
    """
    Parse a date string into a date object.
    
    Handles various formats:
    - ISO format (YYYY-MM-DD)
    - ISO datetime (YYYY-MM-DDTHH:MM:SS)
    
    Args:
        date_str: Date string to parse
    
    Returns:
        Parsed date object or None if invalid
    """
    if not date_str:
        return None
    
    # Take only date part if it's a datetime string
    if 'T' in date_str:
        date_str = date_str.split('T')[0]
    
    try:
        return datetime.strptime(date_str.strip(), '%Y-%m-%d').date()
    except ValueError:
        pass
    
    try:
        # Try with single digit month/day
        parts = date_str.split('-')
        if len(parts) == 3:
            return date(int(parts[0]), int(parts[1]), int(parts[2]))
    except (ValueError, IndexError):
        pass
    
    return None


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp into an aware datetime.

    Graph emits seven fractional digits and sometimes no offset at all;
    timestamps without an offset are taken as UTC.

    Args:
        value: Timestamp string (or datetime, passed through)

    Returns:
        Timezone-aware datetime or None if empty/invalid
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    else:
        text = value.strip()
        if text.endswith('Z') or text.endswith('z'):
            text = text[:-1] + '+00:00'
        text = _FRACTION_RE.sub(lambda m: '.' + m.group(1)[:6].ljust(6, '0'), text, count=1)
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
