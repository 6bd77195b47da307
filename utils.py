import logging
from datetime import datetime

import pytz

logger = logging.getLogger(__name__)


def get_timezone(name: str):
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return pytz.utc


def get_formatted_date(tz_name: str, now: datetime = None) -> str:
    """Returns the date for the generation prompt, e.g. 'Sunday, October 27, 2025'"""
    tz = get_timezone(tz_name)
    if now is None:
        now = datetime.now(tz)
    else:
        now = now.astimezone(tz)
    return now.strftime("%A, %B %d, %Y")
