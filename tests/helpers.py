from datetime import datetime

import config


def ist(day: str, hh_mm: str) -> datetime:
    """An aware datetime for a wall-clock time on an IST calendar day."""
    return datetime.fromisoformat(f"{day}T{hh_mm}:00").replace(tzinfo=config.BUSINESS_TZ)
