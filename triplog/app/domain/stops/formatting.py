"""
Parsing helpers for the free-form values drivers type into stop forms.
"""

import re
from datetime import datetime
from typing import Optional, NamedTuple

_HHMM_24 = re.compile(r"^(\d{1,2}):(\d{2})\s*$")
_HHMM_12 = re.compile(r"^(\d{1,2}):(\d{2})\s*(am|pm)?$", re.IGNORECASE)

DEFAULT_TIME = "12:00"


class AddressParts(NamedTuple):
    address1: str
    city: str
    state: str
    zip_code: str


def parse_time_to_hhmm(text: Optional[str]) -> str:
    """
    Normalize a time string to HH:MM 24h.
    
    Accepts "14:30", "2:30 PM", "2:30pm" and ISO times like "14:30:15".
    Anything unparseable (including blank input) becomes "12:00".
    """
    t = (text or "").strip()
    if not t:
        return DEFAULT_TIME

    match = _HHMM_24.match(t)
    if match:
        h, m = int(match.group(1)), int(match.group(2))
        if 0 <= h <= 23 and 0 <= m <= 59:
            return f"{h:02d}:{m:02d}"

    match = _HHMM_12.match(t)
    if match:
        h, m = int(match.group(1)), int(match.group(2))
        ampm = (match.group(3) or "").lower()
        if ampm == "pm" and h < 12:
            h += 12
        if ampm == "am" and h == 12:
            h = 0
        if 0 <= h <= 23 and 0 <= m <= 59:
            return f"{h:02d}:{m:02d}"

    try:
        parsed = datetime.fromisoformat(f"1970-01-01T{t}")
    except ValueError:
        return DEFAULT_TIME
    return f"{parsed.hour:02d}:{parsed.minute:02d}"


def parse_address(address: Optional[str]) -> AddressParts:
    """
    Split "123 Street, City, ST 12345" into its parts.
    
    Addresses with fewer than three comma-separated parts are kept whole
    in address1.
    """
    address = (address or "").strip()
    parts = [p.strip() for p in address.split(",")]
    if len(parts) >= 3:
        state_zip = parts[-1].split(" ")
        state = state_zip[-2] if len(state_zip) >= 2 else ""
        zip_code = state_zip[-1]
        city = parts[-2]
        address1 = ", ".join(parts[:-2])
        return AddressParts(address1, city, state, zip_code)
    return AddressParts(address, "", "", "")


def format_address(
    address1: Optional[str],
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
) -> str:
    """Join address parts back into a single display line."""
    region = f"{state} {zip_code}" if state and zip_code else (state or zip_code)
    return ", ".join(part for part in (address1, city, region) if part)


def parse_odometer(value) -> Optional[float]:
    """Read an odometer value such as 123456, "123,456" or "123456 mi"."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    cleaned = re.sub(r"[^0-9.]", "", str(value))
    if not cleaned:
        return None
    try:
        return float(cleaned)
    except ValueError:
        return None
