"""
Repair of the birth-chart query string before it is forwarded to the provider.

Somewhere between the browser and this service the percent-encoded plus sign
of the UTC offset (``10:30:00%2B05:30``) is decoded and then read back as a
space, leaving ``10:30:00 05:30``. The provider rejects that timestamp. The
normalizer puts the plus sign back, touching only the space that sits between
the time and the offset, and rebuilds a canonical three-parameter query.
"""

from __future__ import annotations

import re
from typing import Dict, Optional
from urllib.parse import parse_qsl, quote

from shared.errors import ValidationError
from service_kundli.app.domain.models import BirthQuery

REQUIRED_PARAMETERS = ("datetime", "coordinates", "ayanamsa")

# HH:MM:SS<space>HH:MM
_OFFSET_SEPARATOR = re.compile(r"(?<=\d{2}:\d{2}:\d{2}) (?=\d{2}:\d{2}(?!\d))")

# Characters the provider expects verbatim in values
_SAFE_CHARS = ":,-."


def parse_query(raw_query: Optional[str]) -> Dict[str, str]:
    """Decode a raw query string into a dict, first occurrence of a key wins."""
    params: Dict[str, str] = {}
    for key, value in parse_qsl((raw_query or "").lstrip("?"), keep_blank_values=True):
        params.setdefault(key, value)
    return params


def repair_offset_separator(value: str) -> str:
    """Restore the plus sign of a UTC offset that arrived as a space."""
    return _OFFSET_SEPARATOR.sub("+", value, count=1)


def parse_birth_query(raw_query: Optional[str]) -> BirthQuery:
    """Validate the raw query and return the repaired BirthQuery."""
    params = parse_query(raw_query)

    for key in REQUIRED_PARAMETERS:
        if not params.get(key, "").strip():
            raise ValidationError(
                f"missing required parameter: {key}",
                details={"parameter": key},
            )

    try:
        ayanamsa = int(params["ayanamsa"])
    except ValueError:
        raise ValidationError(
            "ayanamsa must be an integer",
            details={"parameter": "ayanamsa", "value": params["ayanamsa"]},
        )

    return BirthQuery(
        datetime=repair_offset_separator(params["datetime"]),
        coordinates=params["coordinates"],
        ayanamsa=ayanamsa,
        timezone=params.get("timezone") or None,
    )


def to_query_string(query: BirthQuery) -> str:
    """Serialize the forwarded parameters in their fixed order."""
    return "&".join(
        f"{key}={quote(str(value), safe=_SAFE_CHARS)}"
        for key, value in (
            ("datetime", query.datetime),
            ("coordinates", query.coordinates),
            ("ayanamsa", query.ayanamsa),
        )
    )


def normalize(raw_query: Optional[str]) -> str:
    """Return the corrected, canonical query string for the provider."""
    return to_query_string(parse_birth_query(raw_query))
