#!/usr/bin/env python3
"""
Split a search box query such as "coffee shops in Miami" into the business
type and the location.
"""

import re

from leads_models import ParsedQuery

# Checked in order; the first separator that matches wins.
_SEPARATORS = (
    re.compile(r"\s+in\s+", re.IGNORECASE),
    re.compile(r"\s+near\s+", re.IGNORECASE),
)


def parse_query(query: str) -> ParsedQuery:
    text = (query or "").strip()
    for pattern in _SEPARATORS:
        match = pattern.search(text)
        if match:
            return ParsedQuery(
                business_type=text[: match.start()].strip(),
                location=text[match.end():].strip(),
            )
    return ParsedQuery(business_type=text, location="")
