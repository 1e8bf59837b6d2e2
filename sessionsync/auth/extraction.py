"""Extraction of the authorization code, state and tenant URL from the consent page.

The consent page embeds the three values in inline script content, e.g.::

    code: "abc", state: "xyz", tenant_url: "https://d1.api.example.com/"

Callers depend only on ``ConsentPageExtractor`` so the matching strategy can
change with the page format.
"""

import re
from typing import Protocol

from sessionsync.auth.models import ConsentFields
from sessionsync.exceptions import ExtractionError


class ConsentPageExtractor(Protocol):
    """Turns raw consent page text into the three consent fields."""

    def extract(self, html: str) -> ConsentFields:
        """Extract the fields or raise ExtractionError."""
        ...


class ScriptPatternExtractor:
    """Locates each field independently with a ``name: "value"`` pattern."""

    FIELD_PATTERNS: dict[str, re.Pattern[str]] = {
        "code": re.compile(r'code:\s*"([^"]+)"'),
        "state": re.compile(r'state:\s*"([^"]+)"'),
        "tenant_url": re.compile(r'tenant_url:\s*"([^"]+)"'),
    }

    def extract(self, html: str) -> ConsentFields:
        values: dict[str, str] = {}
        for field, pattern in self.FIELD_PATTERNS.items():
            match = pattern.search(html)
            if match is None:
                raise ExtractionError(
                    f"could not find {field} in consent page", field=field
                )
            values[field] = match.group(1)
        return ConsentFields(**values)


def extract_fields(
    html: str, extractor: ConsentPageExtractor | None = None
) -> ConsentFields:
    """Extract code, state and tenant URL from consent page text."""
    return (extractor or ScriptPatternExtractor()).extract(html)
