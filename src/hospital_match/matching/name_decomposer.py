"""Split a raw hospital mention into its brand name and locality qualifiers."""

from __future__ import annotations

import re

from hospital_match.matching.locations import LocationConfig

_ROAD_WORDS = r"(?:road|street|cross|layout|nagar|pura)"

_ROAD_PATTERN = re.compile(rf"\b\w+\s+{_ROAD_WORDS}\b", re.I)
_OLD_NEW_PATTERN = re.compile(r"\b(?:old|new)\s+\w+\b", re.I)
_TRAILING_ROAD_PATTERN = re.compile(rf"\s+\w+\s+{_ROAD_WORDS}\b.*$", re.I)
_TRAILING_SUFFIX_PATTERN = re.compile(r"(?:\s+(?:hospital|medical center|clinic)s?)+$", re.I)


def _collapse(raw: str) -> str:
    return " ".join(raw.split()).lower()


class NameDecomposer:
    """Separates hospital identity from branch/locality terms."""

    def __init__(self, locations: LocationConfig | None = None):
        self.locations = locations or LocationConfig()
        terms = sorted(
            {t.lower().strip() for t in self.locations.locality_terms if t.strip()},
            key=len,
            reverse=True,
        )
        alternation = "|".join(re.escape(t) for t in terms)
        # An empty gazetteer matches nothing.
        self._locality_pattern = re.compile(rf"\b(?:{alternation})\b" if terms else r"(?!)", re.I)
        self._trailing_locality_pattern = re.compile(
            rf"\s+(?:{alternation})\b.*$" if terms else r"(?!)", re.I
        )

    def extract_location_terms(self, raw: str) -> list[str]:
        """Return locality terms found in ``raw``, lowercased and deduplicated.

        Combines gazetteer localities, ``<word> road``-style phrases and
        ``old/new <word>`` phrases, in that order.
        """
        name = _collapse(raw)
        terms: list[str] = []
        for pattern in (self._locality_pattern, _ROAD_PATTERN, _OLD_NEW_PATTERN):
            for match in pattern.finditer(name):
                term = match.group(0).strip()
                if term and term not in terms:
                    terms.append(term)
        return terms

    def extract_main_hospital_name(self, raw: str) -> str:
        """Return the brand part of ``raw``, lowercased.

        Everything from the first locality or ``<word> road`` phrase onwards is
        dropped, then trailing hospital/clinic suffixes. The result can be
        empty when the mention is only a location.
        """
        name = _collapse(raw)
        name = self._trailing_locality_pattern.sub("", name)
        name = _TRAILING_ROAD_PATTERN.sub("", name)
        name = _TRAILING_SUFFIX_PATTERN.sub("", name)
        return name.strip()

    def decompose(self, raw: str) -> tuple[str, list[str]]:
        return self.extract_main_hospital_name(raw), self.extract_location_terms(raw)
