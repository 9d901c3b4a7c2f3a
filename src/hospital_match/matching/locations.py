"""Injectable location vocabulary: locality gazetteer and city alias table."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from hospital_match.config import DEFAULT_CITY_ALIASES, DEFAULT_LOCALITY_TERMS, Settings


@dataclass(frozen=True)
class LocationConfig:
    """Known localities plus canonical city names with their aliases.

    ``city_aliases`` maps a canonical display name (e.g. ``"Bengaluru"``) to
    alternative spellings. Every member of a group is an alias of every other.
    """

    locality_terms: tuple[str, ...] = tuple(DEFAULT_LOCALITY_TERMS)
    city_aliases: Mapping[str, Sequence[str]] = field(
        default_factory=lambda: dict(DEFAULT_CITY_ALIASES)
    )

    @classmethod
    def from_settings(cls, settings: Settings) -> LocationConfig:
        return cls(
            locality_terms=tuple(settings.locality_terms),
            city_aliases={k: list(v) for k, v in settings.city_aliases.items()},
        )

    def _groups(self) -> list[tuple[str, list[str]]]:
        groups: list[tuple[str, list[str]]] = []
        for canonical, aliases in self.city_aliases.items():
            members = [canonical.lower().strip()]
            for alias in aliases:
                alias_lower = alias.lower().strip()
                if alias_lower and alias_lower not in members:
                    members.append(alias_lower)
            groups.append((canonical, members))
        return groups

    def city_variations(self, city: str) -> list[str]:
        """Lowercase aliases of ``city``, excluding the city itself."""
        city_lower = city.lower().strip()
        variations: list[str] = []
        for _, members in self._groups():
            if city_lower in members:
                variations.extend(m for m in members if m != city_lower and m not in variations)
        return variations

    def canonical_city(self, city: str) -> str:
        """Map any spelling that mentions a known city to its canonical name."""
        city_lower = city.lower().strip()
        for canonical, members in self._groups():
            if any(member in city_lower for member in members):
                return canonical
        return city.strip()
