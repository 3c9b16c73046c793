"""Abbreviation lookups scoped to one kind or across the whole catalog.

Example:
    >>> registry = registry_for(get_catalog())
    >>> registry.lookup("Mass", "kg").name
    'Kilogram'
    >>> registry.kinds_for_abbreviation("g")
    ('Mass', 'Acceleration')
"""

from __future__ import annotations

from functools import lru_cache

from .catalog import INVARIANT_CULTURE, Catalog, Kind, Unit, get_catalog, normalize_culture
from .errors import AmbiguousAbbreviationError, UnknownAbbreviationError


class AbbreviationRegistry:
    """Read-only abbreviation index over a catalog."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog
        index: dict[str, dict[str, list[str]]] = {}
        for kind in catalog:
            for culture in kind.cultures:
                table = index.setdefault(culture, {})
                for unit in kind.units:
                    tokens = unit.abbreviations if culture == INVARIANT_CULTURE else unit.localized.get(culture, ())
                    for token in tokens:
                        owners = table.setdefault(token, [])
                        if kind.name not in owners:
                            owners.append(kind.name)
        self._kinds_by_token = {
            culture: {token: tuple(owners) for token, owners in table.items()}
            for culture, table in index.items()
        }

    def _kind(self, kind: Kind | str) -> Kind:
        return self.catalog.kind(kind) if isinstance(kind, str) else kind

    def lookup(self, kind: Kind | str, abbreviation: str, culture: str | None = None) -> Unit:
        """Resolve an abbreviation within one kind.

        Raises:
            UnknownAbbreviationError: If no unit of the kind uses the token.
            AmbiguousAbbreviationError: If several units of the kind use it.
        """
        resolved = self._kind(kind)
        units = resolved.units_for_abbreviation(abbreviation, culture)
        if not units:
            raise UnknownAbbreviationError(abbreviation, resolved.name, culture)
        if len(units) > 1:
            raise AmbiguousAbbreviationError(abbreviation, [unit.name for unit in units], resolved.name)
        return units[0]

    def all_abbreviations(self, kind: Kind | str, culture: str | None = None) -> tuple[str, ...]:
        """Return every abbreviation of the kind, in unit order, without repeats."""
        resolved = self._kind(kind)
        seen: dict[str, None] = {}
        for unit in resolved.units:
            for token in unit.abbreviations_for(culture):
                seen.setdefault(token, None)
        return tuple(seen)

    def default_abbreviation(self, unit: Unit, culture: str | None = None) -> str:
        return unit.abbreviations_for(culture)[0]

    def kinds_for_abbreviation(self, abbreviation: str, culture: str | None = None) -> tuple[str, ...]:
        """Return the names of every kind defining the token, in catalog order."""
        key = normalize_culture(culture)
        owners: list[str] = []
        if key:
            owners.extend(self._kinds_by_token.get(key, {}).get(abbreviation, ()))
        for name in self._kinds_by_token.get(INVARIANT_CULTURE, {}).get(abbreviation, ()):
            if name not in owners:
                owners.append(name)
        order = {name: position for position, name in enumerate(self.catalog.kind_names)}
        return tuple(sorted(owners, key=order.__getitem__))


@lru_cache(maxsize=8)
def registry_for(catalog: Catalog) -> AbbreviationRegistry:
    """Return the shared registry for a catalog."""
    return AbbreviationRegistry(catalog)


def default_registry() -> AbbreviationRegistry:
    return registry_for(get_catalog())


__all__ = ["AbbreviationRegistry", "default_registry", "registry_for"]
