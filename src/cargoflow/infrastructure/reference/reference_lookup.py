"""Reference Lookup - resolve vehicle and port mentions to canonical entries.

Matching is case-insensitive and accent-insensitive. When several aliases
match, the longest alias wins.

Tables live in an immutable snapshot. A refresh builds a complete new
snapshot first and then replaces the single reference to it, so concurrent
readers either see the old tables or the new ones, never a partial table.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ...domain.reference import (
    PortReferenceEntry,
    ReferenceDataUnavailable,
    ReferenceDomain,
    ReferenceMatch,
    VehicleReferenceEntry,
)
from ...domain.reference.models import ReferenceEntry
from .seed_data import load_reference_file

logger = logging.getLogger(__name__)

EXACT_MATCH_CONFIDENCE = 0.95
CODE_MATCH_CONFIDENCE = 0.95
SUBSTRING_MATCH_CONFIDENCE = 0.85

_NON_ALNUM = re.compile(r"[^0-9a-z]+")
_LOCODE = re.compile(r"^[A-Za-z]{2}\s?[A-Za-z0-9]{3}$")


def normalize_key(text: str) -> str:
    """Fold case and accents and collapse punctuation to single spaces.

    Examples:
        >>> normalize_key("  Lomé ")
        'lome'
        >>> normalize_key("Mercedes-Benz  Sprinter")
        'mercedes benz sprinter'
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _NON_ALNUM.sub(" ", stripped.casefold()).strip()


@dataclass(frozen=True)
class _Table:
    aliases: Mapping[str, ReferenceEntry]
    # Longest first, then alphabetical, so the first hit is the winner
    ordered_aliases: Tuple[str, ...]


@dataclass(frozen=True)
class ReferenceSnapshot:
    vehicles: _Table
    ports: _Table
    port_codes: Mapping[str, PortReferenceEntry]
    loaded_at: datetime

    def table(self, domain: ReferenceDomain) -> _Table:
        return self.vehicles if domain == ReferenceDomain.VEHICLE else self.ports


def _entry_aliases(entry: ReferenceEntry) -> List[str]:
    if isinstance(entry, VehicleReferenceEntry):
        names = [f"{entry.brand} {entry.model}"]
        # Bare model names like '320' or 'X5' are too ambiguous on their own
        if len(entry.model) >= 4 and any(c.isalpha() for c in entry.model):
            names.append(entry.model)
    else:
        names = [entry.name]
    return names + list(entry.aliases)


def _build_table(entries: Sequence[ReferenceEntry], domain: ReferenceDomain) -> _Table:
    aliases = {}
    for entry in entries:
        for alias in _entry_aliases(entry):
            key = normalize_key(alias)
            if not key:
                continue
            existing = aliases.get(key)
            if existing is not None and existing.canonical_id != entry.canonical_id:
                logger.warning(
                    f"Duplicate {domain.value} alias '{key}': keeping {existing.canonical_id}, "
                    f"ignoring {entry.canonical_id}"
                )
                continue
            aliases[key] = entry

    ordered = tuple(sorted(aliases, key=lambda a: (-len(a), a)))
    return _Table(aliases=MappingProxyType(aliases), ordered_aliases=ordered)


def build_snapshot(
    vehicles: Iterable[VehicleReferenceEntry],
    ports: Iterable[PortReferenceEntry],
) -> ReferenceSnapshot:
    vehicles = list(vehicles)
    ports = list(ports)
    return ReferenceSnapshot(
        vehicles=_build_table(vehicles, ReferenceDomain.VEHICLE),
        ports=_build_table(ports, ReferenceDomain.PORT),
        port_codes=MappingProxyType({p.canonical_id.upper(): p for p in ports}),
        loaded_at=datetime.now(timezone.utc),
    )


class ReferenceLookup:
    """Resolve free-text spans against vehicle and port reference tables.

    Safe to share across concurrent pipeline runs without locking: every
    call reads the current snapshot once and never mutates it.

    Example:
        lookup = ReferenceLookup.from_seed()
        match = lookup.resolve("Antwerpen", ReferenceDomain.PORT)
        match.canonical_id
        'BEANR'
    """

    def __init__(
        self,
        vehicles: Iterable[VehicleReferenceEntry],
        ports: Iterable[PortReferenceEntry],
    ):
        """
        Raises:
            ReferenceDataUnavailable: If both tables are empty
        """
        snapshot = build_snapshot(vehicles, ports)
        if not snapshot.vehicles.aliases and not snapshot.ports.aliases:
            raise ReferenceDataUnavailable("Reference tables are empty")
        self._snapshot = snapshot

    @classmethod
    def from_file(cls, path: Union[str, None] = None) -> "ReferenceLookup":
        vehicles, ports = load_reference_file(path)
        return cls(vehicles, ports)

    @classmethod
    def from_seed(cls) -> "ReferenceLookup":
        return cls.from_file(None)

    @property
    def snapshot(self) -> ReferenceSnapshot:
        return self._snapshot

    def refresh(
        self,
        vehicles: Iterable[VehicleReferenceEntry],
        ports: Iterable[PortReferenceEntry],
    ) -> None:
        """Replace both tables atomically.

        The new snapshot is fully built before it becomes visible. On any
        error the previous snapshot stays in place.

        Raises:
            ReferenceDataUnavailable: If the new tables are empty
        """
        snapshot = build_snapshot(vehicles, ports)
        if not snapshot.vehicles.aliases and not snapshot.ports.aliases:
            raise ReferenceDataUnavailable("Refusing to swap in empty reference tables")
        self._snapshot = snapshot
        logger.info(
            "Reference tables refreshed",
            extra={
                "vehicle_aliases": len(snapshot.vehicles.aliases),
                "port_aliases": len(snapshot.ports.aliases),
            },
        )

    def resolve(self, span: str, domain: ReferenceDomain) -> Optional[ReferenceMatch]:
        """Resolve a whole span (e.g. a port name or 'BMW X5').

        Order: exact alias, UN/LOCODE code (ports), longest alias contained
        in the span.
        """
        snapshot = self._snapshot
        key = normalize_key(span)
        if not key:
            return None

        table = snapshot.table(domain)
        entry = table.aliases.get(key)
        if entry is not None:
            return ReferenceMatch(domain, entry.canonical_id, entry, key, EXACT_MATCH_CONFIDENCE)

        if domain == ReferenceDomain.PORT and _LOCODE.match(span.strip()):
            code = span.replace(" ", "").upper()
            port = snapshot.port_codes.get(code)
            if port is not None:
                return ReferenceMatch(domain, port.canonical_id, port, code.lower(), CODE_MATCH_CONFIDENCE)

        return self._scan(snapshot, key, domain)

    def find_in_text(self, text: str, domain: ReferenceDomain) -> Optional[ReferenceMatch]:
        """Find the longest alias occurring as whole words anywhere in text."""
        return self._scan(self._snapshot, normalize_key(text), domain)

    def resolve_vehicle(self, brand: Optional[str], model: Optional[str]) -> Optional[ReferenceMatch]:
        """Resolve a brand/model pair: 'brand model' first, then the model alone."""
        if not model:
            return None
        spans = [f"{brand} {model}", str(model)] if brand else [str(model)]
        for span in spans:
            match = self.resolve(span, ReferenceDomain.VEHICLE)
            if match is not None:
                return match
        return None

    def _scan(
        self,
        snapshot: ReferenceSnapshot,
        normalized_text: str,
        domain: ReferenceDomain,
    ) -> Optional[ReferenceMatch]:
        if not normalized_text:
            return None

        padded = f" {normalized_text} "
        table = snapshot.table(domain)
        for alias in table.ordered_aliases:
            if f" {alias} " in padded:
                entry = table.aliases[alias]
                return ReferenceMatch(domain, entry.canonical_id, entry, alias, SUBSTRING_MATCH_CONFIDENCE)
        return None

    def __len__(self) -> int:
        snapshot = self._snapshot
        return len(snapshot.vehicles.aliases) + len(snapshot.ports.aliases)
