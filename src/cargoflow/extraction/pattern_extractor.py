"""Pattern Extractor - deterministic extraction of freight tokens from text.

Pure, synchronous and free of I/O, so it stays available when every AI
provider is down. Produces ExtractionField candidates with source=pattern.

Confidence policy:
- Regex hits start at 0.7 and gain 0.1 per corroborating signal (explicit
  unit, field label, reference-table confirmation), capped at 0.95.
- Free-text fallbacks (unconfirmed model tokens, first-line description)
  stay at or below 0.4.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from ..domain.extraction.fields import DIMENSION_KEYS, ExtractionField, FieldSource
from ..domain.reference import ReferenceDomain
from ..infrastructure.reference import ReferenceLookup
from . import pattern_vocabulary as vocab
from .uom_normalization import (
    UNLABELED_METER_CEILING,
    is_plausible,
    parse_decimal,
    parse_weight_number,
    round_meters,
    to_kilograms,
    to_meters,
)

logger = logging.getLogger(__name__)

STRATEGY_NAME = "pattern_v1"

BASE_CONFIDENCE = 0.7
SIGNAL_BONUS = 0.1
MAX_CONFIDENCE = 0.95
FREE_TEXT_MODEL_CONFIDENCE = 0.35
FREE_TEXT_DESCRIPTION_CONFIDENCE = 0.3

_NUM = r"\d+(?:[.,]\d+)?"
# A unit must not run into further letters ('x' is allowed: '10mx2m')
_LENGTH_UNIT = r"(?:mm|cm|mtrs?|meters?|metres?|m|ft)(?![^\W\dxX_])"
_WEIGHT_UNIT = r"(?:kilogramm|kilograms?|kilos?|kgs?|tonnes?|tons?|t|lbs?)"
_WEIGHT_VALUE = rf"\d{{1,3}}(?:[.,]\d{{3}})+(?![.,]?\d)|{_NUM}"
_CAPITALIZED = r"[A-ZÀ-ÖØ-Þ][\w'’.-]*"
_PLACE = rf"{_CAPITALIZED}(?:[ -]{_CAPITALIZED}){{0,3}}"


def _alternation(words: List[str]) -> str:
    return "|".join(re.escape(w) for w in sorted(words, key=len, reverse=True))


_TRIPLE = re.compile(
    rf"(?<![\d.,])(?P<l>{_NUM})\s*(?P<lu>{_LENGTH_UNIT})?\s*[x×*]\s*"
    rf"(?P<w>{_NUM})\s*(?P<wu>{_LENGTH_UNIT})?\s*[x×*]\s*"
    rf"(?P<h>{_NUM})\s*(?P<hu>{_LENGTH_UNIT})?",
    re.IGNORECASE,
)

_LABELED_DIMENSION = {
    key: re.compile(
        rf"(?<![^\W_])(?:{_alternation(labels)})\.?\s*[:=]?\s*(?P<value>{_NUM})\s*(?P<unit>{_LENGTH_UNIT})?",
        re.IGNORECASE,
    )
    for key, labels in vocab.DIMENSION_LABELS.items()
}

_WEIGHT = re.compile(
    rf"(?<![\w.,])(?P<value>{_WEIGHT_VALUE})\s*(?P<unit>{_WEIGHT_UNIT})(?![^\W_])",
    re.IGNORECASE,
)
_LABELED_WEIGHT = re.compile(
    rf"(?<![^\W_])(?:{_alternation(vocab.WEIGHT_LABELS)})\s*[:=]?\s*(?P<value>{_WEIGHT_VALUE})"
    rf"\s*(?P<unit>{_WEIGHT_UNIT})?(?![^\W_])",
    re.IGNORECASE,
)

_ROUTE_PREPOSITIONS = [
    (
        language,
        re.compile(
            rf"(?<![^\W_])(?i:{_alternation(origins)})\s+(?P<origin>{_PLACE})\s*,?\s+"
            rf"(?i:{_alternation(destinations)})\s+(?P<destination>{_PLACE})"
        ),
    )
    for language, (origins, destinations) in vocab.ROUTE_PREPOSITIONS.items()
]


def _labeled_line(labels: List[str]) -> re.Pattern:
    return re.compile(
        rf"^[ \t>*-]*(?:{_alternation(labels)})[ \t]*[:=][ \t]*(?P<value>[^\n]+?)[ \t]*$",
        re.IGNORECASE | re.MULTILINE,
    )


_ROUTE_LABELS = {key: _labeled_line(labels) for key, labels in vocab.ROUTE_LABELS.items()}
_CONTACT_LABELS = {key: _labeled_line(labels) for key, labels in vocab.CONTACT_LABELS.items()}

_EMAIL = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
_INTERNATIONAL_PHONE = re.compile(r"(?<![\w+])(?:\+|00)\d{1,3}[\s./-]?(?:\(?\d+\)?[\s./-]?){2,}\d")
_PHONE_VALUE = re.compile(r"^\+?[\d(][\d\s()./-]{6,}\d$")
_VIN = re.compile(r"\b(?=[A-HJ-NPR-Z0-9]*\d)(?=[A-HJ-NPR-Z0-9]*[A-HJ-NPR-Z])[A-HJ-NPR-Z0-9]{17}\b")
_YEAR = re.compile(
    rf"(?<![^\W_])(?:{_alternation(vocab.YEAR_LABELS)})\s*[:=]?\s*(?P<year>19[5-9]\d|20[0-4]\d)\b",
    re.IGNORECASE,
)
_CONTAINER = re.compile(
    r"(?<![\w.])(?P<size>20|40|45)\s*(?:'|’|ft\b|feet\b|foot\b|voet\b|fuß\b)\s*(?P<hc>hc\b|hq\b|high[\s-]?cube\b)?"
    r"|(?<![\w.])(?P<hc_size>40|45)\s*(?:hc|hq)\b",
    re.IGNORECASE,
)
_INCOTERM = re.compile(rf"\b(?P<code>{'|'.join(vocab.INCOTERMS)})\b")
_CURRENCY_CODE = re.compile(rf"\b(?P<code>{'|'.join(vocab.CURRENCY_CODES)})\b")
_MODEL_TOKEN = re.compile(
    r"(?<![\w@.])(?=[A-Za-z0-9-]*\d)(?=(?:[A-Za-z0-9-]*[A-Za-z]){2})[A-Za-z][A-Za-z0-9-]{2,11}(?![\w@])"
)
_TRAILING_PUNCTUATION = " \t.,;:!?)('\""


def _scaled(signals: int) -> float:
    return round(min(MAX_CONFIDENCE, BASE_CONFIDENCE + SIGNAL_BONUS * signals), 2)


def _keyword_pattern(keyword: str) -> re.Pattern:
    return re.compile(rf"(?<![^\W_]){re.escape(keyword)}(?![^\W_])", re.IGNORECASE)


@dataclass(frozen=True)
class DimensionMatch:
    length_m: float
    width_m: float
    height_m: float
    confidence: float
    evidence: str
    span: Tuple[int, int]


@dataclass(frozen=True)
class WeightMatch:
    weight_kg: float
    confidence: float
    evidence: str
    span: Tuple[int, int]


class _CandidateSet:
    """Best candidate per key; on equal confidence the earlier one stays."""

    def __init__(self):
        self._fields: Dict[str, ExtractionField] = {}
        self.spans: List[Tuple[int, int]] = []

    def add(self, key: str, value, confidence: float, evidence: Optional[str] = None) -> None:
        if value is None or value == "":
            return
        current = self._fields.get(key)
        if current is not None and current.confidence >= confidence:
            return
        self._fields[key] = ExtractionField(
            key=key,
            value=value,
            confidence=confidence,
            source=FieldSource.PATTERN,
            strategy=STRATEGY_NAME,
            evidence=evidence,
        )

    def consume(self, span: Tuple[int, int]) -> None:
        self.spans.append(span)

    def overlaps(self, span: Tuple[int, int]) -> bool:
        return any(start < span[1] and span[0] < end for start, end in self.spans)

    def has(self, key: str) -> bool:
        return key in self._fields

    def fields(self) -> List[ExtractionField]:
        return list(self._fields.values())


def _convert_triple(
    values: List[Tuple[float, Optional[str]]],
    trailing_unit_applies: bool = True,
) -> Optional[Tuple[float, float, float]]:
    """Convert three (value, unit) pairs to meters.

    A trailing unit on the last value applies to unit-less values before it
    ('390 x 230 x 310 cm'). Otherwise unit-less values share one decision:
    meters if the largest is below the unlabeled ceiling, else centimeters.
    """
    unitless = [v for v, unit in values if not unit]
    implied_unit = values[-1][1] if trailing_unit_applies else None
    if implied_unit is None and unitless:
        implied_unit = "m" if max(unitless) < UNLABELED_METER_CEILING else "cm"

    meters = tuple(
        round_meters(to_meters(value, unit or implied_unit)) for value, unit in values
    )
    if not all(is_plausible(key, m) for key, m in zip(DIMENSION_KEYS, meters)):
        return None
    return meters


def extract_dimensions(text: str) -> Optional[DimensionMatch]:
    """Find the best dimension triple in text.

    Tries 'L x W x H' forms first, then three separately labeled values
    ('L: 390 cm', 'B230 cm', 'H310cm'). Labeled triples carry one more
    corroborating signal than bare triples.

    Examples:
        >>> extract_dimensions("10,06m x 2,52m x 3,12m").length_m
        10.06
    """
    best: Optional[DimensionMatch] = None

    for match in _TRIPLE.finditer(text):
        parsed = [
            (parse_decimal(match.group(g)), match.group(u))
            for g, u in (("l", "lu"), ("w", "wu"), ("h", "hu"))
        ]
        if any(value is None for value, _ in parsed):
            continue
        meters = _convert_triple(parsed)
        if meters is None:
            logger.debug(f"Rejected implausible dimension triple: {match.group(0)!r}")
            continue
        signals = 1 if any(unit for _, unit in parsed) else 0
        candidate = DimensionMatch(*meters, _scaled(signals), match.group(0).strip(), match.span())
        if best is None or candidate.confidence > best.confidence:
            best = candidate

    labeled = []
    for key in DIMENSION_KEYS:
        match = _LABELED_DIMENSION[key].search(text)
        if match is None:
            break
        labeled.append(match)

    if len(labeled) == 3:
        parsed = [(parse_decimal(m.group("value")), m.group("unit")) for m in labeled]
        if all(value is not None for value, _ in parsed):
            # Each labeled value carries its own unit
            meters = _convert_triple(parsed, trailing_unit_applies=False)
            if meters is not None:
                signals = 1 + (1 if all(unit for _, unit in parsed) else 0)
                start = min(m.start() for m in labeled)
                end = max(m.end() for m in labeled)
                evidence = " / ".join(m.group(0).strip() for m in labeled)
                candidate = DimensionMatch(*meters, _scaled(signals), evidence, (start, end))
                if best is None or candidate.confidence > best.confidence:
                    best = candidate

    return best


def extract_weight(text: str) -> Optional[WeightMatch]:
    """Find a weight and normalize it to kilograms.

    Examples:
        >>> extract_weight("3500KG").weight_kg
        3500.0
        >>> extract_weight("gross weight: 18.750 kg").weight_kg
        18750.0
    """
    best: Optional[WeightMatch] = None

    candidates = []
    for match in _LABELED_WEIGHT.finditer(text):
        signals = 1 + (1 if match.group("unit") else 0)
        candidates.append((match, signals))
    for match in _WEIGHT.finditer(text):
        candidates.append((match, 1))

    for match, signals in candidates:
        value = parse_weight_number(match.group("value"))
        if value is None:
            continue
        weight_kg = round(to_kilograms(value, match.group("unit")), 3)
        if not is_plausible("vehicle.weight_kg", weight_kg):
            continue
        candidate = WeightMatch(weight_kg, _scaled(signals), match.group(0).strip(), match.span())
        if best is None or candidate.confidence > best.confidence:
            best = candidate

    return best


def _clean_value(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip(_TRAILING_PUNCTUATION)


class PatternExtractor:
    """Regex/heuristic extractor for freight-forwarding text.

    Args:
        lookup: Reference lookup used to recognize vehicles and ports.
            Without it only free-text vehicle models are reported.

    Example:
        extractor = PatternExtractor(ReferenceLookup.from_seed())
        fields = extractor.extract("L390 cm\\nB230 cm\\nH310cm\\n3500KG")
    """

    def __init__(self, lookup: Optional[ReferenceLookup] = None):
        self._lookup = lookup
        self._shipment_keywords = [
            (shipment_type, _keyword_pattern(keyword))
            for shipment_type, keywords in vocab.SHIPMENT_TYPE_KEYWORDS.items()
            for keyword in keywords
        ]
        self._condition_keywords = [
            (condition, [_keyword_pattern(k) for k in keywords])
            for condition, keywords in vocab.CONDITION_KEYWORDS
        ]

    def extract(self, text: str) -> List[ExtractionField]:
        """Extract all recognizable fields from text.

        Returns:
            One candidate per canonical key that was found (may be empty)
        """
        if not text or not text.strip():
            return []

        candidates = _CandidateSet()
        self._extract_dimensions(text, candidates)
        self._extract_weight(text, candidates)
        self._extract_contact(text, candidates)
        self._extract_route(text, candidates)
        self._extract_shipment(text, candidates)
        self._extract_commercial(text, candidates)
        self._extract_vehicle_identity(text, candidates)
        self._extract_vehicle(text, candidates)
        self._extract_description(text, candidates)

        fields = candidates.fields()
        logger.debug(f"Pattern extraction found {len(fields)} fields")
        return fields

    def _extract_dimensions(self, text: str, candidates: _CandidateSet) -> None:
        match = extract_dimensions(text)
        if match is None:
            return
        candidates.consume(match.span)
        for key, value in zip(DIMENSION_KEYS, (match.length_m, match.width_m, match.height_m)):
            candidates.add(key, value, match.confidence, match.evidence)

    def _extract_weight(self, text: str, candidates: _CandidateSet) -> None:
        match = extract_weight(text)
        if match is None:
            return
        candidates.consume(match.span)
        candidates.add("vehicle.weight_kg", match.weight_kg, match.confidence, match.evidence)

    def _extract_contact(self, text: str, candidates: _CandidateSet) -> None:
        email = _EMAIL.search(text)
        if email:
            candidates.consume(email.span())
            candidates.add("contact.email", email.group(0).lower(), 0.95, email.group(0))

        for key, pattern in _CONTACT_LABELS.items():
            match = pattern.search(text)
            if match is None:
                continue
            value = _clean_value(match.group("value"))
            if key == "contact.phone":
                if not _PHONE_VALUE.match(value):
                    continue
                candidates.consume(match.span("value"))
            elif "@" in value or (key == "contact.name" and any(c.isdigit() for c in value)):
                continue
            candidates.add(key, value, _scaled(2), match.group(0).strip())

        if not candidates.has("contact.phone"):
            phone = _INTERNATIONAL_PHONE.search(text)
            if phone:
                candidates.consume(phone.span())
                candidates.add("contact.phone", phone.group(0).strip(), _scaled(1), phone.group(0))

    def _resolve_place(self, value: str) -> Tuple[str, int]:
        """Return (display value, extra signals) for a place mention."""
        if self._lookup is None:
            return value, 0
        match = self._lookup.resolve(value, ReferenceDomain.PORT)
        if match is None:
            return value, 0
        return match.entry.name, 1

    def _extract_route(self, text: str, candidates: _CandidateSet) -> None:
        for key, pattern in _ROUTE_LABELS.items():
            for match in pattern.finditer(text):
                value = _clean_value(match.group("value"))
                # 'From: John <john@x.com>' is an email header, not a place
                if not value or "@" in value or "<" in value or len(value) > 80:
                    continue
                if not any(c.isalpha() for c in value):
                    continue
                place, bonus = self._resolve_place(value)
                candidates.add(key, place, _scaled(1 + bonus), match.group(0).strip())
                break

        for language, pattern in _ROUTE_PREPOSITIONS:
            match = pattern.search(text)
            if match is None:
                continue
            for key, group in (("route.origin", "origin"), ("route.destination", "destination")):
                place, bonus = self._resolve_place(_clean_value(match.group(group)))
                candidates.add(key, place, _scaled(1 + bonus), match.group(0).strip())
            logger.debug(f"Route matched with '{language}' prepositions")

    def _extract_shipment(self, text: str, candidates: _CandidateSet) -> None:
        container = _CONTAINER.search(text)
        if container:
            candidates.consume(container.span())
            size = container.group("size") or container.group("hc_size")
            high_cube = bool(container.group("hc")) or bool(container.group("hc_size"))
            candidates.add(
                "shipment.container_size",
                f"{size}hc" if high_cube else f"{size}ft",
                _scaled(1),
                container.group(0).strip(),
            )
            candidates.add("shipment.type", "container", _scaled(1), container.group(0).strip())

        earliest: Optional[Tuple[int, str, str]] = None
        for shipment_type, pattern in self._shipment_keywords:
            match = pattern.search(text)
            if match and (earliest is None or match.start() < earliest[0]):
                earliest = (match.start(), shipment_type, match.group(0))
        if earliest:
            candidates.add("shipment.type", earliest[1], _scaled(1), earliest[2])

    def _extract_commercial(self, text: str, candidates: _CandidateSet) -> None:
        incoterm = _INCOTERM.search(text)
        if incoterm:
            candidates.add("commercial.incoterm", incoterm.group("code"), _scaled(2), incoterm.group(0))

        code = _CURRENCY_CODE.search(text)
        if code:
            candidates.add("commercial.currency", code.group("code"), _scaled(1), code.group(0))
        else:
            for symbol, currency in vocab.CURRENCY_SYMBOLS.items():
                if symbol in text:
                    candidates.add("commercial.currency", currency, _scaled(0), symbol)
                    break

    def _extract_vehicle_identity(self, text: str, candidates: _CandidateSet) -> None:
        vin = _VIN.search(text)
        if vin:
            candidates.consume(vin.span())
            candidates.add("vehicle.vin", vin.group(0), _scaled(2), vin.group(0))

        year = _YEAR.search(text)
        if year:
            candidates.consume(year.span())
            candidates.add("vehicle.year", int(year.group("year")), _scaled(1), year.group(0))

        for condition, patterns in self._condition_keywords:
            for pattern in patterns:
                hit = pattern.search(text)
                if hit:
                    candidates.add("vehicle.condition", condition, _scaled(0), hit.group(0))
                    return

    def _extract_vehicle(self, text: str, candidates: _CandidateSet) -> None:
        if self._lookup is not None:
            match = self._lookup.find_in_text(text, ReferenceDomain.VEHICLE)
            if match is not None:
                entry = match.entry
                candidates.add("vehicle.brand", entry.brand, _scaled(2), match.matched_alias)
                candidates.add("vehicle.model", entry.model, _scaled(2), match.matched_alias)
                return

        for token in _MODEL_TOKEN.finditer(text):
            if candidates.overlaps(token.span()):
                continue
            if sum(c.isdigit() for c in token.group(0)) > 6:
                continue
            candidates.add("vehicle.model", token.group(0), FREE_TEXT_MODEL_CONFIDENCE, token.group(0))
            return

    def _extract_description(self, text: str, candidates: _CandidateSet) -> None:
        for line in text.splitlines():
            line = _clean_value(line)
            if sum(c.isalpha() for c in line) < 3 or ":" in line or "@" in line:
                continue
            candidates.add("cargo.description", line[:120], FREE_TEXT_DESCRIPTION_CONFIDENCE, line[:120])
            return
