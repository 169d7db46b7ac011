"""Multilingual vocabulary used by the pattern extractor.

Languages are data: supporting a new language means adding entries here,
not new branches in the extractor.
"""

from typing import Dict, List, Tuple

# language -> (origin prepositions, destination prepositions)
ROUTE_PREPOSITIONS: Dict[str, Tuple[List[str], List[str]]] = {
    "en": (["from"], ["to"]),
    "nl": (["van", "vanuit"], ["naar"]),
    "de": (["von", "ab"], ["nach", "bis"]),
    "fr": (["de", "depuis"], ["à", "a", "vers", "pour"]),
}

# canonical route key -> labels introducing a value on a "Label: value" line
ROUTE_LABELS: Dict[str, List[str]] = {
    "route.origin": [
        "from", "origin", "pickup", "pick-up", "pick up", "place of receipt",
        "van", "herkomst", "ophaaladres", "von", "abholung", "départ", "origine",
    ],
    "route.destination": [
        "to", "destination", "delivery", "final destination",
        "naar", "bestemming", "nach", "ziel", "destination finale",
    ],
    "route.port_of_loading": [
        "pol", "port of loading", "loading port", "laadhaven", "verladehafen",
        "port de chargement",
    ],
    "route.port_of_discharge": [
        "pod", "port of discharge", "discharge port", "destination port",
        "loshaven", "löschhafen", "port de déchargement",
    ],
}

# canonical dimension key -> labels (single letters include Dutch/German B for width)
DIMENSION_LABELS: Dict[str, List[str]] = {
    "vehicle.dimensions.length_m": ["length", "lengte", "länge", "laenge", "longueur", "lang", "l"],
    "vehicle.dimensions.width_m": ["width", "breedte", "breite", "largeur", "breed", "w", "b"],
    "vehicle.dimensions.height_m": ["height", "hoogte", "höhe", "hoehe", "hauteur", "hoog", "h"],
}

WEIGHT_LABELS: List[str] = [
    "weight", "gross weight", "gewicht", "brutogewicht", "poids", "massa", "gw",
]

YEAR_LABELS: List[str] = [
    "year", "model year", "built", "build year", "bouwjaar", "baujahr", "année",
]

CONTACT_LABELS: Dict[str, List[str]] = {
    "contact.name": ["name", "contact", "contact person", "naam", "contactpersoon", "ansprechpartner", "nom"],
    "contact.company": ["company", "company name", "firma", "bedrijf", "bedrijfsnaam", "société", "societe"],
    "contact.phone": ["tel", "tel.", "phone", "telephone", "telefoon", "telefon", "gsm", "mobile", "mob"],
    "contact.address": ["address", "adres", "adresse"],
    "contact.country": ["country", "land", "pays"],
}

# shipment type -> keywords (matched case-insensitively on word boundaries)
SHIPMENT_TYPE_KEYWORDS: Dict[str, List[str]] = {
    "roro": ["roro", "ro-ro", "ro/ro", "roll on roll off", "roll-on/roll-off"],
    "container": ["container", "fcl", "full container load"],
    "lcl": ["lcl", "groupage", "consolidation"],
    "breakbulk": ["breakbulk", "break bulk", "flatrack", "flat rack", "bb cargo"],
    "air": ["air freight", "airfreight", "luchtvracht", "luftfracht", "fret aérien"],
}

# condition -> keywords; checked in order so "non-runner" beats "used"
CONDITION_KEYWORDS: List[Tuple[str, List[str]]] = [
    ("non-runner", ["non-runner", "non runner", "not running", "niet rijdend", "nicht fahrbereit"]),
    ("used", ["used", "gebruikt", "tweedehands", "gebraucht", "occasion"]),
    ("new", ["brand new", "nieuw", "neuwagen", "neuf", "new vehicle", "new machine"]),
]

INCOTERMS: List[str] = [
    "EXW", "FCA", "FAS", "FOB", "CFR", "CIF", "CPT", "CIP", "DAP", "DPU", "DDP",
]

CURRENCY_CODES: List[str] = ["EUR", "USD", "GBP", "CHF", "AED"]

CURRENCY_SYMBOLS: Dict[str, str] = {
    "€": "EUR",
    "$": "USD",
    "£": "GBP",
}
