from .reference_lookup import ReferenceLookup, normalize_key
from .seed_data import load_reference_file, parse_reference_data

__all__ = ["ReferenceLookup", "load_reference_file", "normalize_key", "parse_reference_data"]
