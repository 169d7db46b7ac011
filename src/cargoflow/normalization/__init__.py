from .customer_normalizer import CustomerNormalizer, NormalizedCustomer
from .record_builder import build_canonical_record

__all__ = ["CustomerNormalizer", "NormalizedCustomer", "build_canonical_record"]
