"""Reference seed loading.

Reference tables are shipped as a JSON document with 'vehicles' and 'ports'
arrays. Rows are validated with pydantic before they become reference
entries; a file that cannot be read or validated raises
ReferenceDataUnavailable.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ...domain.reference import (
    PortReferenceEntry,
    ReferenceDataUnavailable,
    VehicleReferenceEntry,
)

logger = logging.getLogger(__name__)

DEFAULT_SEED_PATH = Path(__file__).parent / "data" / "reference_seed.json"


class VehicleRow(BaseModel):
    canonical_id: str = Field(..., min_length=1)
    brand: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    aliases: List[str] = Field(default_factory=list)
    length_m: Optional[float] = Field(None, gt=0)
    width_m: Optional[float] = Field(None, gt=0)
    height_m: Optional[float] = Field(None, gt=0)
    weight_kg: Optional[float] = Field(None, gt=0)

    def to_entry(self) -> VehicleReferenceEntry:
        return VehicleReferenceEntry(
            canonical_id=self.canonical_id,
            brand=self.brand,
            model=self.model,
            aliases=tuple(self.aliases),
            length_m=self.length_m,
            width_m=self.width_m,
            height_m=self.height_m,
            weight_kg=self.weight_kg,
        )


class PortRow(BaseModel):
    canonical_id: str = Field(..., min_length=5, max_length=5, description="UN/LOCODE")
    name: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)
    aliases: List[str] = Field(default_factory=list)
    port_type: str = "seaport"

    @field_validator("canonical_id")
    @classmethod
    def validate_locode(cls, v: str) -> str:
        if not v.isalnum():
            raise ValueError(f"UN/LOCODE must be alphanumeric, got {v!r}")
        return v.upper()

    def to_entry(self) -> PortReferenceEntry:
        return PortReferenceEntry(
            canonical_id=self.canonical_id,
            name=self.name,
            country=self.country,
            aliases=tuple(self.aliases),
            port_type=self.port_type,
        )


class ReferenceSeed(BaseModel):
    vehicles: List[VehicleRow] = Field(default_factory=list)
    ports: List[PortRow] = Field(default_factory=list)


def parse_reference_data(
    data: dict,
) -> Tuple[List[VehicleReferenceEntry], List[PortReferenceEntry]]:
    """Validate raw reference data and convert it into entries.

    Raises:
        ReferenceDataUnavailable: If the data does not match the seed schema
    """
    try:
        seed = ReferenceSeed.model_validate(data)
    except ValidationError as e:
        raise ReferenceDataUnavailable(f"Invalid reference data: {e}") from e

    return [row.to_entry() for row in seed.vehicles], [row.to_entry() for row in seed.ports]


def load_reference_file(
    path: Union[str, Path, None] = None,
) -> Tuple[List[VehicleReferenceEntry], List[PortReferenceEntry]]:
    """Load vehicle and port reference rows from a JSON file.

    Args:
        path: Seed file; defaults to the bundled seed

    Raises:
        ReferenceDataUnavailable: File missing, unreadable or invalid
    """
    seed_path = Path(path) if path else DEFAULT_SEED_PATH

    try:
        raw = json.loads(seed_path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ReferenceDataUnavailable(f"Reference file not found: {seed_path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ReferenceDataUnavailable(f"Cannot read reference file {seed_path}: {e}") from e

    vehicles, ports = parse_reference_data(raw)
    logger.info(
        f"Loaded reference data from {seed_path}",
        extra={"vehicles": len(vehicles), "ports": len(ports)},
    )
    return vehicles, ports
