"""CargoFlow - hybrid extraction and field mapping for freight documents."""

__version__ = "0.1.0"
