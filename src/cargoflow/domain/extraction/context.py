"""Explicit per-run context passed through every pipeline call."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ExtractionContext:
    """Caller-supplied context for one extraction run.

    Attributes:
        preferred_company: Company name that overrides any extracted one
        default_country: Country applied when no country signal exists
        locale: Locale hint for number and phone parsing (e.g. 'nl-BE')
        email_domain_overrides_company: Let an email-domain company beat an
            explicit company field
    """
    preferred_company: Optional[str] = None
    default_country: Optional[str] = None
    locale: str = "en"
    email_domain_overrides_company: bool = False
