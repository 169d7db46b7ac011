"""Customer normalization - canonical contact/company data from loose fields.

Company precedence:
1. Preferred company from the run context (always wins when set)
2. Explicit company field
3. Company inferred from the email domain (generic mail providers excluded)
4. Raw contact name

When `email_domain_overrides_company` is set in the context, step 3 is
tried before step 2.

The default country is applied only when no country signal exists: an
explicit country field, a country named in the address, an international
phone prefix or a country-code email domain.
"""

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from ..domain.canonical import ContactInfo
from ..domain.extraction.context import ExtractionContext

logger = logging.getLogger(__name__)

GENERIC_MAIL_DOMAINS = {
    "gmail.com", "googlemail.com", "outlook.com", "hotmail.com", "hotmail.fr",
    "yahoo.com", "yahoo.fr", "web.de", "gmx.de", "gmx.net", "live.com",
    "live.be", "icloud.com", "me.com", "aol.com", "msn.com", "proton.me",
    "protonmail.com", "skynet.be", "telenet.be",
}

# Second-level labels that are part of the public suffix (acme.co.uk)
_SECOND_LEVEL_SUFFIXES = {"co", "com", "org", "net", "ac", "gov"}

COUNTRY_ALIASES = {
    "belgium": "Belgium", "belgie": "Belgium", "belgique": "Belgium", "belgien": "Belgium", "be": "Belgium",
    "netherlands": "Netherlands", "nederland": "Netherlands", "holland": "Netherlands",
    "the netherlands": "Netherlands", "nl": "Netherlands",
    "germany": "Germany", "deutschland": "Germany", "allemagne": "Germany", "duitsland": "Germany", "de": "Germany",
    "france": "France", "frankrijk": "France", "frankreich": "France", "fr": "France",
    "luxembourg": "Luxembourg", "luxemburg": "Luxembourg", "lu": "Luxembourg",
    "united kingdom": "United Kingdom", "uk": "United Kingdom", "gb": "United Kingdom",
    "great britain": "United Kingdom", "england": "United Kingdom",
    "spain": "Spain", "espana": "Spain", "es": "Spain",
    "italy": "Italy", "italia": "Italy", "it": "Italy",
    "nigeria": "Nigeria", "ng": "Nigeria",
    "togo": "Togo", "tg": "Togo",
    "benin": "Benin", "bj": "Benin",
    "ghana": "Ghana", "gh": "Ghana",
    "cameroon": "Cameroon", "cameroun": "Cameroon", "cm": "Cameroon",
    "senegal": "Senegal", "sn": "Senegal",
    "ivory coast": "Ivory Coast", "cote d ivoire": "Ivory Coast", "ci": "Ivory Coast",
    "tanzania": "Tanzania", "tz": "Tanzania",
    "kenya": "Kenya", "ke": "Kenya",
    "united states": "United States", "usa": "United States", "us": "United States",
    "united arab emirates": "United Arab Emirates", "uae": "United Arab Emirates", "ae": "United Arab Emirates",
}

COUNTRY_CALLING_CODES = {
    "Belgium": "32",
    "Netherlands": "31",
    "Germany": "49",
    "France": "33",
    "Luxembourg": "352",
    "United Kingdom": "44",
    "Spain": "34",
    "Italy": "39",
    "Nigeria": "234",
    "Togo": "228",
    "Benin": "229",
    "Ghana": "233",
    "Cameroon": "237",
    "Senegal": "221",
    "Ivory Coast": "225",
    "Tanzania": "255",
    "Kenya": "254",
    "United Arab Emirates": "971",
}

# Full names only: two-letter codes collide with ordinary words ('de', 'it')
_COUNTRY_NAMES = sorted((a for a in COUNTRY_ALIASES if len(a) > 2), key=len, reverse=True)
_COUNTRY_NAME_PATTERN = re.compile(
    r"(?<![a-z])(?:" + "|".join(re.escape(name) for name in _COUNTRY_NAMES) + r")(?![a-z])"
)

# Longest code first: +352 must not be read as +35
_CALLING_CODE_PREFIXES = sorted(
    ((code, country) for country, code in COUNTRY_CALLING_CODES.items()),
    key=lambda item: -len(item[0]),
)

VAT_PREFIXES = {
    "Belgium": "BE",
    "Netherlands": "NL",
    "Germany": "DE",
    "France": "FR",
    "Luxembourg": "LU",
    "Spain": "ES",
    "Italy": "IT",
}

COMPANY_INDICATORS = (
    "BV", "BVBA", "NV", "SRL", "SA", "SARL", "SAS", "GmbH", "AG", "KG", "Ltd",
    "LLC", "Inc", "Corp", "PLC", "Company", "Co", "Logistics", "Trading",
)
_COMPANY_INDICATOR = re.compile(
    r"\b(?:" + "|".join(re.escape(i) for i in COMPANY_INDICATORS) + r")\b\.?",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class NormalizedCustomer:
    """
    Canonical customer shape.

    Attributes:
        company_source: preferred / explicit / email_domain / contact_name / None
        country_source: field / address / phone / email / default / None
        client_type: company or individual
    """
    name: Optional[str] = None
    company: Optional[str] = None
    company_source: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    country_source: Optional[str] = None
    address: Optional[str] = None
    vat_number: Optional[str] = None
    client_type: str = "individual"

    def to_contact_info(self) -> ContactInfo:
        return ContactInfo(
            name=self.name,
            company=self.company,
            email=self.email,
            phone=self.phone,
            country=self.country,
            address=self.address,
            vat_number=self.vat_number,
            client_type=self.client_type,
            company_source=self.company_source,
        )


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = re.sub(r"\s+", " ", str(value)).strip()
    return text or None


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return re.sub(r"[^a-z]+", " ", stripped.casefold()).strip()


class CustomerNormalizer:
    """Normalize extracted contact fields into a NormalizedCustomer."""

    def normalize(
        self,
        raw: Mapping[str, Any],
        context: Optional[ExtractionContext] = None,
    ) -> NormalizedCustomer:
        """
        Args:
            raw: Contact values keyed name/company/email/phone/country/address/vat_number
            context: Run context (preferred company, default country, precedence switch)

        Returns:
            NormalizedCustomer
        """
        context = context or ExtractionContext()

        name = _clean(raw.get("name"))
        email = _clean(raw.get("email"))
        email = email.lower() if email else None

        company, company_source = self.resolve_company(
            explicit=_clean(raw.get("company")),
            email=email,
            contact_name=name,
            context=context,
        )

        phone = self.clean_phone(raw.get("phone"))
        country, country_source = self.resolve_country(
            explicit=_clean(raw.get("country")),
            phone=phone,
            email=email,
            default_country=context.default_country,
            address=_clean(raw.get("address")),
        )
        phone = self.normalize_phone(phone, country)
        vat_number = self.normalize_vat(raw.get("vat_number"), country)

        return NormalizedCustomer(
            name=name,
            company=company,
            company_source=company_source,
            email=email,
            phone=phone,
            country=country,
            country_source=country_source,
            address=_clean(raw.get("address")),
            vat_number=vat_number,
            client_type=self.determine_client_type(company, vat_number, company_source),
        )

    def resolve_company(
        self,
        explicit: Optional[str],
        email: Optional[str],
        contact_name: Optional[str],
        context: ExtractionContext,
    ) -> Tuple[Optional[str], Optional[str]]:
        """Apply company precedence. Returns (company, source)."""
        preferred = _clean(context.preferred_company)
        if preferred:
            return preferred, "preferred"

        from_domain = self.company_from_email(email)
        if context.email_domain_overrides_company and from_domain:
            return from_domain, "email_domain"
        if explicit:
            return explicit, "explicit"
        if from_domain:
            return from_domain, "email_domain"
        if contact_name:
            return contact_name, "contact_name"
        return None, None

    @staticmethod
    def company_from_email(email: Optional[str]) -> Optional[str]:
        """Infer a company name from a non-generic email domain.

        Examples:
            >>> CustomerNormalizer.company_from_email("jan@acme-logistics.be")
            'Acme Logistics'
            >>> CustomerNormalizer.company_from_email("jan@gmail.com") is None
            True
        """
        if not email or "@" not in email:
            return None
        domain = email.rsplit("@", 1)[1].strip().lower()
        if not domain or domain in GENERIC_MAIL_DOMAINS:
            return None

        labels = domain.split(".")
        if len(labels) < 2:
            return None
        if len(labels) >= 3 and labels[-2] in _SECOND_LEVEL_SUFFIXES:
            label = labels[-3]
        else:
            label = labels[-2]

        words = [w for w in re.split(r"[-_]+", label) if w]
        return " ".join(w.capitalize() for w in words) or None

    @staticmethod
    def normalize_country(value: Optional[str]) -> Optional[str]:
        """Map aliases and ISO codes to an English country name."""
        value = _clean(value)
        if not value:
            return None
        folded = _fold(value)
        if folded in COUNTRY_ALIASES:
            return COUNTRY_ALIASES[folded]
        return value.title()

    @staticmethod
    def clean_phone(raw: Any) -> Optional[str]:
        """Strip formatting; '00' international prefix becomes '+'."""
        if raw is None:
            return None
        digits = re.sub(r"[^\d+]", "", str(raw))
        if digits.startswith("00"):
            digits = "+" + digits[2:]
        # A '+' is only meaningful as the first character
        digits = digits[:1] + digits[1:].replace("+", "")
        return digits if sum(c.isdigit() for c in digits) >= 6 else None

    @staticmethod
    def country_from_phone(phone: Optional[str]) -> Optional[str]:
        if not phone or not phone.startswith("+"):
            return None
        for code, country in _CALLING_CODE_PREFIXES:
            if phone[1:].startswith(code):
                return country
        return None

    @staticmethod
    def country_from_email(email: Optional[str]) -> Optional[str]:
        """Country from a country-code TLD (generic TLDs carry no signal)."""
        if not email or "@" not in email:
            return None
        tld = email.rsplit(".", 1)[-1].lower()
        if len(tld) != 2:
            return None
        return COUNTRY_ALIASES.get(tld)

    @staticmethod
    def country_from_text(text: Optional[str]) -> Optional[str]:
        """Country named in an address or other free text; the last mention wins.

        Examples:
            >>> CustomerNormalizer.country_from_text("Kerkstraat 1, 2000 Antwerpen, Belgium")
            'Belgium'
        """
        if not text:
            return None
        mentions = _COUNTRY_NAME_PATTERN.findall(_fold(text))
        return COUNTRY_ALIASES[mentions[-1]] if mentions else None

    def resolve_country(
        self,
        explicit: Optional[str],
        phone: Optional[str],
        email: Optional[str],
        default_country: Optional[str],
        address: Optional[str] = None,
    ) -> Tuple[Optional[str], Optional[str]]:
        """Returns (country, source); the default applies only without any signal."""
        if explicit:
            return self.normalize_country(explicit), "field"

        from_address = self.country_from_text(address)
        if from_address:
            return from_address, "address"

        from_phone = self.country_from_phone(phone)
        if from_phone:
            return from_phone, "phone"

        from_email = self.country_from_email(email)
        if from_email:
            return from_email, "email"

        if default_country:
            return self.normalize_country(default_country), "default"
        return None, None

    @staticmethod
    def normalize_phone(phone: Optional[str], country: Optional[str]) -> Optional[str]:
        """Give national numbers the country's calling code.

        Examples:
            >>> CustomerNormalizer.normalize_phone("0475123456", "Belgium")
            '+32475123456'
        """
        if not phone:
            return None
        if phone.startswith("+"):
            return phone
        code = COUNTRY_CALLING_CODES.get(country or "")
        if code is None:
            return phone
        return f"+{code}{phone.lstrip('0')}"

    @staticmethod
    def normalize_vat(raw: Any, country: Optional[str]) -> Optional[str]:
        """Uppercase, drop separators, add the country prefix when missing."""
        if raw is None:
            return None
        vat = re.sub(r"[\s.:,\-/]", "", str(raw)).upper()
        if not vat:
            return None
        prefix = VAT_PREFIXES.get(country or "")
        if prefix and not vat[:2].isalpha():
            vat = prefix + vat
        return vat

    @staticmethod
    def determine_client_type(
        company: Optional[str],
        vat_number: Optional[str],
        company_source: Optional[str] = None,
    ) -> str:
        if vat_number:
            return "company"
        if company and company_source in ("preferred", "explicit", "email_domain"):
            return "company"
        if company and _COMPANY_INDICATOR.search(company):
            return "company"
        return "individual"
