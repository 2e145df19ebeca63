"""
Country and timezone detection for leads.

Infers a lead's country (ISO 3166-1 alpha-2) from an explicit country value,
the phone number's calling code, or the email domain, in that order, and maps
the country to its primary IANA timezone.

All lookups are pure; the tables below are read-only.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional


# International calling code -> country
PHONE_CODE_TO_COUNTRY: Mapping[str, str] = MappingProxyType({
    # 1-digit codes
    "1": "US", "7": "RU",

    # 2-digit codes
    "20": "EG", "27": "ZA",
    "30": "GR", "31": "NL", "32": "BE", "33": "FR", "34": "ES",
    "36": "HU", "39": "IT", "40": "RO", "41": "CH", "43": "AT",
    "44": "GB", "45": "DK", "46": "SE", "47": "NO", "48": "PL",
    "49": "DE", "52": "MX", "55": "BR", "56": "CL",
    "60": "MY", "61": "AU", "62": "ID", "63": "PH", "64": "NZ",
    "65": "SG", "66": "TH", "81": "JP", "82": "KR", "86": "CN",
    "90": "TR", "91": "IN", "92": "PK", "93": "AF",
    "94": "LK", "95": "MM", "98": "IR",

    # 3-digit codes
    "212": "MA", "213": "DZ", "216": "TN", "218": "LY",
    "220": "GM", "221": "SN", "234": "NG", "254": "KE", "255": "TZ",
    "256": "UG", "260": "ZM", "263": "ZW",
    "353": "IE", "354": "IS", "358": "FI", "370": "LT",
    "371": "LV", "372": "EE", "380": "UA", "381": "RS",
    "420": "CZ", "421": "SK",
    "852": "HK", "853": "MO", "855": "KH", "856": "LA",
    "880": "BD", "886": "TW",
    "960": "MV", "961": "LB", "962": "JO", "963": "SY",
    "964": "IQ", "965": "KW", "966": "SA", "967": "YE",
    "968": "OM", "970": "PS", "971": "AE", "972": "IL",
    "973": "BH", "974": "QA", "975": "BT", "976": "MN",
    "977": "NP", "992": "TJ", "993": "TM", "994": "AZ",
    "995": "GE", "996": "KG", "998": "UZ",
})

# Country -> primary IANA timezone
COUNTRY_TO_TIMEZONE: Mapping[str, str] = MappingProxyType({
    # Americas
    "US": "America/New_York", "CA": "America/Toronto", "MX": "America/Mexico_City",
    "BR": "America/Sao_Paulo", "CL": "America/Santiago", "AR": "America/Buenos_Aires",

    # Europe
    "GB": "Europe/London", "IE": "Europe/Dublin", "FR": "Europe/Paris",
    "DE": "Europe/Berlin", "IT": "Europe/Rome", "ES": "Europe/Madrid",
    "NL": "Europe/Amsterdam", "BE": "Europe/Brussels", "CH": "Europe/Zurich",
    "AT": "Europe/Vienna", "SE": "Europe/Stockholm", "NO": "Europe/Oslo",
    "DK": "Europe/Copenhagen", "FI": "Europe/Helsinki", "PL": "Europe/Warsaw",
    "CZ": "Europe/Prague", "SK": "Europe/Bratislava", "HU": "Europe/Budapest",
    "RO": "Europe/Bucharest", "GR": "Europe/Athens", "TR": "Europe/Istanbul",
    "UA": "Europe/Kiev", "RU": "Europe/Moscow", "RS": "Europe/Belgrade",
    "LT": "Europe/Vilnius", "LV": "Europe/Riga", "EE": "Europe/Tallinn",
    "IS": "Atlantic/Reykjavik",

    # Middle East
    "AE": "Asia/Dubai", "SA": "Asia/Riyadh", "QA": "Asia/Qatar",
    "KW": "Asia/Kuwait", "BH": "Asia/Bahrain", "OM": "Asia/Muscat",
    "JO": "Asia/Amman", "LB": "Asia/Beirut", "IL": "Asia/Jerusalem",
    "IQ": "Asia/Baghdad", "IR": "Asia/Tehran", "PS": "Asia/Gaza",
    "SY": "Asia/Damascus", "YE": "Asia/Aden",

    # South Asia
    "IN": "Asia/Kolkata", "PK": "Asia/Karachi", "BD": "Asia/Dhaka",
    "LK": "Asia/Colombo", "NP": "Asia/Kathmandu", "MV": "Indian/Maldives",

    # East and Southeast Asia
    "CN": "Asia/Shanghai", "HK": "Asia/Hong_Kong", "TW": "Asia/Taipei",
    "JP": "Asia/Tokyo", "KR": "Asia/Seoul", "MO": "Asia/Macau",
    "SG": "Asia/Singapore", "MY": "Asia/Kuala_Lumpur", "TH": "Asia/Bangkok",
    "PH": "Asia/Manila", "ID": "Asia/Jakarta", "KH": "Asia/Phnom_Penh",
    "MM": "Asia/Yangon", "LA": "Asia/Vientiane", "MN": "Asia/Ulaanbaatar",

    # Oceania
    "AU": "Australia/Sydney", "NZ": "Pacific/Auckland",

    # Africa
    "EG": "Africa/Cairo", "ZA": "Africa/Johannesburg", "KE": "Africa/Nairobi",
    "NG": "Africa/Lagos", "MA": "Africa/Casablanca", "TN": "Africa/Tunis",
    "DZ": "Africa/Algiers", "GH": "Africa/Accra",

    # Central Asia and Caucasus
    "AF": "Asia/Kabul", "AZ": "Asia/Baku", "GE": "Asia/Tbilisi",
    "KG": "Asia/Bishkek", "TJ": "Asia/Dushanbe", "TM": "Asia/Ashgabat",
    "UZ": "Asia/Tashkent", "BT": "Asia/Thimphu",
})

# Email domain suffix -> country. Compound suffixes are matched first.
EMAIL_DOMAIN_TO_COUNTRY: Mapping[str, str] = MappingProxyType({
    "co.uk": "GB", "co.in": "IN", "co.za": "ZA", "co.jp": "JP",
    "co.kr": "KR", "com.au": "AU", "com.br": "BR", "com.sg": "SG",
    "de": "DE", "fr": "FR", "it": "IT", "es": "ES", "nl": "NL",
    "ae": "AE", "sa": "SA", "qa": "QA", "kw": "KW", "bh": "BH",
    "jp": "JP", "cn": "CN", "ru": "RU", "se": "SE", "no": "NO",
    "dk": "DK", "fi": "FI", "pl": "PL", "ch": "CH", "at": "AT",
    "be": "BE", "ie": "IE", "pt": "PT", "gr": "GR", "tr": "TR",
    "eg": "EG", "ng": "NG", "ke": "KE", "za": "ZA", "ma": "MA",
    "in": "IN", "pk": "PK", "bd": "BD", "ph": "PH", "my": "MY",
    "th": "TH", "id": "ID", "sg": "SG", "hk": "HK", "tw": "TW",
})

# Free-text country names seen in CRM data -> country
COUNTRY_NAME_ALIASES: Mapping[str, str] = MappingProxyType({
    "uae": "AE", "united arab emirates": "AE", "dubai": "AE",
    "usa": "US", "united states": "US",
    "uk": "GB", "united kingdom": "GB",
    "saudi": "SA", "saudi arabia": "SA",
    "qatar": "QA", "india": "IN", "china": "CN", "japan": "JP",
})

_PHONE_SEPARATORS = re.compile(r"[\s\-()]")


@dataclass(frozen=True, slots=True)
class GeoDetection:
    """Result of country/timezone detection. Both fields may be None."""

    country: Optional[str]
    timezone: Optional[str]


def normalize_country(explicit_country: str) -> Optional[str]:
    """
    Normalize an explicit country value to an ISO alpha-2 code.

    Known names (see COUNTRY_NAME_ALIASES) are mapped; any other 2-letter
    value is upper-cased. Anything else yields None.
    """
    text = explicit_country.strip()
    alias = COUNTRY_NAME_ALIASES.get(text.lower())
    if alias is not None:
        return alias
    if len(text) == 2 and text.isalpha():
        return text.upper()
    return None


def detect_country_from_phone(phone: str) -> Optional[str]:
    """
    Detect a country from the phone number's international calling code.

    Longer codes win: 3-digit codes are tried before 2- and 1-digit ones.

    Examples:
        >>> detect_country_from_phone("+971 50 123 4567")
        'AE'
        >>> detect_country_from_phone("+1 (212) 555-0100")
        'US'
    """
    cleaned = _PHONE_SEPARATORS.sub("", phone)
    if cleaned.startswith("+"):
        cleaned = cleaned[1:]
    elif cleaned.startswith("00"):
        cleaned = cleaned[2:]

    for length in (3, 2, 1):
        country = PHONE_CODE_TO_COUNTRY.get(cleaned[:length])
        if country is not None:
            return country
    return None


def detect_country_from_email(email: str) -> Optional[str]:
    """
    Detect a country from the email domain suffix.

    Examples:
        >>> detect_country_from_email("owner@agency.co.uk")
        'GB'
        >>> detect_country_from_email("someone@gmail.com") is None
        True
    """
    if "@" not in email:
        return None

    domain = email.rsplit("@", 1)[1].strip().lower()
    parts = domain.split(".")

    if len(parts) >= 3:
        compound = ".".join(parts[-2:])
        if compound in EMAIL_DOMAIN_TO_COUNTRY:
            return EMAIL_DOMAIN_TO_COUNTRY[compound]

    return EMAIL_DOMAIN_TO_COUNTRY.get(parts[-1])


def detect_country(
    explicit_country: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
) -> Optional[str]:
    """Detect a country with priority: explicit > phone > email."""

    if explicit_country:
        country = normalize_country(explicit_country)
        if country is not None:
            return country

    if phone:
        country = detect_country_from_phone(phone)
        if country is not None:
            return country

    if email:
        return detect_country_from_email(email)

    return None


def get_timezone_for_country(country_code: str) -> Optional[str]:
    """
    Get the primary IANA timezone for a country code.

    Returns None for countries without a known timezone.
    """
    return COUNTRY_TO_TIMEZONE.get(country_code.strip().upper())


def detect_geo(
    explicit_country: Optional[str] = None,
    phone: Optional[str] = None,
    email: Optional[str] = None,
) -> GeoDetection:
    """
    Detect country and timezone together.

    The timezone is only looked up when a country resolved.
    """
    country = detect_country(explicit_country, phone, email)
    if country is None:
        return GeoDetection(country=None, timezone=None)
    return GeoDetection(country=country, timezone=get_timezone_for_country(country))


__all__ = [
    "GeoDetection",
    "detect_geo",
    "detect_country",
    "detect_country_from_phone",
    "detect_country_from_email",
    "normalize_country",
    "get_timezone_for_country",
    "PHONE_CODE_TO_COUNTRY",
    "COUNTRY_TO_TIMEZONE",
    "EMAIL_DOMAIN_TO_COUNTRY",
]
