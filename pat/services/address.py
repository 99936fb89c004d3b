"""
Address heuristics for catalogue search and duplicate detection.

Splits a free-text address ("123 Main St, Apt 4, Springfield, IL 62704")
into display parts. Purely cosmetic: nothing financial depends on it.

Components are tagged with usaddress. When tagging fails or finds no
street, the text is split on commas and newlines instead.
"""

import logging
import re
from dataclasses import dataclass

import usaddress

logger = logging.getLogger(__name__)

_SPLIT_RE = re.compile(r"[,\n]+")
_STATE_ZIP_RE = re.compile(r"^([A-Za-z]{2})(?:\s+(\d{5}(?:-\d{4})?))?$")
_ZIP_RE = re.compile(r"^\d{5}(?:-\d{4})?$")
_UNIT_RE = re.compile(r"^(?:(?:apt|apartment|unit|suite|ste)\b|#)", re.IGNORECASE)
_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")

# usaddress label -> ParsedAddress field
_LABEL_FIELDS = {
    "AddressNumberPrefix": "line1",
    "AddressNumber": "line1",
    "AddressNumberSuffix": "line1",
    "StreetNamePreModifier": "line1",
    "StreetNamePreDirectional": "line1",
    "StreetNamePreType": "line1",
    "StreetName": "line1",
    "StreetNamePostType": "line1",
    "StreetNamePostDirectional": "line1",
    "StreetNamePostModifier": "line1",
    "OccupancyType": "line2",
    "OccupancyIdentifier": "line2",
    "SubaddressType": "line2",
    "SubaddressIdentifier": "line2",
    "PlaceName": "city",
    "StateName": "state",
    "ZipCode": "zip",
    "ZipPlus4": "zip",
}

STREET_SUFFIXES = {
    "street": "st",
    "avenue": "ave",
    "road": "rd",
    "drive": "dr",
    "boulevard": "blvd",
    "lane": "ln",
    "court": "ct",
}


@dataclass
class ParsedAddress:
    line1: str = ""
    line2: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""


def _clean_token(token: str) -> str:
    return token.strip(" ,;\n")


def _tag_address(text: str):
    """Address parts from usaddress tags, or None when no street was found."""
    try:
        tokens = usaddress.parse(text)
    except Exception:
        logger.debug("usaddress could not parse %r", text, exc_info=True)
        return None

    parts = {"line1": [], "line2": [], "city": [], "state": [], "zip": []}
    labels = set()
    for token, label in tokens:
        part = _LABEL_FIELDS.get(label)
        cleaned = _clean_token(token)
        if part is None or not cleaned:
            continue
        labels.add(label)
        parts[part].append(cleaned)

    if "StreetName" not in labels:
        return None

    return ParsedAddress(
        line1=" ".join(parts["line1"]),
        line2=" ".join(parts["line2"]),
        city=" ".join(parts["city"]),
        state=" ".join(parts["state"]).upper(),
        zip="-".join(parts["zip"]),
    )


def _split_address(text: str) -> ParsedAddress:
    """Comma/newline split used when tagging gives nothing usable."""
    parts = [p.strip() for p in _SPLIT_RE.split(text) if p.strip()]
    parsed = ParsedAddress()
    if not parts:
        return parsed

    # Trailing "IL 62704", "IL" or "62704"
    tail = parts[-1]
    match = _STATE_ZIP_RE.match(tail)
    if len(parts) > 1 and match:
        parsed.state = match.group(1).upper()
        parsed.zip = match.group(2) or ""
        parts.pop()
    elif len(parts) > 1 and _ZIP_RE.match(tail):
        parsed.zip = tail
        parts.pop()

    parsed.line1 = parts.pop(0)

    if parts and _UNIT_RE.match(parts[0]):
        parsed.line2 = parts.pop(0)

    if parts:
        parsed.city = parts[-1]

    return parsed


def parse_address(text: str) -> ParsedAddress:
    """Split a free-text address into line1/line2/city/state/zip."""
    text = (text or "").strip()
    if not text:
        return ParsedAddress()

    tagged = _tag_address(text)
    if tagged is not None:
        return tagged
    return _split_address(text)


def address_key(text: str) -> str:
    """
    Normalized first address line used to spot duplicates.

    "123 Main Street." and "123  Main St" share a key.
    """
    line1 = parse_address(text).line1.lower()
    line1 = _SPACE_RE.sub(" ", _PUNCT_RE.sub(" ", line1)).strip()
    words = [STREET_SUFFIXES.get(word, word) for word in line1.split(" ") if word]
    return " ".join(words)
