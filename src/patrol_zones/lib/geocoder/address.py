"""Free-text address parsing into street, number and block/lot fragments.

Handles the municipal conventions the resolution pipeline sees in practice:
a street-type prefix ("Av.", "Jr.", "Calle"...), a trailing municipal number
(optionally written "Nº 450", "#450", "250-A" or "S/N"), and the block/lot
scheme used in informal settlements ("Mz B Lt 12").
"""

import re
from dataclasses import asdict, dataclass

_PREFIX_RE = re.compile(
    r"^(Av\.|Avenida|Ca\.|Calle|Jr\.|Jiron|Jirón|Pj\.|Psje\.|Pasaje|Prol\.|Prolongación|Prolongacion"
    r"|Malecon|Malecón|Alameda)\s+",
    re.IGNORECASE,
)
_BLOCK_LOT_RE = re.compile(r"\s+(?:Mz\.?|Manzana)\s+(\S+)(?:\s+(?:Lt\.?|Lote)\s+(\S+))?", re.IGNORECASE)
_NUMBER_RE = re.compile(r"\s+((?:Nº\s*|N°\s*|#\s*)?\d+-?\w*|S/N)$", re.IGNORECASE)
_NUMBER_MARKER_RE = re.compile(r"^(?:Nº\s*|N°\s*|#\s*)", re.IGNORECASE)

# Canonical spelling of each street-type prefix, keyed by lower-case input
STREET_PREFIX_MAP: dict[str, str] = {
    "av.": "Avenida",
    "avenida": "Avenida",
    "ca.": "Calle",
    "calle": "Calle",
    "jr.": "Jirón",
    "jiron": "Jirón",
    "jirón": "Jirón",
    "pj.": "Pasaje",
    "psje.": "Pasaje",
    "pasaje": "Pasaje",
    "prol.": "Prolongación",
    "prolongación": "Prolongación",
    "prolongacion": "Prolongación",
    "malecon": "Malecón",
    "malecón": "Malecón",
    "alameda": "Alameda",
}


@dataclass
class ParsedAddress:
    """Fragments extracted from a free-text address."""

    street_prefix: str | None = None
    street_name: str = ""
    number: str | None = None
    block: str | None = None
    lot: str | None = None

    @property
    def full_street(self) -> str:
        if self.street_prefix:
            return f"{self.street_prefix} {self.street_name}".strip()
        return self.street_name

    def to_dict(self) -> dict[str, str | None]:
        """Return fragments as a plain dict (for logging and response schemas)."""
        return asdict(self)


def normalize_street_prefix(prefix: str | None) -> str:
    """Expand a street-type prefix to its canonical spelling.

    Args:
        prefix: Prefix as written (e.g., "Av.", "jr.").

    Returns:
        Canonical prefix ("Avenida", "Jirón"), the input unchanged when
        unknown, or an empty string for None.
    """
    if not prefix:
        return ""
    return STREET_PREFIX_MAP.get(prefix.lower(), prefix)


def parse_address_text(text: str) -> ParsedAddress:
    """Split a free-text address into prefix, street name, number, block and lot.

    Commas are treated as whitespace. Block and lot labels are upper-cased.

    Args:
        text: Raw address (e.g., "Av. Ejercito 450", "Calle Los Pinos Mz B Lt 12").

    Returns:
        ParsedAddress; fields that could not be found are None (street_name "").
    """
    rest = re.sub(r"\s+", " ", text.replace(",", " ")).strip()

    street_prefix: str | None = None
    prefix_match = _PREFIX_RE.match(rest)
    if prefix_match:
        street_prefix = prefix_match.group(1)
        rest = rest[prefix_match.end() :]

    block: str | None = None
    lot: str | None = None
    # Leading space so a block marker right after the prefix still matches
    block_match = _BLOCK_LOT_RE.search(f" {rest}")
    if block_match:
        block = block_match.group(1).upper()
        lot = block_match.group(2).upper() if block_match.group(2) else None
        rest = f" {rest}"[: block_match.start()].strip()

    number: str | None = None
    number_match = _NUMBER_RE.search(rest)
    if number_match:
        number = _NUMBER_MARKER_RE.sub("", number_match.group(1)).strip().upper()
        rest = rest[: number_match.start()].strip()

    return ParsedAddress(
        street_prefix=street_prefix,
        street_name=rest.strip(),
        number=number,
        block=block,
        lot=lot,
    )


def street_name_variants(street_name: str) -> list[str]:
    """Return the name plus common saint-name abbreviation variants.

    "Santa Rosa" ↔ "Sta. Rosa", "Santo Domingo" ↔ "Sto. Domingo",
    "San Martin" ↔ "S. Martin". The original name is always first.
    """
    variants = [street_name]
    lower = street_name.lower()

    if lower.startswith("santa "):
        variants.append("Sta. " + street_name[6:])
    elif lower.startswith(("sta. ", "sta ")):
        variants.append("Santa " + re.sub(r"^sta\.?\s*", "", street_name, flags=re.IGNORECASE))

    if lower.startswith("santo "):
        variants.append("Sto. " + street_name[6:])
    elif lower.startswith(("sto. ", "sto ")):
        variants.append("Santo " + re.sub(r"^sto\.?\s*", "", street_name, flags=re.IGNORECASE))

    if lower.startswith("san "):
        variants.append("S. " + street_name[4:])
    elif lower.startswith("s. "):
        variants.append("San " + street_name[3:])

    return variants
