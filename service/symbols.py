"""Instrument code normalization for mainland exchanges."""

import re

_PREFIXED = re.compile(r"^(sh|sz|bj)\d{6}$", re.IGNORECASE)
_DIGITS = re.compile(r"^\d{6}$")

# Leading digit -> exchange prefix
_PREFIX_BY_LEADING_DIGIT = {
    "6": "sh",  # Shanghai main board / STAR
    "0": "sz",  # Shenzhen main board
    "3": "sz",  # ChiNext
    "4": "bj",  # Beijing
    "8": "bj",
    "5": "sh",  # Shanghai ETF/LOF
    "1": "sz",  # Shenzhen ETF/LOF
}


def normalize_code(raw: str) -> str:
    """
    Normalize an instrument code to ``<exchange><6 digits>``.

    Whitespace is removed and the result lower-cased. Bare 6-digit codes get
    their exchange prefix from the leading digit; anything unrecognized is
    returned lower-cased as-is.

    Examples:
        "600519" -> "sh600519", "SZ000001" -> "sz000001", "510300" -> "sh510300"
    """
    code = re.sub(r"\s+", "", raw)
    if _PREFIXED.match(code):
        return code.lower()

    if _DIGITS.match(code):
        prefix = _PREFIX_BY_LEADING_DIGIT.get(code[0])
        if prefix:
            return f"{prefix}{code}"

    return code.lower()
