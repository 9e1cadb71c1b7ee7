"""Parse Polish-formatted amounts such as "2 tys. zł" or "1,5 mln"."""

import re
from typing import Optional

from creator_crawler.models import UNKNOWN_NUMBER

_NUMBER_RE = re.compile(
    r"^(?P<value>\d+(?:[.,]\d+)?)\s*(?P<magnitude>tys\.|mln)?\s*(?:zł)?$"
)

MAGNITUDES = {
    "tys.": 1_000,
    "mln": 1_000_000,
}


def parse_number(text: Optional[str]) -> float:
    """
    Parse an amount with an optional magnitude suffix and currency marker.

    Args:
        text: Text as shown on the card, e.g. "150", "2 tys. zł", "1.5 mln"

    Returns:
        Scaled value, or -1 when the text does not look like an amount
    """
    if not text:
        return UNKNOWN_NUMBER

    match = _NUMBER_RE.match(text.strip())
    if not match:
        return UNKNOWN_NUMBER

    value = float(match.group("value").replace(",", "."))
    magnitude = match.group("magnitude")
    if magnitude:
        value *= MAGNITUDES[magnitude]
    return value
