"""Parse loose price-range strings and total them for the selection screen."""

import re
import math
from typing import Iterable, Optional

from forma.models.design import PriceRange, PriceTotal
from forma.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)

CURRENCY_AND_SEPARATORS = re.compile(r"[$€£¥₹,]")
DASHES = re.compile(r"[‒–—―−]")


def parse_price_range(text: Optional[str]) -> Optional[PriceRange]:
    """
    Parse "$100 - $200" or "$150" into numeric bounds.

    Two tokens keep their source order, so "$200 - $100" gives minimum=200
    and maximum=100. Anything that is not one or two numbers returns None.
    """
    if not text:
        return None

    cleaned = CURRENCY_AND_SEPARATORS.sub("", DASHES.sub("-", text)).strip()
    tokens = [t.strip() for t in cleaned.split("-")]
    if len(tokens) not in (1, 2):
        return None

    try:
        values = [float(t) for t in tokens]
    except ValueError:
        return None
    if not all(math.isfinite(v) for v in values):
        return None

    if len(values) == 1:
        return PriceRange(minimum=values[0], maximum=values[0])
    return PriceRange(minimum=values[0], maximum=values[1])


def aggregate_price_ranges(values: Iterable[Optional[str]]) -> PriceTotal:
    """Sum every parsable range; unparsable or missing ones are skipped, never raised."""
    total = PriceTotal()
    for value in values:
        price = parse_price_range(value)
        if price is None:
            if value:
                logger.debug(f"Skipping unparsable price range: {value!r}")
            total.skipped += 1
            continue
        total.minimum += price.minimum
        total.maximum += price.maximum
        total.counted += 1
    return total
