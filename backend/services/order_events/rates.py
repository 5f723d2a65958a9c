from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Optional, Tuple

from constants import TAG_PREFIX
from slugs import slugify

CENTS = Decimal("0.01")


def product_tag(slug: str) -> str:
    return TAG_PREFIX + slugify(slug)


def select_rate(
    slugs: Iterable[str],
    rates: Dict[str, Decimal],
) -> Optional[Tuple[str, Decimal]]:
    """Return the (slug, rate) of the first slug present in ``rates``.

    Later slugs are never consulted once one matches, even if they map to a
    higher rate.
    """
    for slug in slugs:
        key = slugify(slug)
        if key in rates:
            return key, rates[key]
    return None


def commission_amount(total: Decimal, rate: Decimal) -> Decimal:
    return (Decimal(str(total)) * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
