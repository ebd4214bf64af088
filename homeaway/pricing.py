from __future__ import annotations

from typing import Optional

from .availability import calculate_days_between
from .models import DateLike, PriceBreakdown

CLEANING_FEE = 21
SERVICE_FEE = 40
TAX_RATE = 0.1


def calculate_totals(
    *,
    check_in: Optional[DateLike],
    check_out: Optional[DateLike],
    price: float,
) -> PriceBreakdown:
    """Price a stay at ``price`` per night.

    An incomplete selection still carries the flat fees. Amounts are left
    unrounded; formatting to currency happens at the presentation layer.
    """
    if check_in is None or check_out is None:
        return PriceBreakdown(
            total_nights=0,
            sub_total=0,
            cleaning=CLEANING_FEE,
            service=SERVICE_FEE,
            tax=0,
            order_total=CLEANING_FEE + SERVICE_FEE,
        )

    total_nights = calculate_days_between(check_in, check_out)
    sub_total = total_nights * price
    tax = sub_total * TAX_RATE
    order_total = sub_total + CLEANING_FEE + SERVICE_FEE + tax
    return PriceBreakdown(
        total_nights=total_nights,
        sub_total=sub_total,
        cleaning=CLEANING_FEE,
        service=SERVICE_FEE,
        tax=tax,
        order_total=order_total,
    )
