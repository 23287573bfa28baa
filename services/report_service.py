# services/report_service.py

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from db import fetch_ready_order_lines
from exceptions import InvalidDateRange
from logger import get_logger

log = get_logger("report_service")


def _day_start_iso(d: date) -> str:
    return datetime.combine(d, time.min, tzinfo=timezone.utc).isoformat()


def generate_report(start_date: date, end_date: date, db_path: Optional[str] = None) -> Dict[str, Any]:
    """Sales summary of active READY orders created between start_date and end_date, inclusive."""
    if start_date > end_date:
        raise InvalidDateRange("startDate must be before or equal to endDate")

    lines = fetch_ready_order_lines(
        _day_start_iso(start_date),
        _day_start_iso(end_date + timedelta(days=1)),
        db_path,
    )

    order_ids = set()
    total_revenue = Decimal("0")
    breakdown: Dict[int, Dict[str, Any]] = {}

    for line in lines:
        order_ids.add(line["order_id"])
        price = Decimal(line["price"]) if line["price"] is not None else Decimal("0")
        subtotal = price * line["quantity"]
        total_revenue += subtotal

        entry = breakdown.setdefault(line["product_id"], {
            "productId": line["product_id"],
            "productName": line["product_name"] or f"Product {line['product_id']}",
            "quantitySold": 0,
            "totalAccumulated": Decimal("0"),
        })
        entry["quantitySold"] += line["quantity"]
        entry["totalAccumulated"] += subtotal

    log.info(f"Report {start_date}..{end_date}: {len(order_ids)} READY order(s), revenue {total_revenue}")

    return {
        "startDate": start_date.isoformat(),
        "endDate": end_date.isoformat(),
        "totalReadyOrders": len(order_ids),
        "totalRevenue": float(total_revenue),
        "productBreakdown": [
            {**e, "totalAccumulated": float(e["totalAccumulated"])}
            for _, e in sorted(breakdown.items())
        ],
    }
