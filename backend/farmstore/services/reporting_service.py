# Overview: Sales reporting over stored orders (product, category, overview and monthly views).

"""
Sales reports

All figures are computed with SQL aggregates over orders that are not
cancelled. Amounts are whole Naira. Revenue per product/category is the
sum of charged line totals; overview and monthly revenue are order totals
(shipping and VAT included).
"""

from __future__ import annotations

import calendar

from sqlalchemy import func

from ..extensions import db
from ..models import Order, OrderLine, Product
from ..models.orders import ORDER_CANCELLED
from farmstore.time_utils import month_bounds, utcnow


def _live_orders():
    return Order.status != ORDER_CANCELLED


def _avg(total: int, count: int) -> float:
    return round(total / count, 2) if count else 0


def get_product_stats() -> list[dict]:
    """Stats for every catalog product (zeros for unsold), highest revenue first."""
    sold = (
        db.session.query(
            OrderLine.product_id.label("product_id"),
            func.sum(OrderLine.quantity).label("total_sold"),
            func.sum(OrderLine.line_total).label("revenue"),
            func.count(func.distinct(OrderLine.order_id)).label("order_count"),
        )
        .join(Order, Order.id == OrderLine.order_id)
        .filter(_live_orders())
        .group_by(OrderLine.product_id)
        .subquery()
    )

    rows = (
        db.session.query(
            Product.id,
            Product.name,
            Product.category,
            func.coalesce(sold.c.total_sold, 0),
            func.coalesce(sold.c.revenue, 0),
            func.coalesce(sold.c.order_count, 0),
        )
        .outerjoin(sold, sold.c.product_id == Product.id)
        .all()
    )

    stats = [
        {
            "id": product_id,
            "name": name,
            "category": category,
            "totalSold": int(total_sold),
            "revenue": int(revenue),
            "orderCount": int(order_count),
            "averageOrderQuantity": _avg(int(total_sold), int(order_count)),
        }
        for product_id, name, category, total_sold, revenue, order_count in rows
    ]
    stats.sort(key=lambda s: (-s["revenue"], s["id"]))
    return stats


def get_category_stats() -> list[dict]:
    by_category: dict[str, dict] = {}
    for product in get_product_stats():
        entry = by_category.setdefault(product["category"], {
            "category": product["category"],
            "productCount": 0,
            "totalSold": 0,
            "revenue": 0,
            "orderCount": 0,
        })
        entry["productCount"] += 1
        entry["totalSold"] += product["totalSold"]
        entry["revenue"] += product["revenue"]

    # Distinct orders per category (an order with two tomato lines counts once)
    order_counts = (
        db.session.query(Product.category, func.count(func.distinct(OrderLine.order_id)))
        .join(OrderLine, OrderLine.product_id == Product.id)
        .join(Order, Order.id == OrderLine.order_id)
        .filter(_live_orders())
        .group_by(Product.category)
        .all()
    )
    for category, count in order_counts:
        if category in by_category:
            by_category[category]["orderCount"] = int(count)

    return sorted(by_category.values(), key=lambda c: (-c["revenue"], c["category"]))


def _order_totals(*filters) -> tuple[int, int, int]:
    order_count, revenue = (
        db.session.query(func.count(Order.id), func.coalesce(func.sum(Order.total), 0))
        .filter(_live_orders(), *filters)
        .one()
    )
    items_sold = (
        db.session.query(func.coalesce(func.sum(OrderLine.quantity), 0))
        .join(Order, Order.id == OrderLine.order_id)
        .filter(_live_orders(), *filters)
        .scalar()
    )
    return int(order_count), int(revenue), int(items_sold)


def get_overview() -> dict:
    total_products = db.session.query(func.count(Product.id)).scalar()
    total_categories = db.session.query(func.count(func.distinct(Product.category))).scalar()
    order_count, revenue, items_sold = _order_totals()
    return {
        "totalProducts": int(total_products),
        "totalCategories": int(total_categories),
        "totalOrders": order_count,
        "totalRevenue": revenue,
        "totalItemsSold": items_sold,
        "averageOrderValue": _avg(revenue, order_count),
        "productStats": get_product_stats(),
        "categoryStats": get_category_stats(),
    }


def get_monthly_sales(month: int, year: int) -> dict:
    """Sales for one calendar month (month is 1-12)."""
    start, end = month_bounds(month, year)
    in_month = (Order.created_at >= start, Order.created_at < end)
    order_count, revenue, items_sold = _order_totals(*in_month)

    categories = (
        db.session.query(
            OrderLine.category,
            func.sum(OrderLine.line_total),
            func.sum(OrderLine.quantity),
        )
        .join(Order, Order.id == OrderLine.order_id)
        .filter(_live_orders(), *in_month)
        .group_by(OrderLine.category)
        .order_by(func.sum(OrderLine.line_total).desc())
        .all()
    )
    products = (
        db.session.query(
            OrderLine.product_id,
            OrderLine.name,
            OrderLine.category,
            func.sum(OrderLine.quantity),
            func.sum(OrderLine.line_total),
        )
        .join(Order, Order.id == OrderLine.order_id)
        .filter(_live_orders(), *in_month)
        .group_by(OrderLine.product_id, OrderLine.name, OrderLine.category)
        .order_by(func.sum(OrderLine.line_total).desc())
        .limit(10)
        .all()
    )

    return {
        "month": calendar.month_name[month],
        "year": year,
        "totalOrders": order_count,
        "totalRevenue": revenue,
        "totalItemsSold": items_sold,
        "averageOrderValue": _avg(revenue, order_count),
        "categoryBreakdown": [
            {"category": category, "revenue": int(rev), "itemsSold": int(qty)}
            for category, rev, qty in categories
        ],
        "topProducts": [
            {"id": product_id, "name": name, "category": category, "quantity": int(qty), "revenue": int(rev)}
            for product_id, name, category, qty, rev in products
        ],
    }


def get_recent_months_sales(months: int) -> list[dict]:
    """Monthly sales for the current month and the months before it, newest first."""
    now = utcnow()
    year, month = now.year, now.month
    result = []
    for _ in range(months):
        result.append(get_monthly_sales(month, year))
        month -= 1
        if month == 0:
            month, year = 12, year - 1
    return result


def get_top_selling_products(limit: int = 10) -> list[dict]:
    sold = [p for p in get_product_stats() if p["totalSold"] > 0]
    sold.sort(key=lambda p: (-p["totalSold"], p["id"]))
    return sold[:limit]


def get_low_performing_products(threshold: int = 5) -> list[dict]:
    return [p for p in get_product_stats() if 0 < p["totalSold"] < threshold]
