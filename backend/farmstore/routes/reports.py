# backend/farmstore/routes/reports.py
"""Admin sales reports."""

from flask import Blueprint, request

from ..decorators import require_admin, require_auth
from ..responses import api_error, api_success
from ..services import reporting_service
from ..validation import ValidationError, require_positive_int
from farmstore.time_utils import utcnow


reports_bp = Blueprint("reports", __name__, url_prefix="/api/v1/reports")


def _int_arg(name: str, default: int, maximum: int) -> int:
    return require_positive_int(request.args.get(name, str(default)), name, maximum=maximum)


@reports_bp.get("/overview")
@require_auth
@require_admin
def overview_route():
    return api_success("Overview retrieved", reporting_service.get_overview())


@reports_bp.get("/products")
@require_auth
@require_admin
def product_stats_route():
    return api_success("Product stats retrieved", reporting_service.get_product_stats())


@reports_bp.get("/categories")
@require_auth
@require_admin
def category_stats_route():
    return api_success("Category stats retrieved", reporting_service.get_category_stats())


@reports_bp.get("/monthly")
@require_auth
@require_admin
def monthly_route():
    now = utcnow()
    try:
        month = _int_arg("month", now.month, 12)
        year = _int_arg("year", now.year, 9998)
    except ValidationError as e:
        return api_error(str(e), status=400)
    return api_success("Monthly sales retrieved", reporting_service.get_monthly_sales(month, year))


@reports_bp.get("/recent-months")
@require_auth
@require_admin
def recent_months_route():
    try:
        months = _int_arg("months", 6, 24)
    except ValidationError as e:
        return api_error(str(e), status=400)
    return api_success("Recent monthly sales retrieved", reporting_service.get_recent_months_sales(months))


@reports_bp.get("/top-selling")
@require_auth
@require_admin
def top_selling_route():
    try:
        limit = _int_arg("limit", 10, 100)
    except ValidationError as e:
        return api_error(str(e), status=400)
    return api_success("Top selling products retrieved", reporting_service.get_top_selling_products(limit))


@reports_bp.get("/low-performing")
@require_auth
@require_admin
def low_performing_route():
    try:
        threshold = _int_arg("threshold", 5, 1_000_000)
    except ValidationError as e:
        return api_error(str(e), status=400)
    return api_success(
        "Low performing products retrieved",
        reporting_service.get_low_performing_products(threshold),
    )
