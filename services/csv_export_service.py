"""
CSV export service for sales reports.

Generates CSV text for the daily sales summary and for the sales of one day
with their line items, ready to be saved or returned as a download.

Security:
- CSV Injection Prevention: free-text fields (product and customer names,
  notes) are sanitized so spreadsheets never evaluate them as formulas
- Security Logging: a warning is logged whenever characters are stripped
"""

from __future__ import annotations

import csv
import logging
from datetime import date
from io import StringIO
from typing import List, Optional

from repositories.customer_repository import get_customer_by_id
from repositories.sale_repository import list_sale_details, list_sales_for_day
from services.report_service import DEFAULT_REPORT_DAYS, daily_sales_summary

logger = logging.getLogger(__name__)

_DANGEROUS_LEADING_CHARS = {"=", "+", "-", "@", "\t", "\r"}

DAILY_SUMMARY_COLUMNS = [
    "Date",
    "Sales",
    "Revenue",
    "Discounts",
    "Average Ticket",
]

SALES_DETAIL_COLUMNS = [
    "Sale ID",
    "Sold At (UTC)",
    "Customer",
    "Payment Method",
    "Document Type",
    "Product ID",
    "Product",
    "Quantity",
    "Unit Price",
    "Line Discount",
    "Line Subtotal",
    "Sale Subtotal",
    "Sale Tax",
    "Sale Total",
    "Notes",
]


def sanitize_csv_field(value: Optional[str], field_name: str = "unknown") -> str:
    """
    Strip leading characters that make spreadsheets evaluate a cell as a formula.

    Stripped characters: =, +, -, @, tab, carriage return. When anything is
    stripped a warning is logged with the field name.

    Example:
        sanitize_csv_field("=HYPERLINK(...)", "product_name")  # "HYPERLINK(...)"
        sanitize_csv_field("Cuaderno A4", "product_name")      # unchanged
    """

    if value is None or value == "":
        return ""

    text = str(value).strip()
    original_text = text

    stripped_chars: List[str] = []
    while text and text[0] in _DANGEROUS_LEADING_CHARS:
        stripped_chars.append(text[0])
        text = text[1:]

    if stripped_chars:
        logger.warning(
            "CSV injection character(s) stripped from field '%s'",
            field_name,
            extra={
                "field_name": field_name,
                "stripped_characters": "".join(stripped_chars),
                "original_value": original_text[:100],
                "sanitized_value": text[:100],
                "modification_type": "csv_injection_prevention",
            },
        )

    return text


def generate_daily_summary_csv(days: int = DEFAULT_REPORT_DAYS, today: Optional[date] = None) -> str:
    """CSV with one row per day that had sales, newest first."""

    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(DAILY_SUMMARY_COLUMNS)

    for row in daily_sales_summary(days=days, today=today):
        writer.writerow([
            row.day.isoformat(),
            row.sale_count,
            str(row.revenue),
            str(row.discount_total),
            str(row.average_ticket),
        ])

    return output.getvalue()


def generate_sales_csv(day: date) -> str:
    """
    CSV with one row per sold line for every completed sale on `day` (UTC).

    Header totals are repeated on each line of the same sale.
    """

    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(SALES_DETAIL_COLUMNS)

    customer_names: dict[int, str] = {}

    for sale in list_sales_for_day(day):
        if sale.customer_id not in customer_names:
            customer = get_customer_by_id(sale.customer_id)
            customer_names[sale.customer_id] = sanitize_csv_field(
                customer.full_name if customer else "", "customer_name"
            )

        for detail in list_sale_details(sale.sale_id):
            writer.writerow([
                sale.sale_id,
                sale.sold_at.isoformat(),
                customer_names[sale.customer_id],
                sale.payment_method.value,
                sale.document_type.value,
                detail.product_id,
                sanitize_csv_field(detail.product_name, "product_name"),
                detail.quantity,
                str(detail.unit_price),
                str(detail.discount),
                str(detail.subtotal),
                str(sale.subtotal),
                str(sale.tax),
                str(sale.total),
                sanitize_csv_field(sale.notes, "notes"),
            ])

    return output.getvalue()


__all__ = [
    "sanitize_csv_field",
    "generate_daily_summary_csv",
    "generate_sales_csv",
]
