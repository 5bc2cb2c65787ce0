"""Printable HTML receipt offered as a download on the orders page."""

from __future__ import annotations

from datetime import datetime, timezone
import html
from typing import List, Optional

from storefront.domain.entities import Address, Order
from storefront.domain.order_status import effective_status
from storefront.domain.pricing import format_inr

from .status_format import format_timestamp

_STYLE = """
body { font-family: Arial, sans-serif; margin: 0; padding: 20px; background: #f5f5f5; }
.receipt { max-width: 800px; margin: 0 auto; background: white; padding: 30px; border-radius: 8px; }
.header { text-align: center; border-bottom: 3px solid #2563eb; padding-bottom: 20px; margin-bottom: 30px; }
.company-name { font-size: 28px; font-weight: bold; color: #2563eb; }
.section-title { font-size: 18px; font-weight: bold; margin: 20px 0 10px; border-bottom: 2px solid #e5e7eb; }
.label { font-weight: bold; color: #555; }
.items-table { width: 100%; border-collapse: collapse; margin: 20px 0; }
.items-table th, .items-table td { padding: 12px; text-align: left; border-bottom: 1px solid #e5e7eb; }
.total-section { margin-top: 30px; text-align: right; }
.total-row { font-size: 18px; font-weight: bold; color: #2563eb; }
.footer { margin-top: 40px; text-align: center; color: #666; font-size: 12px; }
"""


def _e(value: object) -> str:
    return html.escape(str(value)) if value not in (None, "") else "N/A"


def _info(label: str, value: object) -> str:
    return f'<div class="info-row"><span class="label">{html.escape(label)}:</span> {_e(value)}</div>'


def payment_method_label(order: Order) -> str:
    if order.is_cod:
        return "Cash on Delivery"
    return "Online Payment" if order.payment_id else "N/A"


def receipt_filename(order: Order) -> str:
    return f"receipt-{order.short_id}.html"


def receipt_html(
    order: Order,
    *,
    store_name: str,
    customer_name: str = "",
    customer_phone: str = "",
    address: Optional[Address] = None,
    generated_at: Optional[datetime] = None,
) -> str:
    """Render one order as a standalone HTML page; all text is escaped."""
    generated = generated_at or datetime.now(timezone.utc)
    status = effective_status(order)

    customer: List[str] = [_info("Name", customer_name), _info("Phone", customer_phone)]
    if order.recipient is not None:
        customer.append(_info("Deliver to", f"{order.recipient.name} ({order.recipient.phone})"))
        customer.append(_info("Drop address", order.recipient.address))
    elif address is not None:
        customer.append(_info("Address", address.one_line()))

    items = "".join(
        "<tr>"
        f"<td>{_e(item.name)}</td><td>{item.quantity}</td>"
        f"<td>{format_inr(item.price)}</td><td>{format_inr(item.line_total)}</td>"
        "</tr>"
        for item in order.items
    )
    totals = [_info("Subtotal", format_inr(order.subtotal))]
    if order.discount_amount > 0:
        totals.append(_info("Discount", f"-{format_inr(order.discount_amount)}"))
    if order.coupon_code:
        totals.append(_info("Coupon Code", order.coupon_code))

    return (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        '<meta charset="UTF-8">\n'
        f"<title>Receipt - Order {_e(order.short_id)}</title>\n"
        f"<style>{_STYLE}</style>\n"
        "</head>\n<body>\n"
        '<div class="receipt">\n'
        '<div class="header">'
        f'<div class="company-name">{_e(store_name)}</div>'
        f"<div>Order Receipt<br>Generated on {_e(format_timestamp(generated))}</div>"
        "</div>\n"
        '<div class="section-title">Order Information</div>'
        + _info("Order ID", f"#{order.short_id}")
        + _info("Placed", format_timestamp(order.created_at))
        + _info("Status", status.replace("_", " "))
        + _info("Payment Method", payment_method_label(order))
        + _info("Payment Status", order.payment_status)
        + '\n<div class="section-title">Customer Information</div>'
        + "".join(customer)
        + '\n<div class="section-title">Order Items</div>'
        '<table class="items-table"><thead><tr>'
        "<th>Item</th><th>Quantity</th><th>Unit Price</th><th>Total</th>"
        f"</tr></thead><tbody>{items}</tbody></table>\n"
        '<div class="total-section">'
        + "".join(totals)
        + f'<div class="total-row">Total Amount: {format_inr(order.final_amount)}</div>'
        "</div>\n"
        '<div class="footer"><p>Thank you for your order!</p>'
        "<p>This is a computer-generated receipt.</p></div>\n"
        "</div>\n</body>\n</html>\n"
    )


__all__ = ["payment_method_label", "receipt_filename", "receipt_html"]
