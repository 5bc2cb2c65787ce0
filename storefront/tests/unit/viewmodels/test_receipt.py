from __future__ import annotations

from datetime import datetime, timezone

from storefront.domain.entities import Address, Order, OrderItem, Recipient
from storefront.viewmodels.receipt import payment_method_label, receipt_filename, receipt_html

GENERATED = datetime(2026, 1, 5, 9, 30, tzinfo=timezone.utc)
ADDRESS = Address(
    id="addr-1",
    full_name="Demo Customer",
    phone="9876543210",
    address_line1="12 Residency Road",
    city="Srinagar",
    state="J&K",
    pincode="190001",
)


def _order(**extra) -> Order:
    values = dict(
        id="abcdef1234567890",
        user_id="user-1",
        subtotal=416.0,
        discount_amount=0.0,
        final_amount=416.0,
        payment_id="COD",
        items=(OrderItem(product_id="prod-1", name="<b>Apples</b>", price=180.0, quantity=2),),
    )
    values.update(extra)
    return Order(**values)


def test_payment_method_label() -> None:
    assert payment_method_label(_order()) == "Cash on Delivery"
    assert payment_method_label(_order(payment_id="pay_123")) == "Online Payment"
    assert payment_method_label(_order(payment_id=None)) == "N/A"


def test_receipt_escapes_text_and_lists_totals() -> None:
    order = _order()
    page = receipt_html(
        order,
        store_name="Fresh & Quick",
        customer_name="Demo Customer",
        customer_phone="9876543210",
        address=ADDRESS,
        generated_at=GENERATED,
    )

    assert receipt_filename(order) == "receipt-abcdef12.html"
    assert "&lt;b&gt;Apples&lt;/b&gt;" in page
    assert "<b>Apples</b>" not in page
    assert "Fresh &amp; Quick" in page
    assert "12 Residency Road, Srinagar, J&amp;K, 190001" in page
    assert "₹360.00" in page
    assert "Total Amount: ₹416.00" in page
    assert "Discount" not in page
    assert "Coupon Code" not in page


def test_receipt_shows_discount_coupon_and_recipient() -> None:
    recipient = Recipient(name="Ravi", phone="9999988888", address="Lal Chowk", latitude=34.07, longitude=74.81)
    order = _order(discount_amount=41.6, final_amount=374.4, coupon_code="WELCOME10", recipient=recipient)

    page = receipt_html(order, store_name="Shop", address=ADDRESS, generated_at=GENERATED)

    assert "-₹41.60" in page
    assert "WELCOME10" in page
    assert "Ravi (9999988888)" in page
    assert "Lal Chowk" in page
    assert "Residency Road" not in page
    assert '<span class="label">Name:</span> N/A' in page
