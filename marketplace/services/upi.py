"""
UPI Payment Instruments

Builds the ``upi://pay`` deep link a customer scans to pay a shop, plus the
URL of a rendered QR code for it. Everything here is deterministic and
side-effect free except ``render_qr_png``, which draws the QR locally.

URL form (parameter order is fixed):

    upi://pay?pa=<payee>&pn=<name>&am=<amount>&cu=INR[&tn=<reference>]

Values are percent-encoded with only unreserved characters left as-is, so a
space becomes ``%20`` and never ``+``.
"""

import io
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import qrcode
from django.conf import settings

CURRENCY = 'INR'


def _encode(value) -> str:
    # RFC 3986 unreserved set: ALPHA / DIGIT / "-" / "." / "_" / "~"
    return quote(str(value), safe='')


@dataclass(frozen=True)
class PaymentInstrument:
    """Payment artifact minted for one order."""
    payee: str
    payee_name: str
    amount: int
    reference: Optional[str]
    payment_url: str
    qr_url: str

    def instructions(self):
        """Human-readable steps shown next to the QR code."""
        return [
            f"Open any UPI app and scan the QR code, or pay {self.payee} directly.",
            f"Pay exactly {format_amount(self.amount)} to {self.payee_name}.",
            f"Use reference {self.reference} so the shop can match your payment."
            if self.reference else "Keep your UPI transaction ID for your records.",
            "Upload a screenshot of the completed payment on the order page.",
        ]

    def as_dict(self):
        return {
            'payee': self.payee,
            'payee_name': self.payee_name,
            'amount': self.amount,
            'currency': CURRENCY,
            'reference': self.reference,
            'payment_url': self.payment_url,
            'qr_url': self.qr_url,
        }


def format_amount(amount: int) -> str:
    return f"₹{amount}"


def build_payment_url(payee: str, payee_name: str, amount: int, reference: Optional[str] = None) -> str:
    """
    Compose the canonical UPI payment URL.

    >>> build_payment_url("shop@bank", "Ada's Books", 1500, "ORD-42")
    'upi://pay?pa=shop%40bank&pn=Ada%27s%20Books&am=1500&cu=INR&tn=ORD-42'
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise ValueError(f"amount must be a non-negative integer, got {amount!r}")

    url = (
        f"upi://pay?pa={_encode(payee)}"
        f"&pn={_encode(payee_name)}"
        f"&am={amount}"
        f"&cu={CURRENCY}"
    )
    if reference:
        url += f"&tn={_encode(reference)}"
    return url


def build_qr_url(payment_url: str) -> str:
    """URL of a QR rendering of ``payment_url`` from the configured endpoint."""
    return settings.UPI_QR_ENDPOINT.format(data=_encode(payment_url))


def build_instrument(payee: str, payee_name: str, amount: int, reference: Optional[str] = None) -> PaymentInstrument:
    payment_url = build_payment_url(payee, payee_name, amount, reference)
    return PaymentInstrument(
        payee=payee,
        payee_name=payee_name,
        amount=amount,
        reference=reference,
        payment_url=payment_url,
        qr_url=build_qr_url(payment_url),
    )


def instrument_for_order(order) -> PaymentInstrument:
    """Instrument an order was created with; the stored URLs stay authoritative."""
    return PaymentInstrument(
        payee=order.shop.upi_id,
        payee_name=order.shop.name,
        amount=order.total,
        reference=str(order.id),
        payment_url=order.upi_payment_url,
        qr_url=order.upi_qr_url,
    )


def render_qr_png(payment_url: str) -> bytes:
    """Render the payment URL as a PNG QR code without calling the remote endpoint."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(payment_url)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return buffer.getvalue()
