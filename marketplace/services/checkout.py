"""
Checkout Splitter

Turns one cart that may span several shops into one order per shop, each
with its own UPI payment instrument.

ATOMICITY GUARANTEES:
1. Product rows are locked in primary-key order before anything is checked
2. Prices and stock are re-validated with the locks held; client prices are
   only compared, never used
3. All orders, items and stock decrements commit in one transaction, or
   none of them do
4. A checkout that loses a lock race is retried from scratch a bounded
   number of times, then fails with a conflict
"""

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List, Optional

from django.conf import settings
from django.db import transaction
from rest_framework import serializers

from core.exceptions import Conflict, EmptyCart, ShopUnavailable, StaleCart
from marketplace.models import Order, OrderItem, Product, Shop
from .concurrency import lock_rows, retry_on_failure
from .upi import PaymentInstrument, build_instrument, format_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    """
    One line of the client's cart. Shop and price are denormalized on the
    client for display; the server re-derives both.
    """
    product_id: uuid.UUID
    quantity: int
    unit_price: int
    shop_id: Optional[uuid.UUID] = None


@dataclass
class PlacedOrder:
    order: Order
    instrument: PaymentInstrument


@dataclass
class CheckoutResult:
    placed: List[PlacedOrder] = field(default_factory=list)
    delivery_fee: int = 0

    @property
    def order_count(self):
        return len(self.placed)

    @property
    def grand_total(self):
        return sum(p.order.total for p in self.placed)

    @property
    def delivery_fee_total(self):
        return self.delivery_fee * self.order_count

    def delivery_fee_notice(self):
        if self.order_count == 1:
            return f"A delivery fee of {format_amount(self.delivery_fee)} is included in your order."
        return (
            f"Your cart contains items from {self.order_count} shops, so it was split into "
            f"{self.order_count} orders. A delivery fee of {format_amount(self.delivery_fee)} "
            f"is charged per order ({format_amount(self.delivery_fee_total)} in total), "
            f"and each shop is paid separately."
        )


def normalize_cart(lines):
    """
    Drop zero-quantity lines and reject carts with nothing left to buy.

    Returns:
        list of CartLine in the original cart order
    """
    normalized = []
    for line in lines:
        if line.quantity < 0:
            raise serializers.ValidationError({"items": f"Negative quantity for product {line.product_id}"})
        if line.quantity == 0:
            continue
        normalized.append(line)

    if not normalized:
        raise EmptyCart()
    return normalized


def _raise_conflict(exc):
    raise Conflict('Checkout could not be completed because of concurrent activity, please retry') from exc


class CheckoutService:
    """Service for placing multi-shop checkouts."""

    @classmethod
    def checkout(cls, customer, lines, delivery_address):
        """
        Place one order per shop represented in the cart.

        Args:
            customer: User placing the checkout
            lines: iterable of CartLine
            delivery_address: validated delivery address dict, copied into every order

        Returns:
            CheckoutResult

        Raises:
            EmptyCart, StaleCart, ShopUnavailable, Conflict
        """
        cart = normalize_cart(list(lines))
        result = cls._place_orders(customer, cart, dict(delivery_address))

        logger.info(
            f"Checkout by {customer.pk}: {result.order_count} order(s) "
            f"{[str(p.order.id) for p in result.placed]}, grand total {result.grand_total}"
        )
        return result

    @staticmethod
    @retry_on_failure(
        max_retries=lambda: settings.CHECKOUT_MAX_RETRIES,
        base_delay=lambda: settings.CHECKOUT_RETRY_BASE_DELAY,
        on_exhausted=_raise_conflict,
    )
    @transaction.atomic
    def _place_orders(customer, cart, delivery_address):
        # STEP 1: Lock every product in the cart in a consistent order
        products = lock_rows(Product.objects.all(), [line.product_id for line in cart])

        # STEP 2: Re-price and re-check stock in cart order; first offender wins
        requested = {}
        for line in cart:
            product = products.get(line.product_id)
            if product is None:
                logger.warning(f"Stale cart for {customer.pk}: product {line.product_id} missing")
                raise StaleCart(line.product_id, StaleCart.REASON_MISSING)

            if product.price != line.unit_price:
                logger.warning(
                    f"Stale cart for {customer.pk}: product {product.id} price "
                    f"{line.unit_price} != {product.price}"
                )
                raise StaleCart(product.id, StaleCart.REASON_PRICE)

            requested[product.id] = requested.get(product.id, 0) + line.quantity
            if requested[product.id] > product.stock:
                logger.warning(
                    f"Stale cart for {customer.pk}: product {product.id} stock "
                    f"{product.stock} < {requested[product.id]}"
                )
                raise StaleCart(product.id, StaleCart.REASON_STOCK)

        # STEP 3: Partition by the product's actual shop, keeping first-seen order
        groups = OrderedDict()
        for line in cart:
            product = products[line.product_id]
            group = groups.setdefault(product.shop_id, OrderedDict())
            group[product.id] = group.get(product.id, 0) + line.quantity

        # STEP 4: Every shop must be verified, otherwise nothing is placed
        shops = Shop.objects.in_bulk(list(groups))
        for shop_id in groups:
            shop = shops.get(shop_id)
            if shop is None or not shop.verified:
                logger.warning(f"Checkout by {customer.pk} refused: shop {shop_id} unavailable")
                raise ShopUnavailable(shop_id)

        # STEP 5: Compute money, mint instruments, create orders and decrement stock
        delivery_fee = settings.MARKETPLACE_DELIVERY_FEE
        result = CheckoutResult(delivery_fee=delivery_fee)

        for shop_id, quantities in groups.items():
            shop = shops[shop_id]
            subtotal = sum(products[pid].price * qty for pid, qty in quantities.items())
            tax = 0
            total = subtotal + tax + delivery_fee

            order_id = uuid.uuid4()
            instrument = build_instrument(shop.upi_id, shop.name, total, str(order_id))

            order = Order.objects.create(
                id=order_id,
                customer=customer,
                shop=shop,
                subtotal=subtotal,
                tax=tax,
                delivery_fee=delivery_fee,
                total=total,
                status=Order.Status.PROCESSING,
                delivery_address=delivery_address,
                upi_payment_url=instrument.payment_url,
                upi_qr_url=instrument.qr_url,
            )

            for position, (pid, qty) in enumerate(quantities.items()):
                product = products[pid]
                OrderItem.objects.create(
                    order=order,
                    product=product,
                    name=product.title,
                    unit_price=product.price,
                    quantity=qty,
                    image=product.images[0] if product.images else '',
                    position=position,
                )
                product.reduce_stock(qty)

            result.placed.append(PlacedOrder(order=order, instrument=instrument))

        return result
