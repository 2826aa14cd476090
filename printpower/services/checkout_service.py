#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.


"""Checkout service turning a client cart into a hosted payment session.

This module provides the `CheckoutService` class, which re-prices the cart
from the database, persists a provisional order and creates the hosted
checkout session that the customer is redirected to. Payment confirmation
arrives later through the webhook service.

Key responsibilities include:
- Per-IP rate limiting of checkout attempts.
- Cart validation against active products, apparel stock and price floors.
- Markup / donation pricing and category based shipping.
- Order numbering from the database sequence.
"""

import logging
import secrets
import time
from typing import Any, Dict, List, Optional
import uuid

from printpower import db
from printpower import pricing
from printpower import shipping
from printpower.config import Settings
from printpower.enums import OrderStatus
from printpower.enums import PaymentMode
from printpower.exceptions import ConfigurationError
from printpower.exceptions import InvalidRequestError
from printpower.exceptions import RateLimitedError
from printpower.exceptions import ResourceNotFoundError
from printpower.models import CheckoutResult
from printpower.models import MAX_DONATION_CENTS
from printpower.payments import StripeGateway
from printpower.rate_limit import FixedWindowRateLimiter
from printpower.services.cart_validator import CartValidator
from printpower.services.cart_validator import parse_cart
from printpower.vendors import base as vendor_base
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

STRIPE_MODE_SETTING = "stripe_mode"
CURRENCY = "usd"


def fallback_order_number() -> str:
  """Builds a unique order number without the database sequence."""
  return f"PPP-{int(time.time() * 1000)}-{secrets.token_hex(2)}"


def _optional_string(body: Dict[str, Any], key: str) -> Optional[str]:
  value = body.get(key)
  if value is None or value == "":
    return None
  if not isinstance(value, str):
    raise InvalidRequestError(f"{key} must be a string")
  return value


def _donation_cents(body: Dict[str, Any]) -> int:
  value = body.get("donationCents")
  if value is None:
    return 0
  if isinstance(value, bool) or not isinstance(value, int):
    raise InvalidRequestError("donationCents must be an integer")
  if value < 0 or value > MAX_DONATION_CENTS:
    raise InvalidRequestError(
        f"donationCents must be between 0 and {MAX_DONATION_CENTS}"
    )
  return value


class CheckoutService:
  """Service for creating checkout sessions and reading orders."""

  def __init__(
      self,
      session: AsyncSession,
      settings: Settings,
      gateway: StripeGateway,
      rate_limiter: FixedWindowRateLimiter,
  ):
    self.session = session
    self.settings = settings
    self.gateway = gateway
    self.rate_limiter = rate_limiter

  async def create_checkout_session(
      self, body: Any, client_ip: str
  ) -> CheckoutResult:
    """Prices the cart, stores a provisional order and opens a session.

    Args:
      body: The request body, `{cart, nonprofitId?, causeId?,
        donationCents?, termsVersion?, privacyVersion?}`.
      client_ip: Address the rate limit is keyed by.

    Returns:
      The redirect URL and the identifiers of the provisional order.

    Raises:
      RateLimitedError: If the client exceeded its checkout attempts.
      InvalidRequestError: If the request or a cart item is malformed.
      ConfigurationError: If Stripe or pricing is not configured.
      ExternalServiceError: If Stripe rejects the session.
    """
    if not self.rate_limiter.allow(client_ip):
      logger.warning("Checkout rate limit exceeded for %s", client_ip)
      raise RateLimitedError()

    if not isinstance(body, dict):
      raise InvalidRequestError("Request body must be a JSON object")
    cart_items = parse_cart(body.get("cart"))
    donation_cents = _donation_cents(body)
    nonprofit_id = _optional_string(body, "nonprofitId")
    cause_id = _optional_string(body, "causeId")
    terms_version = _optional_string(body, "termsVersion")
    privacy_version = _optional_string(body, "privacyVersion")

    payment_mode = await self._payment_mode()
    secret_key = self.settings.stripe_secret_key(payment_mode)
    if not secret_key:
      raise ConfigurationError(
          f"Stripe secret key for {payment_mode} mode not configured"
      )

    nonprofit_name = None
    nonprofit_ein = None
    if nonprofit_id:
      nonprofit = await db.get_nonprofit(self.session, nonprofit_id)
      if nonprofit:
        nonprofit_name = nonprofit.name
        nonprofit_ein = nonprofit.ein

    pricing_settings = await db.get_pricing_settings(
        self.session, pricing.MARKUP_VENDOR
    )
    if pricing_settings is None:
      raise ConfigurationError("Pricing settings not configured")
    currency = pricing_settings.currency or CURRENCY

    validator = CartValidator(self.session)
    order_items = []
    for item in cart_items:
      product = await validator.validate_item(item)
      breakdown = pricing.compute_pricing(
          product.vendor, product.base_cost_cents or 0, pricing_settings
      )
      unit_price = (
          item.price_cents
          if item.price_cents is not None
          else breakdown.final_price_per_unit_cents
      )
      order_items.append({
          "product_id": product.id,
          "product_name": product.name,
          "vendor": product.vendor,
          "vendor_product_id": product.vendor_product_id,
          "category": product.category,
          "quantity": item.quantity,
          "configuration": item.configuration or {},
          "artwork_url": item.artwork_url,
          "base_price_per_unit_cents": breakdown.base_price_per_unit_cents,
          "markup_amount_cents": breakdown.markup_amount_cents,
          "donation_per_unit_cents": breakdown.donation_per_unit_cents,
          "final_price_per_unit_cents": unit_price,
          "line_subtotal_cents": unit_price * item.quantity,
      })

    subtotal_cents = sum(i["line_subtotal_cents"] for i in order_items)
    shipping_cents = shipping.calculate_order_shipping(
        {"name": i["product_name"], "category": i["category"]}
        for i in order_items
    )
    total_cents = subtotal_cents + shipping_cents + donation_cents

    vendor_key = order_items[0]["vendor"]
    vendor_config = vendor_base.get_vendor_config(self.settings, vendor_key)
    order_id = str(uuid.uuid4())
    order_number = await self._next_order_number()

    await db.save_order(
        self.session,
        db.Order(
            id=order_id,
            order_number=order_number,
            session_id=f"pending_{uuid.uuid4()}",
            status=OrderStatus.CREATED.value,
            items=order_items,
            subtotal_cents=subtotal_cents,
            shipping_cents=shipping_cents,
            tax_cents=0,
            donation_cents=donation_cents,
            amount_total_cents=total_cents,
            currency=currency,
            nonprofit_id=nonprofit_id,
            nonprofit_name=nonprofit_name,
            nonprofit_ein=nonprofit_ein,
            cause_id=cause_id,
            payment_mode=payment_mode,
            vendor_key=vendor_key,
            vendor_name=vendor_config.name if vendor_config else vendor_key,
        ),
    )
    # The order must exist before the customer can pay for it
    await self.session.commit()
    logger.info("Created provisional order %s (%s)", order_number, order_id)

    metadata = {
        "order_id": order_id,
        "order_number": order_number,
        "nonprofit_id": nonprofit_id or "",
        "nonprofit_name": nonprofit_name or "",
        "nonprofit_ein": nonprofit_ein or "",
        "cause_id": cause_id or "",
        "donation_cents": str(donation_cents),
        "shipping_cents": str(shipping_cents),
    }
    if terms_version:
      metadata["terms_version"] = terms_version
    if privacy_version:
      metadata["privacy_version"] = privacy_version

    site_url = self.settings.site_url.rstrip("/")
    hosted = await self.gateway.create_checkout_session(
        secret_key=secret_key,
        line_items=self._line_items(
            order_items,
            shipping_cents,
            donation_cents,
            nonprofit_name,
            currency,
        ),
        success_url=(
            f"{site_url}/success?orderId={order_id}"
            "&session_id={CHECKOUT_SESSION_ID}"
        ),
        cancel_url=f"{site_url}/cancel",
        metadata=metadata,
        automatic_tax=self.settings.enable_automatic_tax,
    )

    tax_cents = hosted.amount_tax
    values = {"session_id": hosted.id, "tax_cents": tax_cents}
    if tax_cents > 0:
      total_cents += tax_cents
      values["amount_total_cents"] = total_cents
    await db.update_order(self.session, order_id, values)
    await self.session.commit()

    return CheckoutResult(
        url=hosted.url or "",
        order_id=order_id,
        order_number=order_number,
        tax_cents=tax_cents,
        total_cents=total_cents,
    )

  async def get_order(self, order_id: str) -> Dict[str, Any]:
    """Retrieves an order as a dict."""
    order = await db.get_order(self.session, order_id)
    if order is None:
      raise ResourceNotFoundError("Order not found")
    return db.order_to_dict(order)

  async def _payment_mode(self) -> str:
    mode = await db.get_app_setting(self.session, STRIPE_MODE_SETTING)
    if mode == PaymentMode.LIVE.value:
      return PaymentMode.LIVE.value
    return PaymentMode.TEST.value

  async def _next_order_number(self) -> str:
    try:
      return await db.next_order_number(self.session)
    except SQLAlchemyError as e:
      await self.session.rollback()
      order_number = fallback_order_number()
      logger.error(
          "Order sequence failed, using fallback %s: %s", order_number, e
      )
      return order_number

  @staticmethod
  def _line_items(
      order_items: List[Dict[str, Any]],
      shipping_cents: int,
      donation_cents: int,
      nonprofit_name: Optional[str],
      currency: str = CURRENCY,
  ) -> List[Dict[str, Any]]:
    """Builds the Stripe line items of an order."""
    line_items = [
        {
            "price_data": {
                "currency": currency,
                "unit_amount": item["final_price_per_unit_cents"],
                "product_data": {"name": item["product_name"]},
            },
            "quantity": item["quantity"],
        }
        for item in order_items
    ]
    if shipping_cents > 0:
      line_items.append({
          "price_data": {
              "currency": currency,
              "unit_amount": shipping_cents,
              "product_data": {
                  "name": shipping.get_shipping_tier_label(shipping_cents)
              },
          },
          "quantity": 1,
      })
    if donation_cents > 0:
      name = "Donation"
      if nonprofit_name:
        name = f"Donation to {nonprofit_name}"
      line_items.append({
          "price_data": {
              "currency": currency,
              "unit_amount": donation_cents,
              "product_data": {"name": name},
          },
          "quantity": 1,
      })
    return line_items
