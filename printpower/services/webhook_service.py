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


"""Stripe webhook processing: order finalization and post-payment effects.

Only the signature check and the order write decide the response. Policy
logging, the donation, customer emails and vendor fulfillment are isolated
side effects: a failure in one is logged and the others still run.
"""

import asyncio
import logging
from typing import Any, Dict, Optional
import uuid

from printpower import db
from printpower import notifications
from printpower import payments
from printpower.config import Settings
from printpower.enums import OrderStatus
from printpower.enums import PaymentMode
from printpower.exceptions import WebhookProcessingError
from printpower.notifications import ResendMailer
from printpower.services.fulfillment_service import VendorFulfillmentDispatcher
from printpower.vendors import base as vendor_base
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

CHECKOUT_COMPLETED = "checkout.session.completed"

_POLICY_METADATA = (("terms", "terms_version"), ("privacy", "privacy_version"))


def _metadata_int(metadata: Dict[str, Any], key: str) -> int:
  try:
    return max(0, int(metadata.get(key) or 0))
  except (TypeError, ValueError):
    return 0


def _metadata_str(metadata: Dict[str, Any], key: str) -> Optional[str]:
  return metadata.get(key) or None


def _object_id(value: Any) -> Optional[str]:
  """Returns the id of a possibly expanded Stripe object reference."""
  if isinstance(value, dict):
    return value.get("id")
  return value


def _receipt_url(checkout_session: Dict[str, Any]) -> Optional[str]:
  payment_intent = checkout_session.get("payment_intent")
  if isinstance(payment_intent, dict):
    charge = payment_intent.get("latest_charge")
    if isinstance(charge, dict):
      return charge.get("receipt_url")
  return checkout_session.get("receipt_url")


def extract_shipping_address(
    checkout_session: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
  """Normalizes the collected shipping address of a checkout session."""
  details = checkout_session.get("shipping_details") or (
      checkout_session.get("collected_information") or {}
  ).get("shipping_details")
  customer = checkout_session.get("customer_details") or {}
  if details and details.get("address"):
    name = details.get("name") or customer.get("name")
    address = details["address"]
  elif customer.get("address"):
    name = customer.get("name")
    address = customer["address"]
  else:
    return None

  return {
      "name": name,
      "line1": address.get("line1"),
      "line2": address.get("line2"),
      "city": address.get("city"),
      "state": address.get("state"),
      "postal_code": address.get("postal_code"),
      "country": address.get("country"),
      "phone": customer.get("phone"),
  }


class WebhookService:
  """Handles verified Stripe events."""

  def __init__(
      self,
      session: AsyncSession,
      settings: Settings,
      mailer: ResendMailer,
      dispatcher: VendorFulfillmentDispatcher,
  ):
    self.session = session
    self.settings = settings
    self.mailer = mailer
    self.dispatcher = dispatcher

  async def handle_event(
      self, payload: bytes, signature_header: Optional[str]
  ) -> Dict[str, Any]:
    """Verifies and processes one webhook delivery.

    Args:
      payload: The raw request body, exactly as received.
      signature_header: The `stripe-signature` header.

    Returns:
      The acknowledgement body.

    Raises:
      WebhookSignatureError: If the delivery cannot be authenticated.
      WebhookProcessingError: If processing fails after verification.
    """
    event = payments.verify_webhook_event(
        payload, signature_header, self.settings.stripe_webhook_secret
    )
    try:
      return await self._process_event(event)
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.exception("Webhook processing failed for %s", event.get("id"))
      raise WebhookProcessingError(str(e) or "Webhook handler failed") from e

  async def _process_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
    event_id = event.get("id")
    event_type = event.get("type")
    logger.info("Webhook event %s (%s)", event_id, event_type)

    if event_id and await db.get_processed_event(self.session, event_id):
      logger.info("Skipping already processed event %s", event_id)
      return {"received": True, "duplicate": True}

    if event_type != CHECKOUT_COMPLETED:
      if event_id:
        await db.save_processed_event(self.session, event_id, event_type)
        await self.session.commit()
      return {"received": True}

    checkout_session = (event.get("data") or {}).get("object") or {}
    order = await self._finalize_order(checkout_session)
    if event_id:
      await db.save_processed_event(self.session, event_id, event_type)
    try:
      await self.session.commit()
    except IntegrityError:
      # A concurrent delivery of the same event committed first
      await self.session.rollback()
      logger.info("Event %s was processed concurrently", event_id)
      return {"received": True, "duplicate": True}

    order_data = db.order_to_dict(order)
    metadata = checkout_session.get("metadata") or {}
    await self._record_policy_acceptances(order_data, metadata)
    await self._record_donation(order_data)
    await self._send_customer_emails(order_data)
    await self.dispatcher.dispatch(order_data)
    return {"received": True}

  async def _finalize_order(self, checkout_session: Dict[str, Any]) -> db.Order:
    """Completes the provisional order, or creates one for legacy sessions."""
    metadata = checkout_session.get("metadata") or {}
    customer = checkout_session.get("customer_details") or {}
    values = {
        "status": OrderStatus.COMPLETED.value,
        "paid_at": db.now_iso(),
        "customer_email": customer.get("email")
        or checkout_session.get("customer_email"),
        "payment_intent_id": _object_id(checkout_session.get("payment_intent")),
        "receipt_url": _receipt_url(checkout_session),
        "shipping_address": extract_shipping_address(checkout_session),
        "donation_cents": _metadata_int(metadata, "donation_cents"),
        "cause_id": _metadata_str(metadata, "cause_id"),
        "nonprofit_id": _metadata_str(metadata, "nonprofit_id"),
        "nonprofit_name": _metadata_str(metadata, "nonprofit_name"),
        "nonprofit_ein": _metadata_str(metadata, "nonprofit_ein"),
    }

    order_id = metadata.get("order_id")
    order = await db.get_order(self.session, order_id) if order_id else None
    if order is not None:
      for field, value in values.items():
        setattr(order, field, value)
      order.session_id = checkout_session.get("id") or order.session_id
      logger.info("Order %s completed", order.order_number)
      return order

    logger.warning(
        "No provisional order for session %s, recording legacy order",
        checkout_session.get("id"),
    )
    total_details = checkout_session.get("total_details") or {}
    vendor_key = vendor_base.DEFAULT_VENDOR_KEY
    vendor_config = vendor_base.get_vendor_config(self.settings, vendor_key)
    amount_total = checkout_session.get("amount_total") or 0
    order = db.Order(
        id=str(uuid.uuid4()),
        order_number=metadata.get("order_number")
        or await db.next_order_number(self.session),
        session_id=checkout_session.get("id"),
        items=[],
        subtotal_cents=checkout_session.get("amount_subtotal") or amount_total,
        shipping_cents=_metadata_int(metadata, "shipping_cents"),
        tax_cents=total_details.get("amount_tax") or 0,
        amount_total_cents=amount_total,
        currency=checkout_session.get("currency") or "usd",
        payment_mode=(
            PaymentMode.LIVE.value
            if checkout_session.get("livemode")
            else PaymentMode.TEST.value
        ),
        vendor_key=vendor_key,
        vendor_name=vendor_config.name if vendor_config else vendor_key,
        **values,
    )
    await db.save_order(self.session, order)
    return order

  async def _record_policy_acceptances(
      self, order: Dict[str, Any], metadata: Dict[str, Any]
  ) -> None:
    for policy_type, key in _POLICY_METADATA:
      version = metadata.get(key)
      if not version:
        continue
      try:
        await db.save_policy_acceptance(
            self.session,
            order["id"],
            policy_type,
            version,
            customer_email=order.get("customer_email"),
        )
        await self.session.commit()
      except Exception as e:  # pylint: disable=broad-exception-caught
        await self.session.rollback()
        logger.error(
            "Failed to log %s acceptance for order %s: %s",
            policy_type,
            order["id"],
            e,
        )

  async def _record_donation(self, order: Dict[str, Any]) -> None:
    cause_id = order.get("cause_id")
    amount = order.get("donation_cents") or 0
    if not cause_id or amount <= 0:
      return
    try:
      await db.save_donation(
          self.session,
          order["id"],
          cause_id,
          amount,
          nonprofit_id=order.get("nonprofit_id"),
          customer_email=order.get("customer_email"),
      )
      if not await db.increment_cause_raised(self.session, cause_id, amount):
        logger.warning("Cause %s not found for donation", cause_id)
      await self.session.commit()
      logger.info("Recorded %d cent donation to cause %s", amount, cause_id)
    except Exception as e:  # pylint: disable=broad-exception-caught
      await self.session.rollback()
      logger.error("Failed to record donation for order %s: %s", order["id"], e)

  async def _send_customer_emails(self, order: Dict[str, Any]) -> None:
    email = order.get("customer_email")
    if not email:
      logger.warning("Order %s has no customer email", order["id"])
      return

    order_number = order.get("order_number")
    results = await asyncio.gather(
        self.mailer.send(
            [email],
            f"Order Confirmation - {order_number}",
            notifications.render_order_confirmation(order),
        ),
        self.mailer.send(
            [email],
            f"Your receipt for order {order_number}",
            notifications.render_receipt(order),
        ),
        return_exceptions=True,
    )
    for kind, result in zip(("confirmation", "receipt"), results):
      if isinstance(result, Exception):
        logger.error(
            "Failed to send %s email for order %s: %s",
            kind,
            order["id"],
            result,
        )
