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


"""Stripe integration: hosted checkout sessions and webhook verification."""

import json
import logging
from typing import Any, Dict, List, Optional

from printpower.exceptions import ExternalServiceError
from printpower.exceptions import WebhookSignatureError
from pydantic import BaseModel
import stripe

logger = logging.getLogger(__name__)

WEBHOOK_TOLERANCE_SECONDS = 300


class HostedCheckoutSession(BaseModel):
  """The parts of a Stripe checkout session the server needs."""

  id: str
  url: Optional[str] = None
  amount_tax: int = 0


class StripeGateway:
  """Creates hosted checkout sessions with a per-request secret key."""

  async def create_checkout_session(
      self,
      secret_key: str,
      line_items: List[Dict[str, Any]],
      success_url: str,
      cancel_url: str,
      metadata: Dict[str, str],
      automatic_tax: bool = False,
  ) -> HostedCheckoutSession:
    """Creates a payment-mode checkout session.

    Args:
      secret_key: Stripe secret key of the active payment mode.
      line_items: Stripe `price_data` line items.
      success_url: Redirect target after payment.
      cancel_url: Redirect target when the customer abandons checkout.
      metadata: String metadata echoed back in the webhook event.
      automatic_tax: Whether Stripe should calculate tax.

    Returns:
      The created session. `amount_tax` is only read when automatic tax is on.

    Raises:
      ExternalServiceError: If Stripe rejects the request.
    """
    params: Dict[str, Any] = {
        "mode": "payment",
        "line_items": line_items,
        "success_url": success_url,
        "cancel_url": cancel_url,
        "metadata": metadata,
        "shipping_address_collection": {"allowed_countries": ["US"]},
    }
    if automatic_tax:
      params["automatic_tax"] = {"enabled": True}

    try:
      session = await stripe.checkout.Session.create_async(
          api_key=secret_key, **params
      )
    except stripe.StripeError as e:
      logger.error("Stripe checkout session creation failed: %s", e)
      raise ExternalServiceError(
          f"Failed to create checkout session: {e.user_message or e}"
      ) from e

    amount_tax = 0
    if automatic_tax and session.total_details:
      amount_tax = session.total_details.amount_tax or 0

    return HostedCheckoutSession(
        id=session.id, url=session.url, amount_tax=amount_tax
    )


def verify_webhook_event(
    payload: bytes,
    signature_header: Optional[str],
    webhook_secret: Optional[str],
    tolerance: int = WEBHOOK_TOLERANCE_SECONDS,
) -> Dict[str, Any]:
  """Authenticates a Stripe webhook body and returns the decoded event.

  Raises:
    WebhookSignatureError: If the header or secret is missing, or the
      signature does not match the raw body.
  """
  if not signature_header or not webhook_secret:
    raise WebhookSignatureError("Missing signature or webhook secret")

  try:
    body = payload.decode("utf-8")
    stripe.WebhookSignature.verify_header(
        body, signature_header, webhook_secret, tolerance
    )
  except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
    logger.warning("Webhook signature verification failed: %s", e)
    raise WebhookSignatureError("Invalid webhook signature") from e

  try:
    return json.loads(body)
  except ValueError as e:
    raise WebhookSignatureError("Webhook body is not valid JSON") from e
