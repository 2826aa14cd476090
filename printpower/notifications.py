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


"""Outbound email: HTML rendering and delivery through the Resend API."""

import logging
from typing import Any, Dict, List, Optional

import httpx
from jinja2 import DictLoader
from jinja2 import Environment
from jinja2 import select_autoescape
from printpower.exceptions import ConfigurationError
from printpower.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

_STYLE = """
  body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
  .container { max-width: 800px; margin: 0 auto; padding: 20px; }
  .header { background: #667eea; color: white; padding: 20px; text-align: center; }
  .content { background: #f9f9f9; padding: 20px; }
  .info-box { background: white; padding: 15px; margin: 10px 0; border-left: 4px solid #667eea; }
  table { width: 100%; border-collapse: collapse; margin: 20px 0; }
  th { background: #667eea; color: white; padding: 10px; text-align: left; }
  td { padding: 8px; border: 1px solid #ddd; }
"""

TEMPLATES = {
    "_items.html": """
      <table>
        <thead>
          <tr><th>Product</th><th>Quantity</th><th>Unit Price</th><th>Subtotal</th></tr>
        </thead>
        <tbody>
          {% for item in order["items"] or [] %}
          <tr>
            <td>{{ item.get("product_name") or "Unknown Product" }}</td>
            <td>{{ item.get("quantity") or 1 }}</td>
            <td>{{ item.get("final_price_per_unit_cents") | dollars }}</td>
            <td>{{ item.get("line_subtotal_cents") | dollars }}</td>
          </tr>
          {% endfor %}
        </tbody>
      </table>
    """,
    "_address.html": """
      {% set a = order["shipping_address"] %}
      {% if a %}
      <div class="info-box">
        <h2>Shipping Address</h2>
        <p>
          {{ a.get("name") or "" }}<br>
          {{ a.get("line1") or "" }}<br>
          {% if a.get("line2") %}{{ a.get("line2") }}<br>{% endif %}
          {{ a.get("city") or "" }}, {{ a.get("state") or "" }} {{ a.get("postal_code") or "" }}<br>
          {{ a.get("country") or "" }}
        </p>
      </div>
      {% endif %}
    """,
    "vendor_order.html": """<!DOCTYPE html>
<html>
  <head><style>""" + _STYLE + """</style></head>
  <body>
    <div class="container">
      <div class="header">
        <h1>New Order to Fulfill</h1>
        <p>Print Power Purpose Order #{{ order["order_number"] }}</p>
      </div>
      <div class="content">
        <div class="info-box">
          <h2>Order Details</h2>
          <p><strong>Order Number:</strong> {{ order["order_number"] }}</p>
          <p><strong>Vendor:</strong> {{ vendor_name }}</p>
          <p><strong>Customer Email:</strong> {{ order["customer_email"] or "N/A" }}</p>
          <p><strong>Total Amount:</strong> {{ order["amount_total_cents"] | dollars }}</p>
        </div>
        {% include "_address.html" %}
        <div class="info-box">
          <h2>Line Items</h2>
          {% include "_items.html" %}
        </div>
        <p style="margin-top: 30px; color: #666; font-size: 12px;">
          This is an automated fulfillment notification from Print Power Purpose.<br>
          Please process this order and update your system accordingly.
        </p>
      </div>
    </div>
  </body>
</html>
""",
    "order_confirmation.html": """<!DOCTYPE html>
<html>
  <head><style>""" + _STYLE + """</style></head>
  <body>
    <div class="container">
      <div class="header">
        <h1>Thank you for your order!</h1>
        <p>Order #{{ order["order_number"] }}</p>
      </div>
      <div class="content">
        {% include "_items.html" %}
        <div class="info-box">
          <p><strong>Subtotal:</strong> {{ order["subtotal_cents"] | dollars }}</p>
          <p><strong>Shipping:</strong> {{ order["shipping_cents"] | dollars }}</p>
          {% if order["tax_cents"] %}<p><strong>Tax:</strong> {{ order["tax_cents"] | dollars }}</p>{% endif %}
          {% if order["donation_cents"] %}<p><strong>Donation:</strong> {{ order["donation_cents"] | dollars }}</p>{% endif %}
          <p><strong>Total:</strong> {{ order["amount_total_cents"] | dollars }}</p>
        </div>
        {% if order["nonprofit_name"] %}
        <div class="info-box">
          <p>Your purchase supports <strong>{{ order["nonprofit_name"] }}</strong>{% if order["nonprofit_ein"] %} (EIN {{ order["nonprofit_ein"] }}){% endif %}.</p>
        </div>
        {% endif %}
        {% include "_address.html" %}
      </div>
    </div>
  </body>
</html>
""",
    "receipt.html": """<!DOCTYPE html>
<html>
  <head><style>""" + _STYLE + """</style></head>
  <body>
    <div class="container">
      <div class="header">
        <h1>Receipt</h1>
        <p>Order #{{ order["order_number"] }} &middot; Paid {{ order["paid_at"] or "" }}</p>
      </div>
      <div class="content">
        {% include "_items.html" %}
        <div class="info-box">
          <p><strong>Amount paid:</strong> {{ order["amount_total_cents"] | dollars }}</p>
          {% if order["donation_cents"] %}
          <p><strong>Tax-deductible donation:</strong> {{ order["donation_cents"] | dollars }}
          {% if order["nonprofit_name"] %}to {{ order["nonprofit_name"] }}{% endif %}
          {% if order["nonprofit_ein"] %} (EIN {{ order["nonprofit_ein"] }}){% endif %}</p>
          {% endif %}
          {% if order["receipt_url"] %}<p><a href="{{ order["receipt_url"] }}">Payment receipt</a></p>{% endif %}
        </div>
      </div>
    </div>
  </body>
</html>
""",
    "shipping_notification.html": """<!DOCTYPE html>
<html>
  <head><style>""" + _STYLE + """</style></head>
  <body>
    <div class="container">
      <div class="header">
        <h1>Your order is on its way</h1>
        <p>Order #{{ order["order_number"] }}</p>
      </div>
      <div class="content">
        <div class="info-box">
          <p><strong>Status:</strong> {{ (order["shipping_status"] or "pending") | replace("_", " ") | title }}</p>
          {% if order["tracking_carrier"] %}<p><strong>Carrier:</strong> {{ order["tracking_carrier"] }}</p>{% endif %}
          {% if order["tracking_number"] %}<p><strong>Tracking Number:</strong> {{ order["tracking_number"] }}</p>{% endif %}
          {% if order["tracking_url"] %}<p><a href="{{ order["tracking_url"] }}">Track your package</a></p>{% endif %}
        </div>
        {% include "_address.html" %}
      </div>
    </div>
  </body>
</html>
""",
}


def dollars(cents: Optional[int]) -> str:
  return f"${(cents or 0) / 100:.2f}"


env = Environment(
    loader=DictLoader(TEMPLATES), autoescape=select_autoescape(["html"])
)
env.filters["dollars"] = dollars


def render(name: str, **ctx: Any) -> str:
  return env.get_template(name).render(**ctx)


def render_vendor_order_email(order: Dict[str, Any], vendor_name: str) -> str:
  """Builds the vendor notification for an order to fulfill."""
  return render("vendor_order.html", order=order, vendor_name=vendor_name)


def render_order_confirmation(order: Dict[str, Any]) -> str:
  return render("order_confirmation.html", order=order)


def render_receipt(order: Dict[str, Any]) -> str:
  return render("receipt.html", order=order)


def render_shipping_notification(order: Dict[str, Any]) -> str:
  return render("shipping_notification.html", order=order)


class ResendMailer:
  """Sends HTML emails through the Resend HTTP API."""

  def __init__(
      self,
      api_key: Optional[str],
      sender: str,
      api_url: str = RESEND_API_URL,
      timeout: float = 10.0,
      transport: Optional[httpx.AsyncBaseTransport] = None,
  ):
    self.api_key = api_key
    self.sender = sender
    self.api_url = api_url
    self.timeout = timeout
    self._transport = transport

  async def send(self, to: List[str], subject: str, html: str) -> Optional[str]:
    """Sends one email and returns the provider message ID.

    Raises:
      ConfigurationError: If no API key is configured.
      ExternalServiceError: If the API rejects the message.
    """
    if not self.api_key:
      raise ConfigurationError("RESEND_API_KEY not configured")

    payload = {"from": self.sender, "to": to, "subject": subject, "html": html}
    try:
      async with httpx.AsyncClient(
          transport=self._transport, timeout=self.timeout
      ) as client:
        response = await client.post(
            self.api_url,
            json=payload,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
    except httpx.RequestError as e:
      raise ExternalServiceError(f"Email delivery failed: {e}") from e

    if response.status_code >= 400:
      raise ExternalServiceError(
          f"Email delivery failed: {response.status_code} - {response.text}"
      )
    logger.info("Sent email '%s' to %s", subject, ", ".join(to))
    return response.json().get("id")
