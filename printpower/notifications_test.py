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


"""Tests for email rendering and delivery."""

import asyncio
import json

from absl.testing import absltest
import httpx
from printpower import notifications
from printpower.exceptions import ConfigurationError
from printpower.exceptions import ExternalServiceError

ORDER = {
    "id": "order-1",
    "order_number": "PPP-001001",
    "customer_email": "jane@example.com",
    "amount_total_cents": 7995,
    "subtotal_cents": 7000,
    "shipping_cents": 495,
    "tax_cents": 0,
    "donation_cents": 500,
    "nonprofit_name": "Harbor City Food Bank",
    "nonprofit_ein": "23-7654321",
    "paid_at": "2024-05-01T10:00:00+00:00",
    "receipt_url": None,
    "shipping_status": "in_transit",
    "tracking_number": "1Z999",
    "tracking_url": None,
    "tracking_carrier": "UPS",
    "shipping_address": {
        "name": "Jane Doe",
        "line1": "1 Main St",
        "line2": None,
        "city": "Springfield",
        "state": "IL",
        "postal_code": "62701",
        "country": "US",
    },
    "items": [{
        "product_name": "Cards <b>bold</b>",
        "quantity": 2,
        "final_price_per_unit_cents": 3500,
        "line_subtotal_cents": 7000,
    }],
}


class RenderTest(absltest.TestCase):

  def test_vendor_order_email(self):
    html = notifications.render_vendor_order_email(ORDER, "SinaLite")
    self.assertIn("PPP-001001", html)
    self.assertIn("SinaLite", html)
    self.assertIn("jane@example.com", html)
    self.assertIn("$79.95", html)
    self.assertIn("Springfield, IL 62701", html)
    self.assertIn("$35.00", html)

  def test_product_names_are_escaped(self):
    html = notifications.render_vendor_order_email(ORDER, "SinaLite")
    self.assertIn("Cards &lt;b&gt;bold&lt;/b&gt;", html)
    self.assertNotIn("<b>bold</b>", html)

  def test_confirmation_mentions_nonprofit(self):
    html = notifications.render_order_confirmation(ORDER)
    self.assertIn("Harbor City Food Bank", html)
    self.assertIn("$5.00", html)

  def test_receipt(self):
    html = notifications.render_receipt(ORDER)
    self.assertIn("Amount paid", html)
    self.assertIn("23-7654321", html)

  def test_shipping_notification(self):
    html = notifications.render_shipping_notification(ORDER)
    self.assertIn("In Transit", html)
    self.assertIn("1Z999", html)

  def test_order_without_address_or_items(self):
    html = notifications.render_vendor_order_email(
        {"order_number": "PPP-1", "items": None, "shipping_address": None,
         "customer_email": None, "amount_total_cents": None},
        "Scalable Press",
    )
    self.assertIn("N/A", html)
    self.assertIn("$0.00", html)


class ResendMailerTest(absltest.TestCase):

  def test_send(self):
    requests = []

    def respond(request):
      requests.append(request)
      return httpx.Response(200, json={"id": "msg_1"})

    mailer = notifications.ResendMailer(
        "re_key",
        "PPP <orders@ppp.test>",
        transport=httpx.MockTransport(respond),
    )
    message_id = asyncio.run(
        mailer.send(["vendor@test"], "New Order", "<p>hi</p>")
    )

    self.assertEqual(message_id, "msg_1")
    (request,) = requests
    self.assertEqual(request.headers["Authorization"], "Bearer re_key")
    self.assertEqual(
        json.loads(request.content),
        {
            "from": "PPP <orders@ppp.test>",
            "to": ["vendor@test"],
            "subject": "New Order",
            "html": "<p>hi</p>",
        },
    )

  def test_missing_key(self):
    mailer = notifications.ResendMailer(None, "orders@ppp.test")
    with self.assertRaises(ConfigurationError):
      asyncio.run(mailer.send(["a@test"], "s", "h"))

  def test_rejected_message(self):
    mailer = notifications.ResendMailer(
        "re_key",
        "orders@ppp.test",
        transport=httpx.MockTransport(
            lambda request: httpx.Response(422, json={"message": "bad"})
        ),
    )
    with self.assertRaisesRegex(ExternalServiceError, "422"):
      asyncio.run(mailer.send(["a@test"], "s", "h"))


if __name__ == "__main__":
  absltest.main()
