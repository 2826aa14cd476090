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


"""Tests for the vendor adapters."""

import asyncio
import base64
import json

from absl.testing import absltest
import httpx
from printpower import vendors
from printpower.config import Settings
from printpower.config import SinaliteCredentials
from printpower.exceptions import FulfillmentError
from printpower.vendors import base
from printpower.vendors import scalablepress
from printpower.vendors.psrestful import PSRestfulAdapter
from printpower.vendors.scalablepress import ScalablePressAdapter
from printpower.vendors.sinalite import SinaliteAdapter

ORDER = {
    "id": "order-1",
    "order_number": "PPP-001001",
    "customer_email": "jane@example.com",
    "payment_mode": "test",
    "shipping_address": {
        "name": "Jane Q Doe",
        "line1": "1 Main St",
        "line2": "Apt 2",
        "city": "Springfield",
        "state": "IL",
        "postal_code": "62701",
        "country": "US",
    },
    "items": [{
        "product_id": "p-1",
        "vendor_product_id": "gildan-5000",
        "product_name": "Unisex Cotton T-Shirt",
        "quantity": 2,
        "configuration": {"color": "Black", "size": "M"},
        "artwork_url": "https://files.example.com/art.png",
    }],
}


def _settings(**overrides) -> Settings:
  values = {
      "sinalite_test": SinaliteCredentials(
          client_id="id-test",
          client_secret="secret-test",
          auth_url="https://auth.sinalite.test/oauth/token",
          audience="https://api.sinalite.test",
      ),
      "sinalite_api_url": "https://api.sinalite.test",
      "scalablepress_api_key": "sp-key",
      "scalablepress_api_base_url": "https://api.scalablepress.test/v2",
      "psrestful_api_key": "ps-key",
      "psrestful_api_base_url": "https://api.psrestful.test",
  }
  values.update(overrides)
  return Settings(**values)


class RecordingTransport:
  """Builds an httpx.MockTransport that records requests."""

  def __init__(self, responder):
    self.requests = []
    self._responder = responder
    self.transport = httpx.MockTransport(self._handle)

  def _handle(self, request: httpx.Request) -> httpx.Response:
    self.requests.append(request)
    return self._responder(request)


class HelpersTest(absltest.TestCase):

  def test_split_name(self):
    self.assertEqual(base.split_name(ORDER), ("Jane", "Q Doe"))
    self.assertEqual(base.split_name({"shipping_address": None}), ("", ""))
    self.assertEqual(
        base.split_name(
            {"shipping_address": {"first_name": "A", "last_name": "B"}}
        ),
        ("A", "B"),
    )

  def test_vendor_config_email_fallback(self):
    settings = _settings(
        scalablepress_vendor_email="sp@vendor.test",
        vendor_notification_email="ops@ppp.test",
    )
    self.assertEqual(
        base.get_vendor_config(settings, "scalablepress").email,
        "sp@vendor.test",
    )
    self.assertEqual(
        base.get_vendor_config(settings, "sinalite").email, "ops@ppp.test"
    )
    self.assertEqual(
        base.get_vendor_config(_settings(), "psrestful").email,
        base.DEFAULT_VENDOR_EMAIL,
    )
    self.assertIsNone(base.get_vendor_config(settings, "unknown"))

  def test_registry(self):
    registry = vendors.build_registry(_settings())
    self.assertCountEqual(
        registry.keys(), ["sinalite", "scalablepress", "psrestful"]
    )
    self.assertIsInstance(registry["sinalite"], SinaliteAdapter)


class SinaliteAdapterTest(absltest.TestCase):

  def test_submit_order(self):
    def respond(request):
      if request.url.path == "/oauth/token":
        return httpx.Response(200, json={"access_token": "tok"})
      return httpx.Response(200, json={"orderId": 98765})

    recorder = RecordingTransport(respond)
    adapter = SinaliteAdapter(_settings(), transport=recorder.transport)
    result = asyncio.run(adapter.submit_order(ORDER))

    self.assertEqual(result.vendor_order_id, "98765")
    self.assertEqual(result.status, "submitted")
    auth, order = recorder.requests
    self.assertEqual(json.loads(auth.content)["client_id"], "id-test")
    self.assertEqual(str(order.url), "https://api.sinalite.test/order/new")
    self.assertEqual(order.headers["Authorization"], "Bearer tok")
    payload = json.loads(order.content)
    self.assertEqual(payload["shippingInfo"]["ShipFName"], "Jane")
    self.assertEqual(payload["billingInfo"]["BillZip"], "62701")
    self.assertEqual(payload["notes"], "PPP Order #PPP-001001")
    self.assertEqual(
        payload["items"][0]["files"][0]["url"],
        "https://files.example.com/art.png",
    )

  def test_live_orders_need_live_credentials(self):
    adapter = SinaliteAdapter(
        _settings(), transport=RecordingTransport(None).transport
    )
    with self.assertRaisesRegex(FulfillmentError, "credentials"):
      asyncio.run(adapter.submit_order(dict(ORDER, payment_mode="live")))

  def test_vendor_rejection(self):
    def respond(request):
      if request.url.path == "/oauth/token":
        return httpx.Response(200, json={"access_token": "tok"})
      return httpx.Response(422, text="bad product")

    adapter = SinaliteAdapter(
        _settings(), transport=RecordingTransport(respond).transport
    )
    with self.assertRaisesRegex(FulfillmentError, "422"):
      asyncio.run(adapter.submit_order(ORDER))


class ScalablePressAdapterTest(absltest.TestCase):

  def test_submit_order(self):
    recorder = RecordingTransport(
        lambda request: httpx.Response(200, json={"orderId": "sp-1"})
    )
    adapter = ScalablePressAdapter(_settings(), transport=recorder.transport)
    result = asyncio.run(adapter.submit_order(ORDER))

    self.assertEqual(result.vendor_order_id, "sp-1")
    (request,) = recorder.requests
    self.assertEqual(
        str(request.url), "https://api.scalablepress.test/v2/orders"
    )
    expected_auth = base64.b64encode(b"sp-key:").decode()
    self.assertEqual(request.headers["Authorization"], f"Basic {expected_auth}")
    payload = json.loads(request.content)
    self.assertEqual(payload["orderToken"], "PPP-001001")
    self.assertEqual(payload["products"][0]["color"], "Black")
    self.assertEqual(payload["address"]["zip"], "62701")

  def test_missing_key(self):
    adapter = ScalablePressAdapter(
        _settings(scalablepress_api_key=None),
        transport=RecordingTransport(None).transport,
    )
    with self.assertRaises(FulfillmentError):
      asyncio.run(adapter.submit_order(ORDER))

  def test_tracking_info(self):
    body = {
        "status": "Shipped",
        "shipments": [{
            "trackingNumber": "1Z999",
            "trackingUrl": "https://track.test/1Z999",
            "carrier": "UPS",
            "shippedAt": "2024-05-01T10:00:00Z",
        }],
    }
    recorder = RecordingTransport(
        lambda request: httpx.Response(200, json=body)
    )
    adapter = ScalablePressAdapter(_settings(), transport=recorder.transport)
    tracking = asyncio.run(adapter.get_tracking_info("sp-1"))

    self.assertEqual(
        str(recorder.requests[0].url),
        "https://api.scalablepress.test/v2/order/sp-1",
    )
    self.assertEqual(tracking.tracking_number, "1Z999")
    self.assertEqual(tracking.tracking_carrier, "UPS")
    self.assertEqual(tracking.shipping_status, "shipped")

  def test_tracking_without_shipments(self):
    adapter = ScalablePressAdapter(
        _settings(),
        transport=RecordingTransport(
            lambda request: httpx.Response(200, json={"status": "pending"})
        ).transport,
    )
    self.assertIsNone(asyncio.run(adapter.get_tracking_info("sp-1")))

  def test_unknown_status_maps_to_pending(self):
    self.assertEqual(scalablepress.map_status("printing"), "pending")
    self.assertEqual(scalablepress.map_status(None), "pending")
    self.assertEqual(scalablepress.map_status("DELIVERED"), "delivered")


class PSRestfulAdapterTest(absltest.TestCase):

  def test_submit_order(self):
    recorder = RecordingTransport(
        lambda request: httpx.Response(201, json={"order_id": 55})
    )
    adapter = PSRestfulAdapter(_settings(), transport=recorder.transport)
    result = asyncio.run(adapter.submit_order(ORDER))

    self.assertEqual(result.vendor_order_id, "55")
    (request,) = recorder.requests
    self.assertEqual(str(request.url), "https://api.psrestful.test/orders")
    self.assertEqual(request.headers["Authorization"], "Bearer ps-key")
    payload = json.loads(request.content)
    self.assertEqual(payload["orderNumber"], "PPP-001001")
    self.assertEqual(payload["shipping"]["lastName"], "Q Doe")

  def test_requires_base_url_and_key(self):
    adapter = PSRestfulAdapter(
        _settings(psrestful_api_base_url=None),
        transport=RecordingTransport(None).transport,
    )
    with self.assertRaisesRegex(FulfillmentError, "not configured"):
      asyncio.run(adapter.submit_order(ORDER))

  def test_tracking_error_returns_none(self):
    adapter = PSRestfulAdapter(
        _settings(),
        transport=RecordingTransport(
            lambda request: httpx.Response(500)
        ).transport,
    )
    self.assertIsNone(asyncio.run(adapter.get_tracking_info("55")))


if __name__ == "__main__":
  absltest.main()
