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


"""SinaLite order submission.

SinaLite authenticates with OAuth client credentials, one pair per payment
mode, so test orders never reach the live print queue.
"""

import logging
from typing import Any, Dict

from printpower.exceptions import FulfillmentError
from printpower.models import VendorSubmission
from printpower.vendors import base

logger = logging.getLogger(__name__)


class SinaliteAdapter(base.VendorAdapter):
  """Adapter for the SinaLite print API."""

  key = "sinalite"

  def build_payload(self, order: Dict[str, Any]) -> Dict[str, Any]:
    # TODO: Map options to SinaLite option IDs once the order API mapping
    # is confirmed with the vendor.
    items = [
        {
            "productId": item.get("vendor_product_id")
            or item.get("product_id"),
            "options": item.get("configuration") or {},
            "files": [
                {"type": "artwork", "url": url}
                for url in base.artwork_urls(item)
            ],
        }
        for item in order.get("items") or []
    ]

    first, last = base.split_name(order)
    email = order.get("customer_email") or ""
    shipping = {
        "ShipFName": first,
        "ShipLName": last,
        "ShipEmail": email,
        "ShipAddr": base.address_field(order, "line1"),
        "ShipAddr2": base.address_field(order, "line2"),
        "ShipCity": base.address_field(order, "city"),
        "ShipState": base.address_field(order, "state"),
        "ShipZip": base.address_field(order, "postal_code"),
        "ShipCountry": base.address_field(order, "country", "US"),
        "ShipPhone": base.address_field(order, "phone"),
        "ShipMethod": "Standard",
    }
    # Billing mirrors shipping; the checkout does not collect a separate
    # billing address.
    billing = {
        "BillFName": first,
        "BillLName": last,
        "BillEmail": email,
        "BillAddr": shipping["ShipAddr"],
        "BillAddr2": shipping["ShipAddr2"],
        "BillCity": shipping["ShipCity"],
        "BillState": shipping["ShipState"],
        "BillZip": shipping["ShipZip"],
        "BillCountry": shipping["ShipCountry"],
        "BillPhone": shipping["ShipPhone"],
    }
    return {
        "items": items,
        "shippingInfo": shipping,
        "billingInfo": billing,
        "notes": f"PPP Order #{order.get('order_number')}",
    }

  async def _access_token(self, client, mode: str) -> str:
    credentials = self.settings.sinalite_credentials(mode)
    if not credentials.is_complete():
      raise FulfillmentError("Missing SinaLite credentials")

    response = await client.post(
        credentials.auth_url,
        json={
            "client_id": credentials.client_id,
            "client_secret": credentials.client_secret,
            "audience": credentials.audience,
            "grant_type": "client_credentials",
        },
    )
    if response.status_code >= 400:
      raise FulfillmentError(
          f"SinaLite authentication failed: {response.status_code}"
      )
    token = response.json().get("access_token")
    if not token:
      raise FulfillmentError("No access token received from SinaLite")
    return token

  async def submit_order(self, order: Dict[str, Any]) -> VendorSubmission:
    mode = order.get("payment_mode") or "test"
    logger.info(
        "Submitting order %s to SinaLite (%s)", order.get("order_number"), mode
    )
    payload = self.build_payload(order)

    async with self.client() as client:
      token = await self._access_token(client, mode)
      response = await client.post(
          f"{self.settings.sinalite_api_url.rstrip('/')}/order/new",
          json=payload,
          headers={"Authorization": f"Bearer {token}"},
      )
    self.raise_for_status(response, "SinaLite order submission")

    data = response.json()
    vendor_order_id = data.get("orderId") or data.get("id")
    return VendorSubmission(
        vendor_order_id=str(vendor_order_id) if vendor_order_id else None,
        status="submitted",
        raw_response=data,
    )
