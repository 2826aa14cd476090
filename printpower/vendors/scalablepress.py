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


"""Scalable Press apparel order submission and tracking."""

import logging
from typing import Any, Dict, Optional

from printpower.exceptions import FulfillmentError
from printpower.models import TrackingInfo
from printpower.models import VendorSubmission
from printpower.vendors import base

logger = logging.getLogger(__name__)

_STATUS_MAP = {
    "pending": "pending",
    "shipped": "shipped",
    "in_transit": "in_transit",
    "delivered": "delivered",
}


def map_status(vendor_status: Optional[str]) -> str:
  return _STATUS_MAP.get((vendor_status or "").lower(), "pending")


class ScalablePressAdapter(base.VendorAdapter):
  """Adapter for the Scalable Press v2 API (HTTP basic auth, key as user)."""

  key = "scalablepress"

  def _auth(self):
    if not self.settings.scalablepress_api_key:
      raise FulfillmentError("SCALABLEPRESS_API_KEY not configured")
    return (self.settings.scalablepress_api_key, "")

  def _url(self, path: str) -> str:
    return f"{self.settings.scalablepress_api_base_url.rstrip('/')}{path}"

  def build_payload(self, order: Dict[str, Any]) -> Dict[str, Any]:
    products = []
    for item in order.get("items") or []:
      configuration = item.get("configuration") or {}
      urls = base.artwork_urls(item)
      products.append({
          "type": item.get("vendor_product_id") or item.get("product_id"),
          "quantity": item.get("quantity") or 1,
          "color": configuration.get("color"),
          "size": configuration.get("size"),
          "design": {"type": "url", "url": urls[0] if urls else ""},
      })

    first, last = base.split_name(order)
    return {
        "orderToken": order.get("order_number"),
        "products": products,
        "address": {
            "name": f"{first} {last}".strip(),
            "address1": base.address_field(order, "line1"),
            "address2": base.address_field(order, "line2"),
            "city": base.address_field(order, "city"),
            "state": base.address_field(order, "state"),
            "zip": base.address_field(order, "postal_code"),
            "country": base.address_field(order, "country", "US"),
            "email": order.get("customer_email") or "",
            "phone": base.address_field(order, "phone"),
        },
    }

  async def submit_order(self, order: Dict[str, Any]) -> VendorSubmission:
    logger.info(
        "Submitting order %s to Scalable Press", order.get("order_number")
    )
    auth = self._auth()
    async with self.client() as client:
      response = await client.post(
          self._url("/orders"), json=self.build_payload(order), auth=auth
      )
    self.raise_for_status(response, "Scalable Press order")

    data = response.json()
    vendor_order_id = data.get("orderId") or data.get("orderToken")
    return VendorSubmission(
        vendor_order_id=str(vendor_order_id) if vendor_order_id else None,
        status="submitted",
        raw_response=data,
    )

  async def get_tracking_info(
      self, vendor_order_id: str
  ) -> Optional[TrackingInfo]:
    """Reads the first shipment of an order, or None when not shipped."""
    async with self.client() as client:
      response = await client.get(
          self._url(f"/order/{vendor_order_id}"), auth=self._auth()
      )
    if response.status_code >= 400:
      logger.error(
          "Scalable Press tracking lookup for %s failed: %d",
          vendor_order_id,
          response.status_code,
      )
      return None

    data = response.json()
    shipments = data.get("shipments") or []
    if not shipments:
      return None
    shipment = shipments[0]
    return TrackingInfo(
        tracking_number=shipment.get("trackingNumber"),
        tracking_url=shipment.get("trackingUrl"),
        tracking_carrier=shipment.get("carrier"),
        shipping_status=map_status(data.get("status")),
        shipped_at=shipment.get("shippedAt"),
    )
