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


"""PSRestful (PromoStandards) order submission and tracking."""

import logging
from typing import Any, Dict, Optional

from printpower.exceptions import FulfillmentError
from printpower.models import TrackingInfo
from printpower.models import VendorSubmission
from printpower.vendors import base

logger = logging.getLogger(__name__)


class PSRestfulAdapter(base.VendorAdapter):
  """Adapter for the PSRestful API (bearer key)."""

  key = "psrestful"

  def _headers(self) -> Dict[str, str]:
    if (
        not self.settings.psrestful_api_key
        or not self.settings.psrestful_api_base_url
    ):
      raise FulfillmentError("PSRestful API credentials not configured")
    return {"Authorization": f"Bearer {self.settings.psrestful_api_key}"}

  def _url(self, path: str) -> str:
    return f"{self.settings.psrestful_api_base_url.rstrip('/')}{path}"

  def build_payload(self, order: Dict[str, Any]) -> Dict[str, Any]:
    items = [
        {
            "productId": item.get("vendor_product_id")
            or item.get("product_id"),
            "sku": item.get("sku"),
            "quantity": item.get("quantity") or 1,
            "configuration": item.get("configuration") or {},
            "artwork": base.artwork_urls(item),
        }
        for item in order.get("items") or []
    ]
    first, last = base.split_name(order)
    return {
        "orderNumber": order.get("order_number"),
        "customerEmail": order.get("customer_email"),
        "items": items,
        "shipping": {
            "firstName": first,
            "lastName": last,
            "address1": base.address_field(order, "line1"),
            "address2": base.address_field(order, "line2"),
            "city": base.address_field(order, "city"),
            "state": base.address_field(order, "state"),
            "postalCode": base.address_field(order, "postal_code"),
            "country": base.address_field(order, "country", "US"),
            "phone": base.address_field(order, "phone"),
        },
    }

  async def submit_order(self, order: Dict[str, Any]) -> VendorSubmission:
    logger.info("Submitting order %s to PSRestful", order.get("order_number"))
    headers = self._headers()
    async with self.client() as client:
      response = await client.post(
          self._url("/orders"), json=self.build_payload(order), headers=headers
      )
    self.raise_for_status(response, "PSRestful order")

    data = response.json()
    vendor_order_id = data.get("orderId") or data.get("order_id")
    return VendorSubmission(
        vendor_order_id=str(vendor_order_id) if vendor_order_id else None,
        status="submitted",
        raw_response=data,
    )

  async def get_tracking_info(
      self, vendor_order_id: str
  ) -> Optional[TrackingInfo]:
    async with self.client() as client:
      response = await client.get(
          self._url(f"/orders/{vendor_order_id}/tracking"),
          headers=self._headers(),
      )
    if response.status_code >= 400:
      logger.error(
          "PSRestful tracking lookup for %s failed: %d",
          vendor_order_id,
          response.status_code,
      )
      return None

    data = response.json()
    if not data.get("trackingNumber"):
      return None
    return TrackingInfo(
        tracking_number=data.get("trackingNumber"),
        tracking_url=data.get("trackingUrl"),
        tracking_carrier=data.get("carrier"),
        shipping_status=(data.get("status") or "pending").lower(),
        shipped_at=data.get("shippedAt"),
    )
