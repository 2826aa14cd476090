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


"""Request and response models for the Print Power Purpose server."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

UUID_PATTERN = (
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-"
    r"[0-9a-fA-F]{12}$"
)

MIN_QUANTITY = 1
MAX_QUANTITY = 10000
MAX_CART_ITEMS = 50
MAX_DONATION_CENTS = 1_000_000


class CartItem(BaseModel):
  """A single client-supplied cart line."""

  model_config = ConfigDict(populate_by_name=True)

  id: str = Field(pattern=UUID_PATTERN)
  quantity: int = Field(strict=True, ge=MIN_QUANTITY, le=MAX_QUANTITY)
  price_cents: Optional[int] = Field(
      default=None, alias="priceCents", strict=True, ge=0
  )
  configuration: Optional[Dict[str, Any]] = None
  artwork_url: Optional[str] = Field(default=None, alias="artworkUrl")


class CheckoutResult(BaseModel):
  """Response of a successful checkout-session request."""

  model_config = ConfigDict(populate_by_name=True)

  url: str
  order_id: str = Field(alias="orderId")
  order_number: str = Field(alias="orderNumber")
  tax_cents: int = Field(alias="taxCents")
  total_cents: int = Field(alias="totalCents")


class VendorSubmission(BaseModel):
  """Result of submitting an order to a vendor API."""

  vendor_order_id: Optional[str] = None
  status: str = "submitted"
  raw_response: Optional[Any] = None


class TrackingInfo(BaseModel):
  """Shipping progress reported by a vendor or entered by an operator."""

  tracking_number: Optional[str] = None
  tracking_url: Optional[str] = None
  tracking_carrier: Optional[str] = None
  shipping_status: Optional[str] = None
  shipped_at: Optional[str] = None


class VendorOrdersPage(BaseModel):
  """A page of orders for the vendor fulfillment admin view."""

  model_config = ConfigDict(populate_by_name=True)

  orders: List[Dict[str, Any]]
  total_count: int = Field(alias="totalCount")
  page: int
  page_size: int = Field(alias="pageSize")


class TrackingUpdateRequest(BaseModel):
  """Operator-entered tracking fields; omitted fields are left unchanged."""

  tracking_number: Optional[str] = None
  tracking_url: Optional[str] = None
  tracking_carrier: Optional[str] = None
  shipping_status: Optional[
      Literal["pending", "shipped", "in_transit", "delivered"]
  ] = None

  def to_tracking_info(self) -> TrackingInfo:
    return TrackingInfo(**self.model_dump())
