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


"""Vendor fulfillment dispatch for paid orders.

Fulfillment is best-effort: whatever happens while handing an order to a
vendor is recorded on the order's `vendor_status` and never raised to the
caller, so a vendor outage cannot fail the payment webhook.
"""

import logging
from typing import Any, Dict, Optional

from printpower import db
from printpower import notifications
from printpower.config import Settings
from printpower.enums import FulfillmentMode
from printpower.enums import ShippingStatus
from printpower.enums import VendorStatus
from printpower.exceptions import InvalidRequestError
from printpower.exceptions import ResourceNotFoundError
from printpower.models import TrackingInfo
from printpower.models import VendorOrdersPage
from printpower.notifications import ResendMailer
from printpower.vendors import base as vendor_base
from printpower.vendors.base import VendorAdapter
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_SHIPPED_STATUSES = (
    ShippingStatus.SHIPPED.value,
    ShippingStatus.IN_TRANSIT.value,
)
_UNSHIPPED_STATUSES = (None, "", ShippingStatus.PENDING.value)


def resolve_mode(mode: Optional[str]) -> FulfillmentMode:
  """Parses a configured fulfillment mode, defaulting to AUTO_API."""
  try:
    return FulfillmentMode((mode or "").upper())
  except ValueError:
    logger.warning("Unknown fulfillment mode %r, using AUTO_API", mode)
    return FulfillmentMode.AUTO_API


def resolve_vendor_key(order: Dict[str, Any]) -> str:
  if order.get("vendor_key"):
    return order["vendor_key"]
  items = order.get("items") or []
  if items and items[0].get("vendor"):
    return items[0]["vendor"]
  return vendor_base.DEFAULT_VENDOR_KEY


class VendorFulfillmentDispatcher:
  """Routes finalized orders to the configured fulfillment strategy."""

  def __init__(
      self,
      session: AsyncSession,
      settings: Settings,
      registry: Dict[str, VendorAdapter],
      mailer: ResendMailer,
      mode: Optional[str] = None,
  ):
    self.session = session
    self.settings = settings
    self.registry = registry
    self.mailer = mailer
    self.mode = resolve_mode(
        mode if mode is not None else settings.fulfillment_mode
    )

  async def dispatch(self, order: Dict[str, Any]) -> str:
    """Hands an order to its vendor and returns the recorded vendor status."""
    order_id = order["id"]
    try:
      vendor_key = resolve_vendor_key(order)
      logger.info(
          "Dispatching order %s to %s via %s",
          order.get("order_number"),
          vendor_key,
          self.mode.value,
      )
      if self.mode == FulfillmentMode.MANUAL_EXPORT:
        status = VendorStatus.PENDING_MANUAL
        await self._update_vendor_status(order_id, status)
      elif self.mode == FulfillmentMode.EMAIL_VENDOR:
        status = await self._email_vendor(order, vendor_key)
      else:
        status = await self._submit_to_api(order, vendor_key)
      return status.value
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.exception("Fulfillment dispatch failed for order %s", order_id)
      try:
        await self.session.rollback()
        await self._update_vendor_status(
            order_id, VendorStatus.ERROR, error_message=str(e)
        )
      except Exception:  # pylint: disable=broad-exception-caught
        logger.exception("Could not record fulfillment error on %s", order_id)
      return VendorStatus.ERROR.value

  async def _submit_to_api(
      self, order: Dict[str, Any], vendor_key: str
  ) -> VendorStatus:
    adapter = self.registry.get(vendor_key)
    if adapter is None:
      await self._update_vendor_status(
          order["id"],
          VendorStatus.ERROR,
          error_message=f"No adapter registered for vendor '{vendor_key}'",
      )
      return VendorStatus.ERROR

    try:
      result = await adapter.submit_order(order)
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.error(
          "Vendor %s rejected order %s: %s",
          vendor_key,
          order.get("order_number"),
          e,
      )
      await self._update_vendor_status(
          order["id"], VendorStatus.ERROR, error_message=str(e)
      )
      return VendorStatus.ERROR

    try:
      status = VendorStatus(result.status or VendorStatus.SUBMITTED.value)
    except ValueError:
      status = VendorStatus.SUBMITTED
    await self._update_vendor_status(
        order["id"], status, vendor_order_id=result.vendor_order_id
    )
    return status

  async def _email_vendor(
      self, order: Dict[str, Any], vendor_key: str
  ) -> VendorStatus:
    config = vendor_base.get_vendor_config(self.settings, vendor_key)
    vendor_name = config.name if config else vendor_key
    recipient = (
        config.email
        if config
        else vendor_base.get_default_vendor_email(self.settings)
    )
    html = notifications.render_vendor_order_email(order, vendor_name)
    try:
      await self.mailer.send(
          [recipient],
          f"New Order {order.get('order_number')} - {vendor_name}",
          html,
      )
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.error("Vendor email for order %s failed: %s", order["id"], e)
      await self._update_vendor_status(
          order["id"], VendorStatus.EMAIL_ERROR, error_message=str(e)
      )
      return VendorStatus.EMAIL_ERROR

    await self._update_vendor_status(
        order["id"], VendorStatus.EMAILED_VENDOR, exported=True
    )
    return VendorStatus.EMAILED_VENDOR

  async def _update_vendor_status(
      self,
      order_id: str,
      status: VendorStatus,
      vendor_order_id: Optional[str] = None,
      error_message: Optional[str] = None,
      exported: bool = False,
  ) -> None:
    values: Dict[str, Any] = {
        "vendor_status": status.value,
        "vendor_error_message": error_message,
    }
    if vendor_order_id:
      values["vendor_order_id"] = vendor_order_id
    if exported:
      values["vendor_exported_at"] = db.now_iso()
    await db.update_order(self.session, order_id, values)
    await self.session.commit()

  # --- Operator and tracking operations ---

  async def list_vendor_orders(
      self,
      vendor_status: Optional[str] = None,
      vendor_key: Optional[str] = None,
      page: int = 1,
      page_size: int = 20,
  ) -> VendorOrdersPage:
    """Lists orders for the vendor fulfillment queue."""
    orders, total = await db.list_orders(
        self.session,
        vendor_status=vendor_status,
        vendor_key=vendor_key,
        page=page,
        page_size=page_size,
    )
    return VendorOrdersPage(
        orders=[db.order_to_dict(o) for o in orders],
        total_count=total,
        page=page,
        page_size=page_size,
    )

  async def mark_exported(self, order_id: str) -> Dict[str, Any]:
    """Records that an operator placed the order with the vendor by hand."""
    order = await self._get_order(order_id)
    order.vendor_status = VendorStatus.EXPORTED_MANUAL.value
    order.vendor_exported_at = db.now_iso()
    await self.session.commit()
    logger.info("Order %s marked as manually exported", order.order_number)
    return db.order_to_dict(order)

  async def update_tracking(
      self, order_id: str, tracking: TrackingInfo
  ) -> Dict[str, Any]:
    """Applies operator-entered tracking fields to an order.

    Raises:
      InvalidRequestError: If no tracking field was provided.
      ResourceNotFoundError: If the order does not exist.
    """
    if not tracking.model_dump(exclude_none=True):
      raise InvalidRequestError(
          "No tracking fields provided", status_code=400
      )
    order = await self._get_order(order_id)
    self._apply_tracking(order, tracking)
    await self.session.commit()
    order_data = db.order_to_dict(order)
    if tracking.tracking_number or tracking.shipping_status:
      await self._notify_customer_shipping(order_data)
    return order_data

  async def update_tracking_from_vendor(
      self, order_id: str
  ) -> Optional[TrackingInfo]:
    """Pulls tracking from the order's vendor and merges it onto the order.

    Orders without a vendor order id, and vendors without tracking support,
    are left untouched.

    Returns:
      The tracking reported by the vendor, or None when nothing was merged.
    """
    order = await self._get_order(order_id)
    if not order.vendor_order_id:
      return None
    adapter = self.registry.get(order.vendor_key or "")
    get_tracking_info = getattr(adapter, "get_tracking_info", None)
    if get_tracking_info is None:
      return None

    try:
      tracking = await get_tracking_info(order.vendor_order_id)
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.error("Tracking lookup for order %s failed: %s", order_id, e)
      return None
    if tracking is None:
      return None

    self._apply_tracking(order, tracking)
    await self.session.commit()
    return tracking

  async def _notify_customer_shipping(self, order: Dict[str, Any]) -> None:
    if not order.get("customer_email"):
      return
    try:
      await self.mailer.send(
          [order["customer_email"]],
          f"Shipping update for order {order.get('order_number')}",
          notifications.render_shipping_notification(order),
      )
    except Exception as e:  # pylint: disable=broad-exception-caught
      logger.error(
          "Shipping notification for order %s failed: %s", order["id"], e
      )

  async def _get_order(self, order_id: str) -> db.Order:
    order = await db.get_order(self.session, order_id)
    if order is None:
      raise ResourceNotFoundError("Order not found")
    return order

  @staticmethod
  def _apply_tracking(order: db.Order, tracking: TrackingInfo) -> None:
    # shipped_at is stamped once, on the first move out of an unshipped state
    first_shipment = (
        tracking.shipping_status in _SHIPPED_STATUSES
        and order.shipping_status in _UNSHIPPED_STATUSES
        and not order.shipped_at
    )
    for field in (
        "tracking_number",
        "tracking_url",
        "tracking_carrier",
        "shipping_status",
    ):
      value = getattr(tracking, field)
      if value is not None:
        setattr(order, field, value)
    if first_shipment:
      order.shipped_at = tracking.shipped_at or db.now_iso()
