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


"""Admin routes for order lookup and the vendor-order queue."""

from typing import Any, Optional

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from fastapi import Path
from fastapi import Query
from printpower import dependencies
from printpower.models import TrackingUpdateRequest
from printpower.models import VendorOrdersPage
from printpower.services.checkout_service import CheckoutService
from printpower.services.fulfillment_service import VendorFulfillmentDispatcher

router = APIRouter()


@router.get(
    "/orders/{id}",
    response_model=dict[str, Any],
    operation_id="get_order",
    dependencies=[Depends(dependencies.verify_admin_secret)],
)
async def get_order(
    order_id: str = Path(..., alias="id"),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> dict[str, Any]:
  """Get an order by ID."""
  return await checkout_service.get_order(order_id)


@router.get(
    "/admin/vendor-orders",
    response_model=VendorOrdersPage,
    operation_id="list_vendor_orders",
    dependencies=[Depends(dependencies.verify_admin_secret)],
)
async def list_vendor_orders(
    status: Optional[str] = Query(None),
    vendor: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    dispatcher: VendorFulfillmentDispatcher = Depends(
        dependencies.get_fulfillment_dispatcher
    ),
) -> VendorOrdersPage:
  """List orders for the vendor fulfillment queue."""
  return await dispatcher.list_vendor_orders(
      vendor_status=status, vendor_key=vendor, page=page, page_size=page_size
  )


@router.post(
    "/admin/vendor-orders/{id}/mark-exported",
    response_model=dict[str, Any],
    operation_id="mark_vendor_order_exported",
    dependencies=[Depends(dependencies.verify_admin_secret)],
)
async def mark_exported(
    order_id: str = Path(..., alias="id"),
    dispatcher: VendorFulfillmentDispatcher = Depends(
        dependencies.get_fulfillment_dispatcher
    ),
) -> dict[str, Any]:
  """Mark an order as manually placed with its vendor."""
  return await dispatcher.mark_exported(order_id)


@router.post(
    "/admin/orders/{id}/tracking",
    response_model=dict[str, Any],
    operation_id="update_order_tracking",
    dependencies=[Depends(dependencies.verify_admin_secret)],
)
async def update_tracking(
    order_id: str = Path(..., alias="id"),
    tracking: TrackingUpdateRequest = Body(...),
    dispatcher: VendorFulfillmentDispatcher = Depends(
        dependencies.get_fulfillment_dispatcher
    ),
) -> dict[str, Any]:
  """Update the tracking details of an order."""
  return await dispatcher.update_tracking(
      order_id, tracking.to_tracking_info()
  )


@router.post(
    "/admin/orders/{id}/refresh-tracking",
    response_model=dict[str, Any],
    operation_id="refresh_order_tracking",
    dependencies=[Depends(dependencies.verify_admin_secret)],
)
async def refresh_tracking(
    order_id: str = Path(..., alias="id"),
    dispatcher: VendorFulfillmentDispatcher = Depends(
        dependencies.get_fulfillment_dispatcher
    ),
) -> dict[str, Any]:
  """Pull the latest tracking details from the order's vendor."""
  tracking = await dispatcher.update_tracking_from_vendor(order_id)
  return {
      "updated": tracking is not None,
      "tracking": tracking.model_dump() if tracking else None,
  }
