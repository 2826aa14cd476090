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


"""Validation of client carts against the authoritative catalog.

Nothing a client sends is trusted: items are shape-checked, every product is
re-read from the database, apparel stock is checked against the synced
availability map and client prices are checked against a floor derived from
the vendor cost.
"""

import logging
from typing import Any, Dict, List, Optional

from printpower import db
from printpower.exceptions import ColorOutOfStockError
from printpower.exceptions import InsufficientStockError
from printpower.exceptions import InvalidRequestError
from printpower.exceptions import PriceTamperingError
from printpower.exceptions import ProductUnavailableError
from printpower.exceptions import SizeOutOfStockError
from printpower.models import CartItem
from printpower.models import MAX_CART_ITEMS
import pydantic
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

STOCK_CHECKED_VENDOR = "scalablepress"
MIN_PRICE_FLOOR_CENTS = 100
PRICE_FLOOR_RATIO = 0.5


def parse_cart(cart: Any) -> List[CartItem]:
  """Checks the cart structure and returns the parsed items.

  Args:
    cart: The client-supplied cart, expected as `{"items": [...]}`.

  Returns:
    The validated cart items in order.

  Raises:
    InvalidRequestError: If the cart is empty, too large or an item is
      malformed.
  """
  if not isinstance(cart, dict):
    raise InvalidRequestError("Cart is empty")
  items = cart.get("items")
  if not isinstance(items, list) or not items:
    raise InvalidRequestError("Cart is empty")
  if len(items) > MAX_CART_ITEMS:
    raise InvalidRequestError(
        f"Cart cannot contain more than {MAX_CART_ITEMS} items"
    )

  parsed = []
  for position, raw_item in enumerate(items, start=1):
    if not isinstance(raw_item, dict):
      raise InvalidRequestError(f"Invalid cart item at position {position}")
    try:
      parsed.append(CartItem.model_validate(raw_item))
    except pydantic.ValidationError as e:
      error = e.errors()[0]
      field = ".".join(str(part) for part in error["loc"])
      raise InvalidRequestError(
          f"Invalid cart item at position {position}: {field} {error['msg']}"
      ) from e
  return parsed


def _lookup_ci(mapping: Dict[str, Any], key: str) -> Optional[Any]:
  if key in mapping:
    return mapping[key]
  lowered = key.lower()
  for candidate, value in mapping.items():
    if str(candidate).lower() == lowered:
      return value
  return None


def check_stock(product: db.Product, item: CartItem) -> None:
  """Rejects apparel selections that are out of stock.

  Only products of the stock-checked vendor with a color configured are
  checked; a color with every size at zero is rejected even without a size.
  Missing availability data never blocks checkout.
  """
  if product.vendor != STOCK_CHECKED_VENDOR:
    return
  configuration = item.configuration or {}
  color = configuration.get("color")
  size = configuration.get("size")
  if not color:
    return

  availability = (product.pricing_data or {}).get("availability")
  if not isinstance(availability, dict):
    return
  sizes = _lookup_ci(availability, str(color))
  if not isinstance(sizes, dict) or not sizes:
    return

  if all((qty or 0) <= 0 for qty in sizes.values()):
    raise ColorOutOfStockError(f'"{product.name}" in {color} is out of stock')

  if not size:
    return
  stock = _lookup_ci(sizes, str(size))
  if stock is None:
    return
  if stock <= 0:
    raise SizeOutOfStockError(
        f'"{product.name}" in {color}/{size} is out of stock'
    )
  if item.quantity > stock:
    raise InsufficientStockError(
        f'Only {stock} of "{product.name}" in {color}/{size} available'
    )


def check_price_floor(product: db.Product, item: CartItem) -> None:
  """Rejects client prices below half the vendor cost (minimum $1.00)."""
  if item.price_cents is None:
    return
  floor = max(MIN_PRICE_FLOOR_CENTS, product.base_cost_cents or 0)
  if item.price_cents < floor * PRICE_FLOOR_RATIO:
    logger.warning(
        "Rejected price %d for product %s (base %s)",
        item.price_cents,
        product.id,
        product.base_cost_cents,
    )
    raise PriceTamperingError(f'Invalid price for "{product.name}"')


class CartValidator:
  """Validates cart items against the product catalog."""

  def __init__(self, session: AsyncSession):
    self.session = session

  async def validate_item(self, item: CartItem) -> db.Product:
    """Validates one parsed item and returns its product row.

    Raises:
      ProductUnavailableError: If the product is unknown or inactive.
      ColorOutOfStockError: If no size of the selected color is in stock.
      SizeOutOfStockError: If the selected size is out of stock.
      InsufficientStockError: If fewer units than requested are in stock.
      PriceTamperingError: If the client price is below the floor.
    """
    product = await db.get_product(self.session, item.id)
    if product is None:
      raise ProductUnavailableError(f"Product not found: {item.id}")
    if not product.is_active:
      raise ProductUnavailableError(
          f'"{product.name}" is no longer available'
      )
    check_stock(product, item)
    check_price_floor(product, item)
    return product
