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


"""Category based shipping tiers.

The order ships at the highest tier among its items; tiers are not summed.
"""

from typing import Iterable, Mapping, Optional

LOW_TIER_CENTS = 495
MEDIUM_TIER_CENTS = 995
HIGH_TIER_CENTS = 1495

# Checked highest tier first; the first keyword hit wins.
_TIER_KEYWORDS = (
    (
        HIGH_TIER_CENTS,
        (
            "aluminum", "metal", "a-frame", "h-stand", "large format",
            "pull up", "retractable", "heavy",
        ),
    ),
    (
        MEDIUM_TIER_CENTS,
        (
            "coroplast", "photo panel", "foam board", "poster",
            "presentation folder", "canvas", "calendar", "display board",
            "vinyl", "banner", "cling", "window", "floor graphic", "decal",
            "magnet", "yard sign",
        ),
    ),
    (
        LOW_TIER_CENTS,
        (
            "brochure", "flyer", "sticker", "label", "bookmark",
            "business card", "postcard", "greeting card", "invitation",
            "notepad", "envelope", "letterhead", "door hanger",
            "digital sheet", "ncr form", "booklet", "promotional", "promo",
        ),
    ),
)


def get_shipping_tier(product_name: str, category: Optional[str] = None) -> int:
  """Returns the shipping tier in cents for a single product."""
  search_text = f"{product_name or ''} {category or ''}".lower()
  for tier_cents, keywords in _TIER_KEYWORDS:
    if any(keyword in search_text for keyword in keywords):
      return tier_cents
  # Unknown categories ship at the medium tier
  return MEDIUM_TIER_CENTS


def calculate_order_shipping(
    items: Iterable[Mapping[str, Optional[str]]],
) -> int:
  """Calculates the shipping total for `{"name", "category"}` items."""
  items = list(items)
  if not items:
    return 0
  return max(
      LOW_TIER_CENTS,
      *(get_shipping_tier(i.get("name"), i.get("category")) for i in items),
  )


def get_shipping_tier_label(shipping_cents: int) -> str:
  if shipping_cents == HIGH_TIER_CENTS:
    return "Heavy Item Shipping"
  if shipping_cents in (LOW_TIER_CENTS, MEDIUM_TIER_CENTS):
    return "Standard Shipping"
  return "Shipping"
