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


"""Global markup and nonprofit donation pricing.

Only products of the markup vendor are priced through the global settings;
every other vendor's catalog price is already customer-facing and passes
through unchanged.
"""

import logging
import math
from typing import Any

from printpower.enums import MarkupMode
from printpower.enums import NonprofitShareMode
from pydantic import BaseModel

logger = logging.getLogger(__name__)

MARKUP_VENDOR = "sinalite"


class PricingBreakdown(BaseModel):
  """Per-unit price components in cents."""

  base_price_per_unit_cents: int
  markup_amount_cents: int = 0
  donation_per_unit_cents: int = 0
  gross_margin_per_unit_cents: int = 0
  final_price_per_unit_cents: int


def round_half_up(value: float) -> int:
  """Rounds to the nearest integer, halves away from zero for positives."""
  return int(math.floor(value + 0.5))


def compute_pricing(
    vendor: str, base_cost_cents: int, settings: Any
) -> PricingBreakdown:
  """Computes the markup and donation split for one unit.

  Args:
    vendor: The product's vendor key.
    base_cost_cents: The vendor's cost for one unit.
    settings: Pricing settings exposing the `markup_*` and `nonprofit_*`
      attributes of the `pricing_settings` table.

  Returns:
    The price breakdown. The donation never exceeds the markup and the margin
    is never negative.
  """
  if vendor != MARKUP_VENDOR:
    return PricingBreakdown(
        base_price_per_unit_cents=base_cost_cents,
        final_price_per_unit_cents=base_cost_cents,
    )

  if settings.markup_mode == MarkupMode.FIXED.value:
    markup = settings.markup_fixed_cents or 0
  else:
    markup = round_half_up(
        base_cost_cents * ((settings.markup_percent or 0) / 100)
    )

  if settings.nonprofit_share_mode == NonprofitShareMode.FIXED.value:
    donation = min(markup, settings.nonprofit_fixed_cents or 0)
  else:
    donation = round_half_up(
        markup * ((settings.nonprofit_percent_of_markup or 0) / 100)
    )

  margin = markup - donation
  if margin < 0:
    margin = 0
    donation = markup

  breakdown = PricingBreakdown(
      base_price_per_unit_cents=base_cost_cents,
      markup_amount_cents=markup,
      donation_per_unit_cents=donation,
      gross_margin_per_unit_cents=margin,
      final_price_per_unit_cents=base_cost_cents + markup,
  )
  logger.debug("Priced %s unit: %s", vendor, breakdown.model_dump())
  return breakdown
