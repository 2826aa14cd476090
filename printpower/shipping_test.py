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


"""Tests for the category based shipping tiers."""

from absl.testing import absltest
from printpower import shipping


class ShippingTest(absltest.TestCase):

  def test_tier_by_keyword(self):
    self.assertEqual(
        shipping.get_shipping_tier("Premium Business Cards", "Business Cards"),
        shipping.LOW_TIER_CENTS,
    )
    self.assertEqual(
        shipping.get_shipping_tier("Coroplast Yard Sign", "Signs"),
        shipping.MEDIUM_TIER_CENTS,
    )
    self.assertEqual(
        shipping.get_shipping_tier("Retractable Banner Stand"),
        shipping.HIGH_TIER_CENTS,
    )

  def test_category_is_searched(self):
    self.assertEqual(
        shipping.get_shipping_tier("Custom Print", "Large Format"),
        shipping.HIGH_TIER_CENTS,
    )

  def test_unknown_product_ships_at_medium_tier(self):
    self.assertEqual(
        shipping.get_shipping_tier("Mystery Item", None),
        shipping.MEDIUM_TIER_CENTS,
    )

  def test_order_ships_at_highest_tier(self):
    items = [
        {"name": "Flyer", "category": "Flyers"},
        {"name": "Aluminum Sign", "category": "Signs"},
        {"name": "Poster", "category": None},
    ]
    self.assertEqual(
        shipping.calculate_order_shipping(items), shipping.HIGH_TIER_CENTS
    )

  def test_tiers_are_not_summed(self):
    items = [{"name": "Flyer", "category": None}] * 3
    self.assertEqual(
        shipping.calculate_order_shipping(items), shipping.LOW_TIER_CENTS
    )

  def test_empty_order_ships_free(self):
    self.assertEqual(shipping.calculate_order_shipping([]), 0)

  def test_labels(self):
    self.assertEqual(
        shipping.get_shipping_tier_label(shipping.HIGH_TIER_CENTS),
        "Heavy Item Shipping",
    )
    self.assertEqual(
        shipping.get_shipping_tier_label(shipping.LOW_TIER_CENTS),
        "Standard Shipping",
    )


if __name__ == "__main__":
  absltest.main()
