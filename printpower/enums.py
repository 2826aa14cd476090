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


"""Enumerations for the Print Power Purpose server.

This module defines the enums used throughout the server application to
represent order state, vendor fulfillment state and pricing modes.
"""

import enum


class OrderStatus(str, enum.Enum):
  CREATED = "created"
  COMPLETED = "completed"


class VendorStatus(str, enum.Enum):
  SUBMITTED = "submitted"
  PENDING_MANUAL = "pending_manual"
  EMAILED_VENDOR = "emailed_vendor"
  EXPORTED_MANUAL = "exported_manual"
  ERROR = "error"
  EMAIL_ERROR = "email_error"


class FulfillmentMode(str, enum.Enum):
  AUTO_API = "AUTO_API"
  EMAIL_VENDOR = "EMAIL_VENDOR"
  MANUAL_EXPORT = "MANUAL_EXPORT"


class PaymentMode(str, enum.Enum):
  TEST = "test"
  LIVE = "live"


class MarkupMode(str, enum.Enum):
  FIXED = "fixed"
  PERCENT = "percent"


class NonprofitShareMode(str, enum.Enum):
  FIXED = "fixed"
  PERCENT_OF_MARKUP = "percent_of_markup"


class ShippingStatus(str, enum.Enum):
  PENDING = "pending"
  SHIPPED = "shipped"
  IN_TRANSIT = "in_transit"
  DELIVERED = "delivered"
