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


"""Custom exceptions for the Print Power Purpose server."""


class PppError(Exception):
  """Base class for all Print Power Purpose exceptions."""

  def __init__(
      self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500
  ):
    self.message = message
    self.code = code
    self.status_code = status_code
    super().__init__(self.message)


class ResourceNotFoundError(PppError):
  """Raised when a requested resource is not found."""

  def __init__(self, message: str):
    super().__init__(message, code="RESOURCE_NOT_FOUND", status_code=404)


class InvalidRequestError(PppError):
  """Raised when the request is malformed or out of bounds.

  Checkout rejects every request failure with a 500 so the storefront can
  display the message as-is; admin endpoints pass a 400 instead.
  """

  def __init__(self, message: str, status_code: int = 500):
    super().__init__(message, code="INVALID_REQUEST", status_code=status_code)


class RateLimitedError(PppError):
  """Raised when a client exceeds the checkout attempt window."""

  def __init__(self, message: str = "Too many checkout attempts"):
    super().__init__(message, code="RATE_LIMITED", status_code=429)


class ProductUnavailableError(PppError):
  """Raised when a cart item references a missing or inactive product."""

  def __init__(self, message: str):
    super().__init__(message, code="PRODUCT_UNAVAILABLE")


class ColorOutOfStockError(PppError):
  """Raised when every size of the selected color is out of stock."""

  def __init__(self, message: str):
    super().__init__(message, code="COLOR_OUT_OF_STOCK")


class SizeOutOfStockError(PppError):
  """Raised when the selected size of a color is out of stock."""

  def __init__(self, message: str):
    super().__init__(message, code="SIZE_OUT_OF_STOCK")


class InsufficientStockError(PppError):
  """Raised when the requested quantity exceeds the available stock."""

  def __init__(self, message: str):
    super().__init__(message, code="INSUFFICIENT_STOCK")


class PriceTamperingError(PppError):
  """Raised when a client-supplied price falls below the allowed floor."""

  def __init__(self, message: str):
    super().__init__(message, code="PRICE_TAMPERING")


class ConfigurationError(PppError):
  """Raised when the operator configuration is incomplete."""

  def __init__(self, message: str):
    super().__init__(message, code="CONFIGURATION_ERROR")


class ExternalServiceError(PppError):
  """Raised when the database or the payment provider call fails."""

  def __init__(self, message: str):
    super().__init__(message, code="EXTERNAL_SERVICE_ERROR")


class WebhookSignatureError(PppError):
  """Raised when a webhook cannot be authenticated."""

  def __init__(self, message: str):
    super().__init__(message, code="INVALID_SIGNATURE", status_code=400)


class WebhookProcessingError(PppError):
  """Raised when a verified webhook event fails to process."""

  def __init__(self, message: str):
    super().__init__(message, code="WEBHOOK_ERROR", status_code=400)


class FulfillmentError(PppError):
  """Raised inside vendor fulfillment; recorded on the order, never surfaced."""

  def __init__(self, message: str):
    super().__init__(message, code="FULFILLMENT_ERROR")
