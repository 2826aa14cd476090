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


"""Common vendor adapter interface and vendor configuration."""

import abc
import logging
from typing import Any, Dict, Optional

import httpx
from printpower.config import Settings
from printpower.exceptions import FulfillmentError
from printpower.models import VendorSubmission
from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_VENDOR_EMAIL = "orders@printpowerpurpose.com"
DEFAULT_VENDOR_KEY = "sinalite"

_VENDOR_NAMES = {
    "sinalite": "SinaLite",
    "scalablepress": "Scalable Press",
    "psrestful": "PSRestful",
}


class VendorConfig(BaseModel):
  key: str
  name: str
  email: Optional[str] = None
  api_base_url: Optional[str] = None
  api_key: Optional[str] = None


def get_default_vendor_email(settings: Settings) -> str:
  return settings.vendor_notification_email or DEFAULT_VENDOR_EMAIL


def get_vendor_config(
    settings: Settings, vendor_key: str
) -> Optional[VendorConfig]:
  """Returns the configuration of a known vendor, or None."""
  if vendor_key not in _VENDOR_NAMES:
    return None
  return VendorConfig(
      key=vendor_key,
      name=_VENDOR_NAMES[vendor_key],
      email=getattr(settings, f"{vendor_key}_vendor_email")
      or get_default_vendor_email(settings),
      api_base_url={
          "sinalite": settings.sinalite_api_url,
          "scalablepress": settings.scalablepress_api_base_url,
          "psrestful": settings.psrestful_api_base_url,
      }[vendor_key],
      api_key={
          "sinalite": None,  # OAuth client credentials instead
          "scalablepress": settings.scalablepress_api_key,
          "psrestful": settings.psrestful_api_key,
      }[vendor_key],
  )


def address_field(order: Dict[str, Any], field: str, default: str = "") -> str:
  address = order.get("shipping_address") or {}
  return address.get(field) or default


def split_name(order: Dict[str, Any]) -> tuple:
  """Splits the shipping name into (first, last)."""
  address = order.get("shipping_address") or {}
  first = address.get("first_name")
  last = address.get("last_name")
  if first or last:
    return first or "", last or ""
  name = (address.get("name") or "").strip()
  if not name:
    return "", ""
  parts = name.split(" ", 1)
  return parts[0], parts[1] if len(parts) > 1 else ""


def artwork_urls(item: Dict[str, Any]) -> list:
  urls = item.get("artwork_urls")
  if urls:
    return list(urls)
  return [item["artwork_url"]] if item.get("artwork_url") else []


class VendorAdapter(abc.ABC):
  """Translates internal orders into one vendor's API calls.

  Adapters that can report shipping progress also implement
  `get_tracking_info(vendor_order_id) -> Optional[TrackingInfo]`.
  """

  key: str = ""

  def __init__(
      self,
      settings: Settings,
      transport: Optional[httpx.AsyncBaseTransport] = None,
      timeout: float = 30.0,
  ):
    self.settings = settings
    self._transport = transport
    self._timeout = timeout

  def client(self) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

  @abc.abstractmethod
  def build_payload(self, order: Dict[str, Any]) -> Dict[str, Any]:
    """Builds the vendor submission body for an order."""

  @abc.abstractmethod
  async def submit_order(self, order: Dict[str, Any]) -> VendorSubmission:
    """Submits an order and returns the vendor's reference."""

  @staticmethod
  def raise_for_status(response: httpx.Response, what: str) -> None:
    if response.status_code >= 400:
      raise FulfillmentError(
          f"{what} failed: {response.status_code} - {response.text}"
      )
