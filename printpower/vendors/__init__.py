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


"""Vendor adapters and their registry."""

from typing import Dict, Optional

import httpx
from printpower.config import Settings
from printpower.vendors.base import VendorAdapter
from printpower.vendors.psrestful import PSRestfulAdapter
from printpower.vendors.scalablepress import ScalablePressAdapter
from printpower.vendors.sinalite import SinaliteAdapter

ADAPTER_CLASSES = (SinaliteAdapter, ScalablePressAdapter, PSRestfulAdapter)


def build_registry(
    settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> Dict[str, VendorAdapter]:
  """Instantiates every adapter keyed by vendor key."""
  return {
      cls.key: cls(settings, transport=transport) for cls in ADAPTER_CLASSES
  }
