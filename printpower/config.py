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


"""Shared configuration and startup logic for the Print Power Purpose server.

Every tunable is an absl flag whose default is read from the environment, so
secrets can be supplied either way. Services never read flags directly: the
values are collected once into a `Settings` object which is injected through
FastAPI dependencies.
"""

import contextlib
import os
from typing import Optional

from absl import flags
from fastapi import FastAPI
from printpower import db
from printpower.enums import PaymentMode
from pydantic import BaseModel

FLAGS = flags.FLAGS

_SETTINGS_CACHE = None


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
  value = os.environ.get(name)
  return value if value else default


# Define flags only if they haven't been defined yet (to avoid duplicates
# during tests or re-imports)
try:
  flags.DEFINE_string(
      "database_path", _env("PPP_DATABASE_PATH"), "Path to the SQLite DB"
  )
  flags.DEFINE_integer("port", None, "Port to run the server on")
  flags.DEFINE_string(
      "site_url",
      _env("SITE_URL", "http://localhost:5173"),
      "Storefront origin used for checkout redirect URLs",
  )
  flags.DEFINE_string(
      "stripe_secret_key_test",
      _env("STRIPE_SECRET_KEY_TEST", _env("STRIPE_SECRET_KEY")),
      "Stripe secret key used while stripe_mode is 'test'",
  )
  flags.DEFINE_string(
      "stripe_secret_key_live",
      _env("STRIPE_SECRET_KEY_LIVE"),
      "Stripe secret key used while stripe_mode is 'live'",
  )
  flags.DEFINE_string(
      "stripe_webhook_secret",
      _env("STRIPE_WEBHOOK_SECRET"),
      "Signing secret of the Stripe webhook endpoint",
  )
  flags.DEFINE_boolean(
      "enable_automatic_tax",
      _env("STRIPE_AUTOMATIC_TAX", "false").lower() == "true",
      "Let Stripe calculate tax on checkout sessions",
  )
  flags.DEFINE_string(
      "vendor_fulfillment_mode",
      _env("VENDOR_FULFILLMENT_MODE", "AUTO_API"),
      "One of AUTO_API, EMAIL_VENDOR or MANUAL_EXPORT",
  )
  flags.DEFINE_string("resend_api_key", _env("RESEND_API_KEY"), "Resend key")
  flags.DEFINE_string(
      "email_from",
      _env(
          "EMAIL_FROM", "Print Power Purpose <orders@printpowerpurpose.com>"
      ),
      "Sender of outbound emails",
  )
  flags.DEFINE_string(
      "vendor_notification_email",
      _env("VENDOR_NOTIFICATION_EMAIL"),
      "Fallback address for vendor order emails",
  )
  flags.DEFINE_string(
      "admin_secret", _env("ADMIN_SECRET"), "Secret for admin endpoints"
  )
  flags.DEFINE_integer("checkout_rate_limit", 5, "Checkouts per IP and window")
  flags.DEFINE_integer(
      "checkout_rate_window_seconds", 60, "Checkout rate-limit window"
  )
  for _mode in ("test", "live"):
    for _field in ("client_id", "client_secret", "auth_url", "audience"):
      flags.DEFINE_string(
          f"sinalite_{_field}_{_mode}",
          _env(f"SINALITE_{_field.upper()}_{_mode.upper()}"),
          f"SinaLite OAuth {_field} ({_mode})",
      )
  flags.DEFINE_string(
      "sinalite_api_url",
      _env("SINALITE_API_URL", "https://api.sinaliteuppy.com"),
      "SinaLite API base URL",
  )
  flags.DEFINE_string(
      "scalablepress_api_key", _env("SCALABLEPRESS_API_KEY"), "Scalable Press"
  )
  flags.DEFINE_string(
      "scalablepress_api_base_url",
      _env("SCALABLEPRESS_API_BASE_URL", "https://api.scalablepress.com/v2"),
      "Scalable Press API base URL",
  )
  flags.DEFINE_string(
      "psrestful_api_key", _env("PSRESTFUL_API_KEY"), "PSRestful"
  )
  flags.DEFINE_string(
      "psrestful_api_base_url",
      _env("PSRESTFUL_API_BASE_URL"),
      "PSRestful API base URL",
  )
  for _vendor in ("sinalite", "scalablepress", "psrestful"):
    flags.DEFINE_string(
        f"{_vendor}_vendor_email",
        _env(f"{_vendor.upper()}_VENDOR_EMAIL"),
        f"Order notification address for {_vendor}",
    )
except flags.DuplicateFlagError:
  pass


class SinaliteCredentials(BaseModel):
  """OAuth client credentials for one SinaLite environment."""

  client_id: Optional[str] = None
  client_secret: Optional[str] = None
  auth_url: Optional[str] = None
  audience: Optional[str] = None

  def is_complete(self) -> bool:
    return all(
        (self.client_id, self.client_secret, self.auth_url, self.audience)
    )


class Settings(BaseModel):
  """Process-wide configuration injected into services."""

  database_path: Optional[str] = None
  site_url: str = "http://localhost:5173"
  stripe_secret_key_test: Optional[str] = None
  stripe_secret_key_live: Optional[str] = None
  stripe_webhook_secret: Optional[str] = None
  enable_automatic_tax: bool = False
  fulfillment_mode: str = "AUTO_API"
  resend_api_key: Optional[str] = None
  email_from: str = "Print Power Purpose <orders@printpowerpurpose.com>"
  vendor_notification_email: Optional[str] = None
  admin_secret: Optional[str] = None
  checkout_rate_limit: int = 5
  checkout_rate_window_seconds: int = 60

  sinalite_test: SinaliteCredentials = SinaliteCredentials()
  sinalite_live: SinaliteCredentials = SinaliteCredentials()
  sinalite_api_url: str = "https://api.sinaliteuppy.com"
  sinalite_vendor_email: Optional[str] = None
  scalablepress_api_key: Optional[str] = None
  scalablepress_api_base_url: str = "https://api.scalablepress.com/v2"
  scalablepress_vendor_email: Optional[str] = None
  psrestful_api_key: Optional[str] = None
  psrestful_api_base_url: Optional[str] = None
  psrestful_vendor_email: Optional[str] = None

  def stripe_secret_key(self, mode: str) -> Optional[str]:
    """Returns the Stripe secret key matching the payment mode."""
    if mode == PaymentMode.LIVE.value:
      return self.stripe_secret_key_live
    return self.stripe_secret_key_test

  def sinalite_credentials(self, mode: str) -> SinaliteCredentials:
    if mode == PaymentMode.LIVE.value:
      return self.sinalite_live
    return self.sinalite_test


def _flag(name: str):
  # Item access works before flag parsing and yields the default, which is
  # what a test runner importing the app sees.
  return FLAGS[name].value


def _sinalite(mode: str) -> SinaliteCredentials:
  return SinaliteCredentials(
      client_id=_flag(f"sinalite_client_id_{mode}"),
      client_secret=_flag(f"sinalite_client_secret_{mode}"),
      auth_url=_flag(f"sinalite_auth_url_{mode}"),
      audience=_flag(f"sinalite_audience_{mode}"),
  )


def load_settings() -> Settings:
  """Builds a `Settings` object from the current flag values."""
  return Settings(
      database_path=_flag("database_path"),
      site_url=_flag("site_url"),
      stripe_secret_key_test=_flag("stripe_secret_key_test"),
      stripe_secret_key_live=_flag("stripe_secret_key_live"),
      stripe_webhook_secret=_flag("stripe_webhook_secret"),
      enable_automatic_tax=_flag("enable_automatic_tax"),
      fulfillment_mode=_flag("vendor_fulfillment_mode"),
      resend_api_key=_flag("resend_api_key"),
      email_from=_flag("email_from"),
      vendor_notification_email=_flag("vendor_notification_email"),
      admin_secret=_flag("admin_secret"),
      checkout_rate_limit=_flag("checkout_rate_limit"),
      checkout_rate_window_seconds=_flag("checkout_rate_window_seconds"),
      sinalite_test=_sinalite("test"),
      sinalite_live=_sinalite("live"),
      sinalite_api_url=_flag("sinalite_api_url"),
      sinalite_vendor_email=_flag("sinalite_vendor_email"),
      scalablepress_api_key=_flag("scalablepress_api_key"),
      scalablepress_api_base_url=_flag("scalablepress_api_base_url"),
      scalablepress_vendor_email=_flag("scalablepress_vendor_email"),
      psrestful_api_key=_flag("psrestful_api_key"),
      psrestful_api_base_url=_flag("psrestful_api_base_url"),
      psrestful_vendor_email=_flag("psrestful_vendor_email"),
  )


def get_settings() -> Settings:
  """Reads and caches the settings."""
  global _SETTINGS_CACHE
  if _SETTINGS_CACHE is None:
    _SETTINGS_CACHE = load_settings()
  return _SETTINGS_CACHE


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
  """Shared lifespan manager for initializing the database."""
  del app  # Unused.
  # In tests the path is usually unset and sessions are overridden
  settings = get_settings()
  if settings.database_path:
    await db.manager.init_db(settings.database_path)
  yield
  await db.manager.close()
