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


"""FastAPI dependencies for the Print Power Purpose server.

This module contains dependency injection logic for FastAPI endpoints,
including:
- Settings and database session management.
- Service instantiation (checkout, webhook and fulfillment services).
- Client address resolution for rate limiting.
- Admin secret verification.
"""

import hmac
from typing import AsyncGenerator, Dict, Optional

from fastapi import Depends
from fastapi import Header
from fastapi import HTTPException
from fastapi import Request
from printpower import config
from printpower import db
from printpower import vendors
from printpower.config import Settings
from printpower.notifications import ResendMailer
from printpower.payments import StripeGateway
from printpower.rate_limit import FixedWindowRateLimiter
from printpower.services.checkout_service import CheckoutService
from printpower.services.fulfillment_service import VendorFulfillmentDispatcher
from printpower.services.webhook_service import WebhookService
from printpower.vendors.base import VendorAdapter
from sqlalchemy.ext.asyncio import AsyncSession

_rate_limiter: Optional[FixedWindowRateLimiter] = None


def get_settings() -> Settings:
  """Dependency provider for the process settings."""
  return config.get_settings()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
  """Dependency provider for a database session."""
  async with db.manager.session_factory() as session:
    yield session


def get_rate_limiter(
    settings: Settings = Depends(get_settings),
) -> FixedWindowRateLimiter:
  """Returns the process-wide checkout rate limiter."""
  global _rate_limiter
  if _rate_limiter is None:
    _rate_limiter = FixedWindowRateLimiter(
        limit=settings.checkout_rate_limit,
        window_seconds=settings.checkout_rate_window_seconds,
    )
  return _rate_limiter


def get_client_ip(request: Request) -> str:
  """Resolves the caller address, honoring the first X-Forwarded-For hop."""
  forwarded = request.headers.get("x-forwarded-for")
  if forwarded:
    return forwarded.split(",")[0].strip()
  if request.client:
    return request.client.host
  return "unknown"


def get_payment_gateway() -> StripeGateway:
  return StripeGateway()


def get_mailer(settings: Settings = Depends(get_settings)) -> ResendMailer:
  return ResendMailer(settings.resend_api_key, settings.email_from)


def get_vendor_registry(
    settings: Settings = Depends(get_settings),
) -> Dict[str, VendorAdapter]:
  return vendors.build_registry(settings)


async def verify_admin_secret(
    admin_secret: Optional[str] = Header(None, alias="Admin-Secret"),
    settings: Settings = Depends(get_settings),
) -> None:
  """Verifies the secret for admin endpoints."""
  expected_secret = settings.admin_secret
  if not expected_secret:
    raise HTTPException(status_code=500, detail="Admin secret not configured")

  if not admin_secret or not hmac.compare_digest(
      admin_secret, expected_secret
  ):
    raise HTTPException(status_code=403, detail="Invalid Admin Secret")


def get_fulfillment_dispatcher(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    registry: Dict[str, VendorAdapter] = Depends(get_vendor_registry),
    mailer: ResendMailer = Depends(get_mailer),
) -> VendorFulfillmentDispatcher:
  """Dependency provider for VendorFulfillmentDispatcher."""
  return VendorFulfillmentDispatcher(session, settings, registry, mailer)


def get_checkout_service(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    gateway: StripeGateway = Depends(get_payment_gateway),
    rate_limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
) -> CheckoutService:
  """Dependency provider for CheckoutService."""
  return CheckoutService(session, settings, gateway, rate_limiter)


def get_webhook_service(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
    mailer: ResendMailer = Depends(get_mailer),
    dispatcher: VendorFulfillmentDispatcher = Depends(
        get_fulfillment_dispatcher
    ),
) -> WebhookService:
  """Dependency provider for WebhookService."""
  return WebhookService(session, settings, mailer, dispatcher)
