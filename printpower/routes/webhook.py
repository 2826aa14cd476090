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


"""Stripe webhook route."""

from typing import Any, Optional

from fastapi import APIRouter
from fastapi import Depends
from fastapi import Header
from fastapi import Request
from printpower import dependencies
from printpower.services.webhook_service import WebhookService

router = APIRouter()


@router.post(
    "/stripe-webhook",
    response_model=dict[str, Any],
    operation_id="stripe_webhook",
)
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    webhook_service: WebhookService = Depends(
        dependencies.get_webhook_service
    ),
) -> dict[str, Any]:
  """Receive a signed Stripe event."""
  # The signature covers the exact bytes, so the body is read unparsed
  payload = await request.body()
  return await webhook_service.handle_event(payload, stripe_signature)
