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


"""Checkout session route."""

from typing import Any

from fastapi import APIRouter
from fastapi import Body
from fastapi import Depends
from printpower import dependencies
from printpower.models import CheckoutResult
from printpower.services.checkout_service import CheckoutService

router = APIRouter()


@router.post(
    "/checkout-session",
    response_model=CheckoutResult,
    operation_id="create_checkout_session",
)
async def create_checkout_session(
    body: Any = Body(None),
    client_ip: str = Depends(dependencies.get_client_ip),
    checkout_service: CheckoutService = Depends(
        dependencies.get_checkout_service
    ),
) -> CheckoutResult:
  """Create a hosted checkout session for a cart."""
  return await checkout_service.create_checkout_session(body, client_ip)
