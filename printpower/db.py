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


"""Database management and persistence layer for the Print Power Purpose server.

This module provides the schema definitions, database session management, and
asynchronous data access helpers used by the server. It utilizes SQLAlchemy with
SQLite (via aiosqlite).

Key features include:
- `DatabaseManager`: Handles asynchronous engine initialization and session
  factory setup.
- WAL Mode: Automatically enables SQLite Write-Ahead Logging so checkout
  requests and webhook deliveries can hit the database concurrently.
- Declarative Models: Defines tables for the catalog, pricing settings,
  nonprofits, causes, orders, donations, policy acceptances and processed
  webhook events.
- Data Access Helpers: A suite of asynchronous functions for reads, inserts and
  atomic counter updates.
"""

import datetime
import logging
from typing import Any
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple
import uuid

from sqlalchemy import Boolean
from sqlalchemy import Column
from sqlalchemy import Float
from sqlalchemy import func
from sqlalchemy import Integer
from sqlalchemy import JSON
from sqlalchemy import select
from sqlalchemy import String
from sqlalchemy import text
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()

ORDER_SEQUENCE_NAME = "orders"
ORDER_SEQUENCE_START = 1000


def now_iso() -> str:
  return datetime.datetime.now(datetime.timezone.utc).isoformat()


class DatabaseManager:
  """Manages the database engine and sessions without using global variables."""

  def __init__(self) -> None:
    self.engine: Optional[AsyncEngine] = None
    self.session_factory: Optional[sessionmaker] = None

  async def init_db(self, path: str) -> None:
    """Initializes the database engine and creates tables."""
    url = f"sqlite+aiosqlite:///{path}"
    self.engine = create_async_engine(url, echo=False)

    # Enable WAL mode
    async with self.engine.connect() as conn:
      await conn.execute(text("PRAGMA journal_mode=WAL"))

    self.session_factory = sessionmaker(
        self.engine, expire_on_commit=False, class_=AsyncSession
    )

    async with self.engine.begin() as conn:
      await conn.run_sync(Base.metadata.create_all)

  async def close(self) -> None:
    """Closes the database engine."""
    if self.engine:
      await self.engine.dispose()


# Global manager instance (to be initialized via lifespan)
manager = DatabaseManager()


class Product(Base):
  __tablename__ = "products"

  id = Column(String, primary_key=True)
  name = Column(String)
  vendor = Column(String, index=True)
  vendor_product_id = Column(String, nullable=True)
  category = Column(String, nullable=True)
  base_cost_cents = Column(Integer)
  is_active = Column(Boolean, default=True)
  image_url = Column(String, nullable=True)
  # Vendor-specific configuration, e.g. {"availability": {color: {size: n}}}
  pricing_data = Column(JSON, nullable=True)


class PricingSettings(Base):
  __tablename__ = "pricing_settings"

  vendor = Column(String, primary_key=True)
  markup_mode = Column(String)  # 'fixed' or 'percent'
  markup_fixed_cents = Column(Integer, default=0)
  markup_percent = Column(Float, default=0.0)
  nonprofit_share_mode = Column(String)  # 'fixed' or 'percent_of_markup'
  nonprofit_fixed_cents = Column(Integer, default=0)
  nonprofit_percent_of_markup = Column(Float, default=0.0)
  currency = Column(String, default="usd")


class Nonprofit(Base):
  __tablename__ = "nonprofits"

  id = Column(String, primary_key=True)
  name = Column(String)
  ein = Column(String, nullable=True)


class Cause(Base):
  __tablename__ = "causes"

  id = Column(String, primary_key=True)
  name = Column(String)
  goal_cents = Column(Integer, default=0)
  raised_cents = Column(Integer, default=0)


class AppSetting(Base):
  __tablename__ = "app_settings"

  key = Column(String, primary_key=True)
  value = Column(String)


class OrderSequence(Base):
  __tablename__ = "order_sequences"

  name = Column(String, primary_key=True)
  value = Column(Integer)


class Order(Base):
  __tablename__ = "orders"

  id = Column(String, primary_key=True)
  order_number = Column(String, unique=True, index=True)
  session_id = Column(String, index=True)
  status = Column(String)
  items = Column(JSON)
  subtotal_cents = Column(Integer, default=0)
  shipping_cents = Column(Integer, default=0)
  tax_cents = Column(Integer, default=0)
  donation_cents = Column(Integer, default=0)
  amount_total_cents = Column(Integer, default=0)
  currency = Column(String, default="usd")
  nonprofit_id = Column(String, nullable=True)
  nonprofit_name = Column(String, nullable=True)
  nonprofit_ein = Column(String, nullable=True)
  cause_id = Column(String, nullable=True)
  payment_mode = Column(String)
  vendor_key = Column(String, nullable=True, index=True)
  vendor_name = Column(String, nullable=True)
  customer_email = Column(String, nullable=True)
  shipping_address = Column(JSON, nullable=True)
  paid_at = Column(String, nullable=True)
  payment_intent_id = Column(String, nullable=True)
  receipt_url = Column(String, nullable=True)
  vendor_status = Column(String, nullable=True, index=True)
  vendor_order_id = Column(String, nullable=True)
  vendor_error_message = Column(String, nullable=True)
  vendor_exported_at = Column(String, nullable=True)
  tracking_number = Column(String, nullable=True)
  tracking_url = Column(String, nullable=True)
  tracking_carrier = Column(String, nullable=True)
  shipping_status = Column(String, nullable=True)
  shipped_at = Column(String, nullable=True)
  created_at = Column(String, default=now_iso)


class Donation(Base):
  __tablename__ = "donations"

  id = Column(String, primary_key=True)
  order_id = Column(String, index=True)
  cause_id = Column(String, index=True)
  nonprofit_id = Column(String, nullable=True)
  amount_cents = Column(Integer)
  customer_email = Column(String, nullable=True)
  created_at = Column(String)


class PolicyAcceptance(Base):
  __tablename__ = "policy_acceptances"

  id = Column(Integer, primary_key=True, autoincrement=True)
  order_id = Column(String, index=True)
  customer_email = Column(String, nullable=True)
  policy_type = Column(String)  # 'terms' or 'privacy'
  version = Column(String)
  accepted_at = Column(String)


class ProcessedWebhookEvent(Base):
  __tablename__ = "processed_webhook_events"

  event_id = Column(String, primary_key=True)
  event_type = Column(String)
  processed_at = Column(String)


ORDER_FIELDS = [c.name for c in Order.__table__.columns]


def order_to_dict(order: Order) -> Dict[str, Any]:
  """Serializes an order row into a JSON-able dict."""
  return {name: getattr(order, name) for name in ORDER_FIELDS}


# --- Data Access Helpers ---


async def get_product(
    session: AsyncSession, product_id: str
) -> Optional[Product]:
  """Retrieves a product by ID."""
  return await session.get(Product, product_id)


async def get_pricing_settings(
    session: AsyncSession, vendor: str
) -> Optional[PricingSettings]:
  """Retrieves the global pricing settings of a vendor."""
  return await session.get(PricingSettings, vendor)


async def get_nonprofit(
    session: AsyncSession, nonprofit_id: str
) -> Optional[Nonprofit]:
  """Retrieves a nonprofit by ID."""
  return await session.get(Nonprofit, nonprofit_id)


async def get_cause(session: AsyncSession, cause_id: str) -> Optional[Cause]:
  """Retrieves a cause by ID."""
  return await session.get(Cause, cause_id)


async def get_app_setting(session: AsyncSession, key: str) -> Optional[str]:
  """Retrieves a global application setting."""
  result = await session.execute(
      select(AppSetting.value).where(AppSetting.key == key)
  )
  return result.scalar_one_or_none()


async def next_order_number(session: AsyncSession) -> str:
  """Atomically advances the order sequence and formats the next number."""
  result = await session.execute(
      update(OrderSequence)
      .where(OrderSequence.name == ORDER_SEQUENCE_NAME)
      .values(value=OrderSequence.value + 1)
      .returning(OrderSequence.value)
  )
  value = result.scalar_one_or_none()
  if value is None:
    value = ORDER_SEQUENCE_START + 1
    session.add(OrderSequence(name=ORDER_SEQUENCE_NAME, value=value))
    await session.flush()
  return f"PPP-{value:06d}"


async def save_order(session: AsyncSession, order: Order) -> None:
  """Adds a new order to the session."""
  session.add(order)
  await session.flush()


async def get_order(session: AsyncSession, order_id: str) -> Optional[Order]:
  """Retrieves an order by ID."""
  return await session.get(Order, order_id)


async def update_order(
    session: AsyncSession, order_id: str, values: Dict[str, Any]
) -> bool:
  """Applies a partial update to an order, returning whether it existed."""
  result = await session.execute(
      update(Order).where(Order.id == order_id).values(**values)
  )
  return result.rowcount > 0


async def list_orders(
    session: AsyncSession,
    vendor_status: Optional[str] = None,
    vendor_key: Optional[str] = None,
    page: int = 1,
    page_size: int = 20,
) -> Tuple[List[Order], int]:
  """Lists orders newest first with optional vendor filters.

  Args:
    session: The database session to use.
    vendor_status: Only return orders in this vendor status.
    vendor_key: Only return orders routed to this vendor.
    page: 1-based page number.
    page_size: Number of orders per page.

  Returns:
    The orders of the requested page and the total number of matches.
  """
  stmt = select(Order)
  count_stmt = select(func.count()).select_from(Order)
  if vendor_status:
    stmt = stmt.where(Order.vendor_status == vendor_status)
    count_stmt = count_stmt.where(Order.vendor_status == vendor_status)
  if vendor_key:
    stmt = stmt.where(Order.vendor_key == vendor_key)
    count_stmt = count_stmt.where(Order.vendor_key == vendor_key)

  stmt = (
      stmt.order_by(Order.created_at.desc())
      .offset((page - 1) * page_size)
      .limit(page_size)
  )
  result = await session.execute(stmt)
  total = await session.execute(count_stmt)
  return list(result.scalars().all()), total.scalar_one()


async def save_donation(
    session: AsyncSession,
    order_id: str,
    cause_id: str,
    amount_cents: int,
    nonprofit_id: Optional[str] = None,
    customer_email: Optional[str] = None,
) -> str:
  """Records a donation and returns its ID."""
  donation = Donation(
      id=str(uuid.uuid4()),
      order_id=order_id,
      cause_id=cause_id,
      nonprofit_id=nonprofit_id,
      amount_cents=amount_cents,
      customer_email=customer_email,
      created_at=now_iso(),
  )
  session.add(donation)
  return donation.id


async def increment_cause_raised(
    session: AsyncSession, cause_id: str, amount_cents: int
) -> bool:
  """Atomically adds to a cause's raised total."""
  stmt = (
      update(Cause)
      .where(Cause.id == cause_id)
      .values(raised_cents=Cause.raised_cents + amount_cents)
  )
  result = await session.execute(stmt)
  return result.rowcount > 0


async def save_policy_acceptance(
    session: AsyncSession,
    order_id: str,
    policy_type: str,
    version: str,
    customer_email: Optional[str] = None,
) -> None:
  """Logs that a customer accepted a legal policy version."""
  session.add(
      PolicyAcceptance(
          order_id=order_id,
          customer_email=customer_email,
          policy_type=policy_type,
          version=version,
          accepted_at=now_iso(),
      )
  )


async def get_processed_event(
    session: AsyncSession, event_id: str
) -> Optional[ProcessedWebhookEvent]:
  """Retrieves a processed webhook event record by ID."""
  return await session.get(ProcessedWebhookEvent, event_id)


async def save_processed_event(
    session: AsyncSession, event_id: str, event_type: str
) -> None:
  """Marks a webhook event as processed."""
  session.add(
      ProcessedWebhookEvent(
          event_id=event_id, event_type=event_type, processed_at=now_iso()
      )
  )
