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


"""Utility script to dump orders as CSV.

This script reads the orders of the configured SQLite database and writes
one CSV row per order to stdout, newest first. It is useful for manual vendor
exports and for verifying the state of the server.

Usage:
  python -m printpower.dump_orders --database_path=... [--vendor_status=...]
"""

import asyncio
import csv
import sys
from typing import Optional, TextIO

from absl import app as absl_app
from absl import flags
from printpower import config
from printpower.db import Order
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker

FLAGS = flags.FLAGS

try:
  flags.DEFINE_string(
      "vendor_status", None, "Only dump orders in this vendor status"
  )
except flags.DuplicateFlagError:
  pass

COLUMNS = (
    "order_number",
    "id",
    "status",
    "created_at",
    "paid_at",
    "customer_email",
    "vendor_key",
    "vendor_status",
    "vendor_order_id",
    "subtotal_cents",
    "shipping_cents",
    "tax_cents",
    "donation_cents",
    "amount_total_cents",
    "nonprofit_name",
    "cause_id",
    "items",
    "tracking_number",
    "shipping_status",
)


def format_items(items) -> str:
  return "; ".join(
      f"{i.get('product_name', 'Unknown Product')} x{i.get('quantity', 0)}"
      for i in items or []
  )


async def dump_orders(
    database_path: str,
    vendor_status: Optional[str] = None,
    out: TextIO = sys.stdout,
) -> int:
  """Writes matching orders as CSV and returns how many were written."""
  db_url = f"sqlite+aiosqlite:///{database_path}"
  engine = create_async_engine(db_url, echo=False)
  session_factory = sessionmaker(
      engine, expire_on_commit=False, class_=AsyncSession
  )

  try:
    async with session_factory() as session:
      stmt = select(Order).order_by(Order.created_at.desc())
      if vendor_status:
        stmt = stmt.where(Order.vendor_status == vendor_status)
      result = await session.execute(stmt)
      orders = result.scalars().all()
  finally:
    await engine.dispose()

  writer = csv.writer(out)
  writer.writerow(COLUMNS)
  for order in orders:
    row = {column: getattr(order, column) for column in COLUMNS}
    row["items"] = format_items(order.items)
    writer.writerow([row[column] for column in COLUMNS])
  return len(orders)


def main(argv):
  """Main entry point for the order dump script."""
  del argv
  if not config.FLAGS.database_path:
    print("Error: --database_path is required.")
    sys.exit(1)
  asyncio.run(dump_orders(config.FLAGS.database_path, FLAGS.vendor_status))


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
