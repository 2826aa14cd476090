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


"""Tests for the CSV import and order dump scripts."""

import asyncio
import io
import os
import shutil
import tempfile

from absl.testing import absltest
from printpower import db
from printpower import dump_orders
from printpower import import_csv
from sqlalchemy import func
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")


class ScriptsTest(absltest.TestCase):

  def setUp(self):
    super().setUp()
    self.test_dir = tempfile.mkdtemp()
    self.db_path = os.path.join(self.test_dir, "test.db")

  def tearDown(self):
    shutil.rmtree(self.test_dir)
    super().tearDown()

  def _run(self, test_fn):
    """Runs `test_fn(session)` against the test database."""

    async def runner():
      engine = create_async_engine(
          f"sqlite+aiosqlite:///{self.db_path}", poolclass=NullPool
      )
      session_factory = sessionmaker(
          engine, expire_on_commit=False, class_=AsyncSession
      )
      try:
        async with engine.begin() as conn:
          await conn.run_sync(db.Base.metadata.create_all)
        async with session_factory() as session:
          return await test_fn(session)
      finally:
        await engine.dispose()

    return asyncio.run(runner())

  def test_import_seed_data(self):
    asyncio.run(import_csv.import_csv_data(self.db_path, DATA_DIR))

    async def check(session):
      count = await session.execute(
          select(func.count()).select_from(db.Product)
      )
      self.assertEqual(count.scalar_one(), 7)

      cards = await db.get_product(
          session, "0b7c3f4e-8f3a-4c1e-9d2b-5a6e7f8a9b01"
      )
      self.assertEqual(cards.base_cost_cents, 2500)
      self.assertTrue(cards.is_active)
      self.assertIsNone(cards.pricing_data)

      settings = await db.get_pricing_settings(session, "sinalite")
      self.assertEqual(settings.markup_mode, "percent")
      self.assertEqual(settings.markup_percent, 40.0)
      self.assertEqual(await db.get_app_setting(session, "stripe_mode"), "test")
      cause = await db.get_cause(session, "cause-002")
      self.assertEqual(cause.raised_cents, 12500)

    self._run(check)

  def test_import_is_repeatable(self):
    asyncio.run(import_csv.import_csv_data(self.db_path, DATA_DIR))
    asyncio.run(import_csv.import_csv_data(self.db_path, DATA_DIR))

    async def check(session):
      count = await session.execute(
          select(func.count()).select_from(db.Nonprofit)
      )
      self.assertEqual(count.scalar_one(), 3)

    self._run(check)

  def test_import_requires_products(self):
    with self.assertRaises(FileNotFoundError):
      asyncio.run(import_csv.import_csv_data(self.db_path, self.test_dir))

  def test_dump_orders(self):
    async def seed(session):
      for number, vendor_status in (
          ("PPP-001001", "submitted"),
          ("PPP-001002", "pending_manual"),
      ):
        await db.save_order(
            session,
            db.Order(
                id=number.lower(),
                order_number=number,
                status="completed",
                items=[
                    {"product_name": "Premium Business Cards", "quantity": 2},
                    {"product_name": "Yard Sign", "quantity": 1},
                ],
                amount_total_cents=7995,
                payment_mode="test",
                vendor_status=vendor_status,
            ),
        )
      await session.commit()

    self._run(seed)

    out = io.StringIO()
    written = asyncio.run(
        dump_orders.dump_orders(self.db_path, "pending_manual", out=out)
    )

    self.assertEqual(written, 1)
    lines = out.getvalue().splitlines()
    self.assertEqual(lines[0].split(",")[0], "order_number")
    self.assertStartsWith(lines[1], "PPP-001002,")
    self.assertIn("Premium Business Cards x2; Yard Sign x1", lines[1])

  def test_format_items(self):
    self.assertEqual(dump_orders.format_items(None), "")
    self.assertEqual(
        dump_orders.format_items([{"quantity": 3}]), "Unknown Product x3"
    )


if __name__ == "__main__":
  absltest.main()
