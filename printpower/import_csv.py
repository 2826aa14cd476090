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


"""Database initialization script for the Print Power Purpose server.

This script imports the catalog, pricing settings, nonprofits, causes and app
settings from CSV files into the configured SQLite database. Existing rows of
those tables are cleared first; orders and donations are left untouched.

Usage:
  python -m printpower.import_csv --database_path=... --data_dir=...
"""

import asyncio
import csv
import json
import logging
import os
from typing import Any, Callable, Dict, List

from absl import app as absl_app
from absl import flags
from printpower import config
from printpower import db
from printpower.db import AppSetting
from printpower.db import Cause
from printpower.db import Nonprofit
from printpower.db import PricingSettings
from printpower.db import Product
from sqlalchemy import delete

FLAGS = flags.FLAGS

try:
  flags.DEFINE_string(
      "data_dir",
      os.path.join(os.path.dirname(os.path.abspath(__file__)), "data"),
      "Directory containing the seed CSV files",
  )
except flags.DuplicateFlagError:
  pass

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _bool(value: str) -> bool:
  return (value or "").strip().lower() in ("1", "true", "yes")


def _int(value: str) -> int:
  return int(value) if value else 0


def _float(value: str) -> float:
  return float(value) if value else 0.0


def _product(row: Dict[str, str]) -> Product:
  return Product(
      id=row["id"],
      name=row["name"],
      vendor=row["vendor"],
      vendor_product_id=row.get("vendor_product_id") or None,
      category=row.get("category") or None,
      base_cost_cents=_int(row["base_cost_cents"]),
      is_active=_bool(row.get("is_active", "true")),
      image_url=row.get("image_url") or None,
      pricing_data=(
          json.loads(row["pricing_data"]) if row.get("pricing_data") else None
      ),
  )


def _pricing_settings(row: Dict[str, str]) -> PricingSettings:
  return PricingSettings(
      vendor=row["vendor"],
      markup_mode=row["markup_mode"],
      markup_fixed_cents=_int(row.get("markup_fixed_cents")),
      markup_percent=_float(row.get("markup_percent")),
      nonprofit_share_mode=row["nonprofit_share_mode"],
      nonprofit_fixed_cents=_int(row.get("nonprofit_fixed_cents")),
      nonprofit_percent_of_markup=_float(
          row.get("nonprofit_percent_of_markup")
      ),
      currency=row.get("currency") or "usd",
  )


def _nonprofit(row: Dict[str, str]) -> Nonprofit:
  return Nonprofit(id=row["id"], name=row["name"], ein=row.get("ein") or None)


def _cause(row: Dict[str, str]) -> Cause:
  return Cause(
      id=row["id"],
      name=row["name"],
      goal_cents=_int(row.get("goal_cents")),
      raised_cents=_int(row.get("raised_cents")),
  )


def _app_setting(row: Dict[str, str]) -> AppSetting:
  return AppSetting(key=row["key"], value=row["value"])


# (file name, model, row converter, required)
_IMPORTS = (
    ("products.csv", Product, _product, True),
    ("pricing_settings.csv", PricingSettings, _pricing_settings, True),
    ("nonprofits.csv", Nonprofit, _nonprofit, False),
    ("causes.csv", Cause, _cause, False),
    ("app_settings.csv", AppSetting, _app_setting, False),
)


def read_rows(path: str, convert: Callable[[Dict[str, str]], Any]) -> List[Any]:
  with open(path, "r", newline="") as f:
    return [convert(row) for row in csv.DictReader(f)]


async def import_csv_data(database_path: str, data_dir: str) -> None:
  """Reads CSV files and populates the database."""
  # Ensure tables exist
  await db.manager.init_db(database_path)

  try:
    async with db.manager.session_factory() as session:
      for file_name, model, convert, required in _IMPORTS:
        path = os.path.join(data_dir, file_name)
        if not os.path.exists(path):
          if required:
            raise FileNotFoundError(path)
          logger.info("Skipping %s (not found)", file_name)
          continue

        logger.info("Clearing existing %s...", model.__tablename__)
        await session.execute(delete(model))
        rows = read_rows(path, convert)
        session.add_all(rows)
        logger.info("Imported %d rows from %s", len(rows), file_name)

      await session.commit()
    logger.info("Database populated from CSVs.")
  finally:
    await db.manager.close()


def main(argv) -> None:
  """Main entry point for the CSV import script."""
  del argv
  if not config.FLAGS.database_path:
    logger.error("--database_path must be provided.")
    raise SystemExit(1)
  asyncio.run(import_csv_data(config.FLAGS.database_path, FLAGS.data_dir))


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
