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


"""Print Power Purpose checkout and fulfillment server (Python/FastAPI)."""

import logging
import sys
from typing import Sequence

from absl import app as absl_app
from fastapi import FastAPI
from fastapi import Request
from fastapi.responses import JSONResponse
from printpower import config
from printpower.exceptions import PppError
from printpower.routes.checkout import router as checkout_router
from printpower.routes.order import router as order_router
from printpower.routes.webhook import router as webhook_router
import uvicorn

# --- App Setup ---

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Print Power Purpose Checkout Service",
    version="1.0.0",
    description="Checkout, payment webhook and vendor fulfillment pipeline",
    lifespan=config.lifespan,
)


@app.exception_handler(PppError)
async def ppp_exception_handler(request: Request, exc: PppError):
  """Converts service exceptions into `{error, code}` JSON responses."""
  del request  # Unused.
  return JSONResponse(
      status_code=exc.status_code,
      content={"error": exc.message, "code": exc.code},
  )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
  """Reports unexpected failures in the same JSON shape."""
  logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
  return JSONResponse(
      status_code=500,
      content={"error": "Internal server error", "code": "INTERNAL_ERROR"},
  )


app.include_router(checkout_router)
app.include_router(webhook_router)
app.include_router(order_router)


def main(argv: Sequence[str]) -> None:
  """Main entry point for the Print Power Purpose server."""
  del argv  # Unused.

  if config.FLAGS.database_path is None or config.FLAGS.port is None:
    logger.error("Both --database_path and --port must be provided.")
    print("\nUsage:")
    print(config.FLAGS.main_module_help())
    sys.exit(1)

  uvicorn.run(app, host="0.0.0.0", port=config.FLAGS.port)


def run() -> None:
  absl_app.run(main)


if __name__ == "__main__":
  run()
