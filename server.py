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

"""Materiales Payán storefront backend (Python/FastAPI)."""

import logging
from typing import Sequence

from absl import app as absl_app
import config
from exceptions import ShopError
from fastapi import FastAPI
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from routes.checkout import router as checkout_router
from routes.status import router as status_router
from routes.webhook import router as webhook_router
import uvicorn

# --- App Setup ---

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=config.SERVICE_NAME,
    version=config.SERVER_VERSION,
    description="Checkout, shipping quotes and payment notifications",
    lifespan=config.lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.get_settings().cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.exception_handler(ShopError)
async def shop_exception_handler(request: Request, exc: ShopError):
  """Handles store exceptions and converts them to JSON responses."""
  logger.warning(
      "%s %s failed: %s (%s)",
      request.method,
      request.url.path,
      exc.message,
      exc.code,
  )
  return JSONResponse(
      status_code=exc.status_code,
      content={"detail": exc.message, "code": exc.code},
  )


app.include_router(status_router)
app.include_router(checkout_router)
app.include_router(webhook_router)


def main(argv: Sequence[str]) -> None:
  """Main entry point for the store backend."""
  del argv  # Unused.

  port = config.FLAGS.port or config.get_settings().port
  uvicorn.run(app, host=config.FLAGS.host, port=port)


def run() -> None:
  """Console script entry point."""
  absl_app.run(main)


if __name__ == "__main__":
  run()
