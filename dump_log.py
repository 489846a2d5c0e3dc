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

"""Utility script to dump the webhook log from the notification ledger.

This script reads and displays the MercadoPago payment callbacks recorded by
the server: timestamp, payment id, status, and what the server did with it.
It can optionally list the payments whose WhatsApp notifications were sent.

Usage:
  uv run dump_log.py --db_path=notifications.db [--show_notified]
"""

import asyncio
import json
import sys

from absl import app as absl_app
from absl import flags
from db import NotifiedPayment
from db import WebhookEvent
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker

FLAGS = flags.FLAGS
flags.DEFINE_string("db_path", None, "Path to the notifications DB")
flags.DEFINE_string("payment_id", None, "Only show events for this payment")
flags.DEFINE_bool("show_notified", False, "List notified payments")


async def dump_logs():
  """Queries the database and prints webhook events."""
  if not FLAGS.db_path:
    print("Error: --db_path is required.")
    sys.exit(1)

  db_url = f"sqlite+aiosqlite:///{FLAGS.db_path}"
  engine = create_async_engine(db_url, echo=False)
  session_factory = sessionmaker(
      engine, expire_on_commit=False, class_=AsyncSession
  )

  async with session_factory() as session:
    print("=== WEBHOOK EVENTS ===")
    stmt = select(WebhookEvent).order_by(WebhookEvent.id)
    if FLAGS.payment_id:
      stmt = stmt.where(WebhookEvent.payment_id == FLAGS.payment_id)
    result = await session.execute(stmt)
    events = result.scalars().all()

    if not events:
      print("No webhook events found.")

    for event in events:
      print(
          f"[{event.timestamp}] payment={event.payment_id}"
          f" status={event.status} outcome={event.outcome}"
      )
      if event.order_id:
        print(f"  Order ID: {event.order_id}")
      if event.payload:
        print(f"  Payload: {json.dumps(event.payload, indent=2)}")
      print("-" * 40)

    if FLAGS.show_notified:
      print("=== NOTIFIED PAYMENTS ===")
      result = await session.execute(
          select(NotifiedPayment).order_by(NotifiedPayment.notified_at)
      )
      for row in result.scalars().all():
        print(
            f"[{row.notified_at}] payment={row.payment_id}"
            f" order={row.order_id}"
        )

  await engine.dispose()


def main(argv):
  """Main entry point for the log dump script."""
  del argv
  asyncio.run(dump_logs())


def run() -> None:
  """Console script entry point."""
  absl_app.run(main)


if __name__ == "__main__":
  run()
