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

"""Notification ledger for the store backend.

Orders are not stored here; MercadoPago remains the only record of an order.
This module keeps two small tables in SQLite (via aiosqlite):

- `webhook_events`: one row per payment callback that was looked up, for
  auditing with `dump_log.py`.
- `notified_payments`: one row per payment id whose WhatsApp notifications
  were sent, so redelivered callbacks do not notify twice.
"""

import datetime
import logging
from typing import Any, Dict, Optional

from sqlalchemy import Column
from sqlalchemy import delete
from sqlalchemy import Integer
from sqlalchemy import JSON
from sqlalchemy import String
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)

LedgerBase = declarative_base()


def _now() -> str:
  return datetime.datetime.now(datetime.timezone.utc).isoformat()


class DatabaseManager:
  """Manages the ledger engine and sessions without using global variables."""

  def __init__(self) -> None:
    self.engine: Optional[AsyncEngine] = None
    self.session_factory: Optional[sessionmaker] = None

  async def init_db(self, path: str) -> None:
    """Initializes the database engine and creates tables."""
    self.engine = create_async_engine(f"sqlite+aiosqlite:///{path}", echo=False)

    # Enable WAL mode so dump_log.py can read while the server writes
    async with self.engine.connect() as conn:
      await conn.execute(text("PRAGMA journal_mode=WAL"))

    self.session_factory = sessionmaker(
        self.engine, expire_on_commit=False, class_=AsyncSession
    )

    async with self.engine.begin() as conn:
      await conn.run_sync(LedgerBase.metadata.create_all)

  async def close(self) -> None:
    """Closes the database engine."""
    if self.engine:
      await self.engine.dispose()


# Global manager instance (to be initialized via lifespan)
manager = DatabaseManager()


class WebhookEvent(LedgerBase):
  __tablename__ = "webhook_events"

  id = Column(Integer, primary_key=True, autoincrement=True)
  timestamp = Column(String)
  topic = Column(String)
  payment_id = Column(String, index=True)
  status = Column(String, nullable=True)
  outcome = Column(String)
  order_id = Column(String, nullable=True)
  payload = Column(JSON, nullable=True)


class NotifiedPayment(LedgerBase):
  __tablename__ = "notified_payments"

  payment_id = Column(String, primary_key=True)
  order_id = Column(String, nullable=True)
  notified_at = Column(String)


# --- Data Access Helpers ---


async def log_webhook_event(
    session: AsyncSession,
    topic: str,
    payment_id: str,
    outcome: str,
    status: Optional[str] = None,
    order_id: Optional[str] = None,
    payload: Optional[Dict[str, Any]] = None,
) -> None:
  """Adds a webhook log row to the session."""
  session.add(
      WebhookEvent(
          timestamp=_now(),
          topic=topic,
          payment_id=payment_id,
          status=status,
          outcome=outcome,
          order_id=order_id,
          payload=payload,
      )
  )


async def claim_payment(
    session: AsyncSession, payment_id: str, order_id: Optional[str]
) -> bool:
  """Marks a payment as notified.

  Returns:
    True if this call inserted the row, False if the payment was already
    claimed by an earlier delivery.
  """
  session.add(
      NotifiedPayment(
          payment_id=payment_id, order_id=order_id, notified_at=_now()
      )
  )
  try:
    await session.commit()
  except IntegrityError:
    await session.rollback()
    return False
  return True


async def release_payment(session: AsyncSession, payment_id: str) -> None:
  """Removes a claim so a later redelivery can retry the notifications."""
  await session.execute(
      delete(NotifiedPayment).where(NotifiedPayment.payment_id == payment_id)
  )
  await session.commit()


async def get_notified_payment(
    session: AsyncSession, payment_id: str
) -> Optional[NotifiedPayment]:
  """Retrieves a notified payment by id."""
  return await session.get(NotifiedPayment, payment_id)
