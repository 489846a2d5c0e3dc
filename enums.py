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

"""Enumerations for the store backend.

This module defines the MercadoPago payment statuses and the outcomes recorded
for each processed webhook.
"""

import enum


class PaymentStatus(str, enum.Enum):
  APPROVED = "approved"
  PENDING = "pending"
  IN_PROCESS = "in_process"
  AUTHORIZED = "authorized"
  REJECTED = "rejected"
  CANCELLED = "cancelled"
  REFUNDED = "refunded"
  CHARGED_BACK = "charged_back"


class WebhookOutcome(str, enum.Enum):
  IGNORED = "ignored"
  NOT_APPROVED = "not_approved"
  DUPLICATE = "duplicate"
  NOTIFIED = "notified"
  FAILED = "failed"


PAYMENT_TOPIC = "payment"
