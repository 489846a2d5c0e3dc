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

"""Custom exceptions for the store backend."""


class ShopError(Exception):
  """Base class for all store backend exceptions."""

  def __init__(
      self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500
  ):
    self.message = message
    self.code = code
    self.status_code = status_code
    super().__init__(self.message)


class InvalidRequestError(ShopError):
  """Raised when the request is invalid (e.g. empty cart, bad postal code)."""

  def __init__(self, message: str):
    super().__init__(message, code="INVALID_REQUEST", status_code=400)


class ConfigurationError(ShopError):
  """Raised when a required credential or setting is missing."""

  def __init__(self, message: str):
    super().__init__(message, code="NOT_CONFIGURED", status_code=500)


class PaymentProviderError(ShopError):
  """Raised when MercadoPago rejects or fails a request."""

  def __init__(self, message: str = "Error creando checkout"):
    super().__init__(message, code="PAYMENT_PROVIDER_ERROR", status_code=502)


class ShippingQuoteError(ShopError):
  """Raised when geocoding or routing fails while quoting shipping."""

  def __init__(self, message: str):
    super().__init__(message, code="SHIPPING_QUOTE_FAILED", status_code=502)


class MessagingError(ShopError):
  """Raised when the WhatsApp API rejects a message."""

  def __init__(self, message: str):
    super().__init__(message, code="MESSAGING_FAILED", status_code=502)
