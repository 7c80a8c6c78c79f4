from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple, TypedDict
import logging
import math
import uuid

from .errors import PaymentError, ValidationError
from .helpers import is_valid_email

logger = logging.getLogger(__name__)

# promotional checkout rate, independent of Rider.price
HORSE_PRICE = 20
MAX_HORSES = 4

METHOD_CARD = "stripe"
METHOD_WALLET = "paypal"
PAYMENT_METHODS = (METHOD_CARD, METHOD_WALLET)


def checkout_amount(quantity: int) -> int:
    if not 1 <= quantity <= MAX_HORSES:
        raise ValidationError(
            "Invalid quantity",
            [{"loc": ["quantity"],
              "msg": f"must be between 1 and {MAX_HORSES}"}],
        )
    return HORSE_PRICE * quantity


def _token(n: int = 13) -> str:
    return uuid.uuid4().hex[:n]


# ----------------------------
# Payment Provider Interface
# ----------------------------
class PaymentConfirmation(TypedDict):
    method: str
    reference: str
    status: str  # "succeeded"
    amount: int


class PaymentProvider(ABC):
    method: str

    # the one contract both providers converge on; raises PaymentError
    @abstractmethod
    async def charge(self, amount: int) -> PaymentConfirmation: ...


# ----------------------------
# Simulated card (Stripe-style) provider
# ----------------------------
class CardProvider(PaymentProvider):
    method = METHOD_CARD

    def create_payment_intent(self, amount: Any) -> Dict[str, str]:
        # a live integration would call stripe.PaymentIntent.create here
        return {"clientSecret": f"pi_simulated_{_token()}"}

    async def charge(self, amount: int) -> PaymentConfirmation:
        intent = self.create_payment_intent(amount)
        return {
            "method": self.method,
            "reference": intent["clientSecret"],
            "status": "succeeded",
            "amount": amount,
        }


# ----------------------------
# Simulated wallet (PayPal-style) provider
# ----------------------------
class WalletProvider(PaymentProvider):
    method = METHOD_WALLET

    def client_token(self) -> Dict[str, str]:
        return {
            "clientToken":
                "placeholder_token_until_real_credentials_are_provided",
        }

    def create_order(self, amount: Any, currency: Optional[str],
                     intent: Optional[str]) -> Dict[str, Any]:
        try:
            value = float(amount)
        except (TypeError, ValueError):
            value = 0.0
        if not math.isfinite(value) or value <= 0:
            raise ValidationError(
                "Invalid amount. Amount must be a positive number.")
        if not currency:
            raise ValidationError("Invalid currency. Currency is required.")
        if not intent:
            raise ValidationError("Invalid intent. Intent is required.")
        return {
            "id": f"SIMULATED_ORDER_{_token(8).upper()}",
            "status": "CREATED",
            "links": [{
                "href": "https://example.com/approve",
                "rel": "approve",
                "method": "GET",
            }],
        }

    def capture_order(self, order_id: str) -> Dict[str, Any]:
        return {
            "id": order_id,
            "status": "COMPLETED",
            "payer": {"email_address": "simulated-buyer@example.com"},
            "purchase_units": [{
                "payments": {
                    "captures": [{
                        "id": f"SIMULATED_CAPTURE_{_token(8).upper()}",
                        "status": "COMPLETED",
                    }],
                },
            }],
        }

    async def charge(self, amount: int) -> PaymentConfirmation:
        order = self.create_order(amount, "USD", "CAPTURE")
        capture = self.capture_order(order["id"])
        if capture["status"] != "COMPLETED":
            raise PaymentError()
        unit = capture["purchase_units"][0]["payments"]["captures"][0]
        return {
            "method": self.method,
            "reference": unit["id"],
            "status": "succeeded",
            "amount": amount,
        }


PROVIDERS = {
    METHOD_CARD: CardProvider,
    METHOD_WALLET: WalletProvider,
}


def provider_for(method: str) -> PaymentProvider:
    cls = PROVIDERS.get(method)
    if cls is None:
        raise ValidationError(
            "Invalid payment method",
            [{"loc": ["paymentMethod"],
              "msg": f"must be one of {', '.join(PAYMENT_METHODS)}"}],
        )
    return cls()


# ----------------------------
# Confirmation -> entitlement
# ----------------------------
class ConfirmationAdapter:
    """Bridges a provider's success signal to a ledger write.

    Exactly one Purchase is recorded per transaction. The horse quantity
    only changes the amount, not how many riders get unlocked.
    """

    def __init__(self, ledger) -> None:
        self.ledger = ledger

    @staticmethod
    def _check(email: str, method: str) -> None:
        errors = []
        if not is_valid_email(email):
            errors.append({"loc": ["email"],
                           "msg": "must be a valid email address"})
        if method not in PAYMENT_METHODS:
            errors.append({"loc": ["paymentMethod"],
                           "msg": f"must be one of {', '.join(PAYMENT_METHODS)}"})
        if errors:
            raise ValidationError("Invalid purchase data", errors)

    async def on_payment_success(self, email: str, rider_id: int,
                                 method: str, amount: int):
        self._check(email, method)
        purchase = await self.ledger.record_purchase(
            email, rider_id, method, amount
        )
        logger.info("purchase %s recorded: rider=%s method=%s amount=%s",
                    purchase.id, rider_id, method, amount)
        return purchase

    async def checkout(self, provider: PaymentProvider, email: str,
                       rider_id: int, quantity: int
                       ) -> Tuple[Any, PaymentConfirmation]:
        self._check(email, provider.method)
        amount = checkout_amount(quantity)
        try:
            confirmation = await provider.charge(amount)
        except PaymentError:
            logger.warning("payment via %s failed for rider %s",
                           provider.method, rider_id)
            raise
        if confirmation["status"] != "succeeded":
            raise PaymentError()
        purchase = await self.on_payment_success(
            email, rider_id, provider.method, amount
        )
        return purchase, confirmation
