"""Payment outcomes for a checkout — commands and handler.

The client relays what the gateway told it. That payload is normalized at
this boundary and the transaction is checked with the gateway through the
payment verifier before the checkout is marked paid.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.checkout.access import checkout_for_caller, load_checkout
from ordering.checkout.checkout import Checkout
from ordering.checkout.normalization import normalize_payment_details
from ordering.domain import ordering
from ordering.errors import InvalidPaymentStatus
from ordering.gateway import get_verifier

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Checkout")
class ConfirmPayment:
    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    payment_status = String(max_length=50)
    payment_details = Text()  # JSON: gateway payload as relayed by the client


@ordering.command(part_of="Checkout")
class RecordPaymentFailure:
    checkout_id = Identifier(required=True)
    user_id = Identifier(required=True)
    reason = String(max_length=500)
    payment_details = Text()  # JSON


@ordering.command(part_of="Checkout")
class RefundCheckout:
    checkout_id = Identifier(required=True)


@ordering.command_handler(part_of=Checkout)
class CheckoutPaymentHandler:
    @handle(ConfirmPayment)
    def confirm_payment(self, command):
        checkout = checkout_for_caller(command.checkout_id, command.user_id)
        checkout.assert_not_finalized()

        details = normalize_payment_details(command.payment_details)
        try:
            checkout.check_payment_confirmation(command.payment_status, details)
        except InvalidPaymentStatus:
            logger.warning(
                "Checkout payment rejected",
                checkout_id=str(checkout.id),
                payment_status=command.payment_status,
                gateway_status=details.status if details else None,
            )
            raise

        amount = details.amount if details and details.amount is not None else checkout.total_price
        verification = get_verifier().verify_payment(
            transaction_id=details.transaction_id if details else None,
            amount=amount,
            currency=details.currency if details else None,
        )
        if not verification.confirmed:
            logger.warning(
                "Checkout payment not verified by gateway",
                checkout_id=str(checkout.id),
                transaction_id=details.transaction_id if details else None,
                reason=verification.failure_reason,
            )
            raise InvalidPaymentStatus(
                "Payment could not be verified with the gateway",
                {"reason": verification.failure_reason},
            )

        checkout.confirm_payment(command.payment_status, details)
        current_domain.repository_for(Checkout).add(checkout)

        logger.info(
            "Checkout payment confirmed",
            checkout_id=str(checkout.id),
            transaction_id=details.transaction_id if details else None,
            gateway=details.gateway if details else None,
        )
        return str(checkout.id)

    @handle(RecordPaymentFailure)
    def record_payment_failure(self, command):
        checkout = checkout_for_caller(command.checkout_id, command.user_id)
        checkout.assert_not_finalized()

        details = normalize_payment_details(command.payment_details)
        checkout.record_payment_failure(command.reason or "Payment failed", details)
        current_domain.repository_for(Checkout).add(checkout)

        logger.info(
            "Checkout payment failed",
            checkout_id=str(checkout.id),
            reason=checkout.failure_reason,
        )
        return str(checkout.id)

    @handle(RefundCheckout)
    def refund(self, command):
        checkout = load_checkout(command.checkout_id)
        checkout.refund()
        current_domain.repository_for(Checkout).add(checkout)

        logger.info("Checkout refunded", checkout_id=str(checkout.id))
        return str(checkout.id)
