"""Payment record validation utilities."""
from banani.core.errors import ValidationFailure
from banani.models.payment import PaymentMethod, PaymentMethodCreate

PAYLOAD_FIELDS = ("transaction_id", "bank_number", "cheque_number", "cheque_issuer_name")

REQUIRED_FIELDS = {
    PaymentMethod.GOOGLE_PAY: {
        "transaction_id": "Please enter Google Pay transaction ID",
    },
    PaymentMethod.BANK_TRANSFER: {
        "bank_number": "Please enter bank account number",
    },
    PaymentMethod.CHEQUE: {
        "cheque_number": "Please enter cheque number",
        "cheque_issuer_name": "Please enter vepari/cheque issuer name",
    },
}


def validate_payment_method(payment: PaymentMethodCreate) -> dict:
    """
    Validate the method-specific payload and return only its fields.

    Rules:
    - google_pay needs a transaction id
    - bank_transfer needs an account number
    - cheque needs a cheque number and issuer name
    Fields belonging to other methods are dropped.
    """
    required = REQUIRED_FIELDS[payment.payment_method]
    for field_name, message in required.items():
        if not getattr(payment, field_name):
            raise ValidationFailure(message, code=f"MISSING_{field_name.upper()}")

    return {
        field_name: (getattr(payment, field_name) if field_name in required else None)
        for field_name in PAYLOAD_FIELDS
    }
