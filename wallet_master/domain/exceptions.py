"""Domain-specific exceptions

Every error that can reach a client derives from WalletError and carries a
machine-readable category next to the human-readable message. Nothing placed
in `details` may contain card numbers or processor secrets.
"""

from typing import Any, Dict, Optional


class WalletError(Exception):
    """Base exception for domain layer"""

    category = "internal_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to API error response format"""
        return {"message": self.message, "error": self.category, **self.details}


class InvalidRequest(WalletError):
    """Missing or malformed input; the caller can fix it"""

    category = "invalid_request"
    status_code = 400


class CardNotFound(InvalidRequest):
    """Card does not exist or belongs to another user"""

    category = "card_not_found"
    status_code = 404


class RecipientNotFound(InvalidRequest):
    """Transfer recipient does not exist"""

    category = "recipient_not_found"
    status_code = 404


class InsufficientFunds(WalletError):
    """Source card balance is lower than the requested amount"""

    category = "insufficient_funds"
    status_code = 400


class RecipientHasNoCard(WalletError):
    """Transfer recipient owns no card that could be credited"""

    category = "recipient_has_no_card"
    status_code = 404


class PaymentDeclined(WalletError):
    """Payment processor refused the payment"""

    category = "payment_declined"
    status_code = 400


class GatewayUnavailable(WalletError):
    """Selected gateway is unknown or not configured"""

    category = "gateway_unavailable"
    status_code = 500


class PaymentProcessingFailed(WalletError):
    """Unexpected failure while talking to the payment processor"""

    category = "payment_processing_failed"
    status_code = 500


class ReconciliationRequired(WalletError):
    """Money moved at the processor but the ledger could not record it"""

    category = "reconciliation_required"
    status_code = 500


class GatewayError(Exception):
    """Transport or protocol fault inside a gateway adapter"""

    pass


class StaleBalanceError(Exception):
    """Card balance changed between read and write"""

    pass
