from decimal import Decimal
from typing import Optional

from fastapi import status


class MarketplaceError(Exception):
    """Base class for errors that are safe to show to the caller."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message}


class NotFoundError(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN


class BusinessRuleError(MarketplaceError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuctionNotActiveError(BusinessRuleError):
    pass


class InsufficientFundsError(BusinessRuleError):
    pass


class DuplicateFeedbackError(BusinessRuleError):
    pass


class BidRejectedError(BusinessRuleError):
    def __init__(self, message: str, next_valid_amount: Optional[Decimal] = None):
        super().__init__(message)
        self.next_valid_amount = next_valid_amount

    def to_dict(self) -> dict:
        data = super().to_dict()
        if self.next_valid_amount is not None:
            data["next_valid_amount"] = float(self.next_valid_amount)
        return data


class ConcurrencyError(MarketplaceError):
    """Optimistic update kept losing against concurrent writers."""
    status_code = status.HTTP_409_CONFLICT
