from .finance.wallet_service import WalletService
from .finance.ledger_audit import LedgerAuditService
from .communication.notification_service import NotificationService
from .auction.bidding_service import BiddingService
from .auction.settlement_service import SettlementService
from .auction.product_service import ProductService
from .feedback.feedback_service import FeedbackService
