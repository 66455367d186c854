from .user import UserCreate, UserResponse, TokenResponse
from .product import ProductCreate, ProductUpdate, ProductResponse, ProductListResponse
from .bid import BidCreate, BidResponse, BidPlacementResponse, BidStatsResponse
from .wallet import WalletResponse, TransactionResponse, TransactionListResponse
from .feedback import FeedbackCreate, FeedbackResponse, FeedbackListResponse
from .notification import NotificationResponse, NotificationListResponse
