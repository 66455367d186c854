from .user import User
from .product import Product
from .bid import Bid
from .wallet import Wallet
from .transaction import Transaction
from .feedback import Feedback
from .notification import Notification
