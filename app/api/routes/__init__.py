from .auth import router as auth_router
from .products import router as products_router
from .bids import router as bids_router
from .wallet import router as wallet_router
from .feedback import router as feedback_router
from .notifications import router as notifications_router
