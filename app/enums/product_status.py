from enum import Enum

class ProductStatus(str, Enum):
    pending = "pending"
    active = "active"
    ended = "ended"
    rejected = "rejected"
