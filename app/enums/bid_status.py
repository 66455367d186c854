from enum import Enum

class BidStatus(str, Enum):
    active = "active"
    won = "won"
    lost = "lost"
