"""
Domain-split SQLAlchemy models.

Exposes `Base`, the time helpers and every ORM class so callers can use
`from final10.db import models` and `models.Auction`.
"""

from .base import Base, now_utc, as_utc  # re-export

# Domain models
from .users import User
from .audit import AuditLog
from .auctions import Auction, Bid, AuctionWatcher
from .points import PointsLedger
from .referrals import ReferralLog
from .levels import UserLevel, LevelReward, LevelMilestone
from .tasks import DailyTaskProgress
from .promo import PromoCode, PromoCodeUsage, Commission
from .feed import FeedItem
from .shield import ShieldApiKey, ShieldEvent, ShieldEnforcement

__all__ = [
    # base
    "Base",
    "now_utc",
    "as_utc",
    # users/audit
    "User",
    "AuditLog",
    # auctions
    "Auction",
    "Bid",
    "AuctionWatcher",
    # points/referrals
    "PointsLedger",
    "ReferralLog",
    # gamification
    "UserLevel",
    "LevelReward",
    "LevelMilestone",
    "DailyTaskProgress",
    # promotions
    "PromoCode",
    "PromoCodeUsage",
    "Commission",
    # feed
    "FeedItem",
    # shield
    "ShieldApiKey",
    "ShieldEvent",
    "ShieldEnforcement",
]
