"""
Domain-split Pydantic schemas.

Re-exports every request/response model so routers can use
`from final10.db import schemas` and `schemas.AuctionOut`.
"""

from .audits import AuditLogBase, AuditLogCreate, AuditLog
from .users import (
    SignupRequest,
    LoginRequest,
    UserPublic,
    AuthResponse,
    UserUpdate,
    UpgradeRequest,
    RoleUpdateRequest,
    GrantPointsRequest,
    ReferralSummary,
    SearchStatus,
)
from .auctions import (
    AuctionImage,
    AuctionCreate,
    BidCreate,
    BidOut,
    AuctionOut,
    AuctionDetail,
    Pagination,
    AuctionList,
    Listing,
)
from .points import LedgerEntry, TrialState, PointsSummary, RedeemRequest, RedeemResponse, LeaderboardEntry
from .levels import XPInfo, MilestoneOut, LevelRewardOut, LevelOverview, AwardXPRequest, LevelLeaderboardEntry
from .tasks import TaskState, DailyTasksOut, ShareRequest
from .promo import (
    clean_code,
    PromoCodeCreate,
    AdminPromoCodeCreate,
    PromoCodeUpdate,
    AdminPromoCodeUpdate,
    PromoCodeOut,
    PublicPromoCode,
    ValidateRequest,
    ApplyRequest,
    DiscountResult,
    UsageOut,
    CommissionOut,
    PayCommissionRequest,
)
from .feed import FeedItemIn, FeedItemOut, FeedPage, FeedSubmitRequest
from .shield import (
    IngestRequest,
    IngestResponse,
    ShieldEventOut,
    ShieldEnforcementOut,
    ReviewRequest,
    OverrideRequest,
    ApiKeyCreateRequest,
    ApiKeyOut,
    ApiKeyCreateResponse,
)
