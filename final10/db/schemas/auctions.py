import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator

Category = Literal["electronics", "fashion", "home", "sports", "collectibles", "automotive", "books", "toys", "other"]
Condition = Literal["new", "like-new", "good", "fair", "poor"]


class AuctionImage(BaseModel):
    url: str
    alt: Optional[str] = None
    is_primary: bool = False


class AuctionCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = Field(min_length=1)
    category: Category
    subcategory: Optional[str] = None
    condition: Condition
    starting_price: float = Field(ge=0)
    buy_it_now_price: Optional[float] = Field(default=None, ge=0)
    reserve_price: Optional[float] = Field(default=None, ge=0)
    bid_increment: float = Field(default=1.0, gt=0)
    start_time: Optional[datetime] = None
    end_time: datetime
    images: List[AuctionImage] = []
    tags: List[str] = []
    location: Optional[Dict[str, Any]] = None
    shipping: Optional[Dict[str, Any]] = None

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, v: List[str]):
        return [t.strip().lower() for t in v if t and t.strip()]


class BidCreate(BaseModel):
    amount: float = Field(gt=0)


class BidOut(BaseModel):
    id: uuid.UUID
    bidder_id: uuid.UUID
    amount: float
    is_winning: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuctionOut(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    category: str
    subcategory: Optional[str] = None
    condition: str
    starting_price: float
    current_bid: float
    buy_it_now_price: Optional[float] = None
    reserve_price: Optional[float] = None
    bid_increment: float
    start_time: datetime
    end_time: datetime
    time_remaining: int = 0
    status: str
    seller_id: Optional[uuid.UUID] = None
    winner_id: Optional[uuid.UUID] = None
    bid_count: int
    views: int
    is_featured: bool
    images: List[Dict[str, Any]] = []
    tags: List[str] = []
    location: Optional[Dict[str, Any]] = None
    shipping: Optional[Dict[str, Any]] = None
    source_platform: str
    source_external_id: Optional[str] = None
    source_url: Optional[str] = None
    deal_potential: int
    competition_level: str
    trending_score: int
    last_updated: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AuctionDetail(AuctionOut):
    bids: List[BidOut] = []
    watcher_count: int = 0


class Pagination(BaseModel):
    current: int
    pages: int
    total: int
    limit: int


class AuctionList(BaseModel):
    auctions: List[AuctionOut]
    pagination: Pagination


class Listing(BaseModel):
    """A normalized marketplace listing ready for persistence."""
    platform: str
    external_id: str
    title: str
    description: str = ""
    price: float
    url: Optional[str] = None
    image_url: Optional[str] = None
    time_remaining: int
    bid_count: int = 0
    category: str = "other"
    condition: str = "good"
    tags: List[str] = []
    deal_potential: int
    competition_level: str
    trending_score: int
