import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any, Literal
from pydantic import BaseModel, ConfigDict, Field

FeedSource = Literal["youtube", "reddit", "tiktok", "instagram", "app"]


class FeedItemIn(BaseModel):
    source: FeedSource
    source_id: str = Field(min_length=1, max_length=200)
    author: Optional[Dict[str, Any]] = None
    text: Optional[str] = None
    permalink: Optional[str] = None
    media: List[Dict[str, Any]] = []
    tags: List[str] = []
    products: List[Dict[str, Any]] = []
    metrics: Dict[str, Any] = {}
    timestamp: datetime
    rank: float = 0.0
    is_product: bool = True


class FeedItemOut(FeedItemIn):
    id: uuid.UUID

    model_config = ConfigDict(from_attributes=True)


class FeedPage(BaseModel):
    items: List[FeedItemOut]
    next_cursor: Optional[datetime] = None


class FeedSubmitRequest(BaseModel):
    url: str = Field(min_length=1)
    caption: str = ""
