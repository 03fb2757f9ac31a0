"""
Feed item repository functions.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from final10.db import models, schemas


def list_product_items(
    db: Session,
    *,
    source: Optional[str] = None,
    tags: Optional[List[str]] = None,
    cursor: Optional[datetime] = None,
    limit: int = 20,
) -> List[models.FeedItem]:
    query = db.query(models.FeedItem).filter(models.FeedItem.is_product.is_(True))
    if source and source != "all":
        query = query.filter(models.FeedItem.source == source)
    if cursor is not None:
        query = query.filter(models.FeedItem.timestamp < cursor)
    query = query.order_by(models.FeedItem.timestamp.desc(), models.FeedItem.rank.desc())
    if not tags:
        return query.limit(limit).all()
    # JSON containment differs per dialect; filter the ordered stream in Python
    wanted = {t.lower() for t in tags}
    matched: List[models.FeedItem] = []
    for item in query.yield_per(200):
        if wanted.intersection(t.lower() for t in (item.tags or [])):
            matched.append(item)
            if len(matched) >= limit:
                break
    return matched


def upsert_items(db: Session, *, items: Iterable[schemas.FeedItemIn]) -> Tuple[int, int]:
    """Insert or update by (source, source_id); returns (created, updated)."""
    created = updated = 0
    for payload in items:
        data = payload.model_dump()
        existing = (
            db.query(models.FeedItem)
            .filter(
                models.FeedItem.source == payload.source,
                models.FeedItem.source_id == payload.source_id,
            )
            .first()
        )
        if existing:
            for key, value in data.items():
                setattr(existing, key, value)
            updated += 1
        else:
            db.add(models.FeedItem(**data))
            created += 1
        db.flush()
    db.commit()
    return created, updated
