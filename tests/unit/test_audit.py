from unittest.mock import patch

from final10 import audit
from final10.db import models


def test_log_persists_plain_values(db, admin_user):
    entry = audit.log(
        db,
        action=audit.AuditAction.AUCTION_CANCEL,
        target_type="auction",
        actor_user_id=admin_user.id,
        reason="duplicate",
        metadata={"source": "test"},
    )
    assert entry.action_type == "auction_cancel"
    assert entry.status == "success"
    assert entry.metadata_json == {"source": "test"}


def test_promo_helper_adds_code_to_metadata(db, admin_user):
    audit.log_promo_code(
        db,
        actor_user_id=admin_user.id,
        promo_code_id=admin_user.id,
        action=audit.AuditAction.PROMO_CODE_DELETE,
        code="SAVE20",
    )
    row = db.query(models.AuditLog).one()
    assert row.target_type == "promo_code"
    assert row.metadata_json == {"code": "SAVE20"}


def test_safe_log_swallows_write_failures(db, admin_user):
    with patch("final10.audit.log", side_effect=RuntimeError("db down")):
        audit.safe_log(db, action=audit.AuditAction.FEED_IMPORT, target_type="feed", actor_user_id=admin_user.id)
    assert db.query(models.AuditLog).count() == 0
