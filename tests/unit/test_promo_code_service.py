from datetime import datetime, timedelta, UTC

import pytest
from pydantic import ValidationError

from final10.db import models, schemas
from final10.services.errors import PromoCodeError
from final10.services.promo_code_service import (
    PromoCodeService,
    calculate_commission,
    calculate_discount,
    validate_usage,
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


def _code(**overrides):
    fields = {
        "code": "SAVE20",
        "is_active": True,
        "valid_from": NOW - timedelta(days=1),
        "valid_until": None,
        "usage_limit": None,
        "usage_count": 0,
        "minimum_order_value": 0.0,
        "discount_type": "percentage",
        "discount_value": 20.0,
    }
    fields.update(overrides)
    return models.PromoCode(**fields)


def test_validate_usage_reports_every_failure_in_order():
    promo = _code(
        is_active=False,
        valid_until=NOW - timedelta(hours=1),
        usage_limit=5,
        usage_count=5,
        minimum_order_value=50.0,
    )
    assert validate_usage(promo, 10, NOW) == [
        "Promo code is not active",
        "Promo code has expired",
        "Promo code usage limit reached",
        "Minimum order value of $50.00 required",
    ]


def test_validate_usage_rejects_future_codes():
    promo = _code(valid_from=NOW + timedelta(days=2))
    assert validate_usage(promo, 100, NOW) == ["Promo code is not yet valid"]


@pytest.mark.parametrize(
    "discount_type,value,order,expected",
    [
        ("percentage", 20.0, 100.0, {"discount": 20.0, "final_amount": 80.0, "savings": 20.0}),
        ("fixed", 30.0, 20.0, {"discount": 20.0, "final_amount": 0.0, "savings": 20.0}),
        ("free_shipping", 0.0, 40.0, {"discount": 0.0, "final_amount": 40.0, "savings": 0.0}),
    ],
)
def test_calculate_discount(discount_type, value, order, expected):
    promo = _code(discount_type=discount_type, discount_value=value)
    assert calculate_discount(promo, order, NOW) == expected


def test_invalid_code_gives_no_discount():
    promo = _code(minimum_order_value=100.0)
    assert calculate_discount(promo, 60.0, NOW) == {"discount": 0.0, "final_amount": 60.0, "savings": 0.0}


def test_calculate_commission_rounds_to_cents():
    assert calculate_commission(99.99, 7.5) == 7.5
    assert calculate_commission(100, 0) == 0.0


def test_clean_code_uppercases_and_checks_format():
    assert schemas.clean_code(" summer-10 ") == "SUMMER-10"
    with pytest.raises(ValueError):
        schemas.clean_code("no spaces")
    with pytest.raises(ValueError):
        schemas.clean_code("AB")


def test_create_schema_leaves_required_checks_to_service():
    payload = schemas.PromoCodeCreate(code="ABC123")
    assert payload.description is None
    assert payload.discount_value is None
    with pytest.raises(ValidationError):
        schemas.PromoCodeCreate(code="ABC123", discount_value=-1)


@pytest.fixture
def creator(make_user):
    return make_user()


@pytest.fixture
def service(db):
    return PromoCodeService(db)


def _create(service, creator, **fields):
    data = {"code": "SAVE20", "description": "Twenty off", "discount_type": "percentage", "discount_value": 20, "commission_rate": 10}
    data.update(fields)
    promo = service.create(
        schemas.PromoCodeCreate(**data),
        creator_id=creator.id,
        creator_type="influencer",
        created_by_id=creator.id,
    )
    service.db.commit()
    return promo


def test_duplicate_code_rejected(service, creator):
    _create(service, creator)
    with pytest.raises(PromoCodeError, match="already exists"):
        _create(service, creator, code="save20")


def test_create_normalizes_code(service, creator):
    promo = _create(service, creator, code=" summer-10 ")
    assert promo.code == "SUMMER-10"


@pytest.mark.parametrize(
    "fields,message",
    [
        ({"description": None}, "Missing required fields"),
        ({"discount_type": None}, "Missing required fields"),
        ({"discount_value": None}, "Missing required fields"),
        ({"description": "   "}, "Missing required fields"),
        ({"code": None}, "Missing required fields"),
        ({"code": "no spaces!"}, "Promo code must be 3-50 characters"),
    ],
)
def test_create_rejects_missing_fields_and_bad_codes(service, creator, fields, message):
    with pytest.raises(PromoCodeError, match=message) as exc:
        _create(service, creator, **fields)
    assert exc.value.status_code == 400


def test_validity_window_must_be_ordered(service, creator):
    start = NOW + timedelta(days=5)
    with pytest.raises(PromoCodeError, match="valid_until"):
        _create(service, creator, valid_from=start, valid_until=start - timedelta(days=1))


def test_validate_unknown_code_is_not_found(service, user):
    with pytest.raises(PromoCodeError) as exc:
        service.validate("NOPE", 10, user)
    assert exc.value.status_code == 404


def test_apply_records_usage_counters_and_commission(db, service, creator, user):
    promo = _create(service, creator)
    result = service.apply("save20", 100.0, "order-1", user, ip="203.0.113.1")

    assert result["discount"] == {"discount": 20.0, "final_amount": 80.0, "savings": 20.0}
    assert result["commission_amount"] == 10.0
    db.refresh(promo)
    assert promo.usage_count == 1
    assert promo.total_revenue == 100.0
    assert promo.total_commission == 10.0
    commission = db.get(models.Commission, result["commission_id"])
    assert commission.status == "pending"
    assert commission.creator_id == creator.id

    with pytest.raises(PromoCodeError, match="maximum number of times"):
        service.apply("SAVE20", 100.0, "order-2", user)


def test_zero_rate_codes_open_no_commission(service, creator, user):
    _create(service, creator, code="NOCUT", commission_rate=0)
    result = service.apply("NOCUT", 50.0, "order-1", user)
    assert result["commission_id"] is None


def test_update_ignores_immutable_fields(service, creator):
    promo = _create(service, creator)
    updated = service.update(promo, schemas.PromoCodeUpdate(description="New text", is_public=True))
    assert updated.description == "New text"
    assert updated.is_public is True
    assert updated.code == "SAVE20"


def test_commission_lifecycle_pays_in_points(db, service, creator, user, admin_user):
    _create(service, creator)
    result = service.apply("SAVE20", 100.0, "order-1", user)
    commission = db.get(models.Commission, result["commission_id"])

    with pytest.raises(PromoCodeError, match="approved before payment"):
        service.pay_commission(commission, schemas.PayCommissionRequest(transaction_id="tx-1"))

    service.approve_commission(commission, approver=admin_user)
    assert commission.approved_by_id == admin_user.id
    with pytest.raises(PromoCodeError, match="only pending"):
        service.approve_commission(commission, approver=admin_user)

    balance_before = creator.points_balance
    paid = service.pay_commission(
        commission, schemas.PayCommissionRequest(transaction_id="tx-1", payout_method="points")
    )
    db.refresh(creator)
    assert paid.status == "paid"
    assert paid.paid_amount == 10.0
    assert creator.points_balance == balance_before + 1000

    with pytest.raises(PromoCodeError, match="cannot be cancelled"):
        service.cancel_commission(commission)
    usage = db.get(models.PromoCodeUsage, result["usage_id"])
    with pytest.raises(PromoCodeError, match="already paid"):
        service.refund_usage(usage)


def test_refund_reverses_counters_and_cancels_commission(db, service, creator, user):
    promo = _create(service, creator)
    result = service.apply("SAVE20", 100.0, "order-1", user)
    usage = db.get(models.PromoCodeUsage, result["usage_id"])

    service.refund_usage(usage)
    db.refresh(promo)
    commission = db.get(models.Commission, result["commission_id"])
    assert usage.status == "refunded"
    assert promo.usage_count == 0
    assert promo.total_revenue == 0.0
    assert commission.status == "cancelled"
    with pytest.raises(PromoCodeError, match="already refunded"):
        service.refund_usage(usage)

    # A refunded usage no longer counts toward the per-user limit
    assert service.validate("SAVE20", 100.0, user)["valid"] is True


def test_creator_stats_groups_commissions(service, creator, make_user):
    _create(service, creator)
    for _ in range(2):
        service.apply("SAVE20", 50.0, "order", make_user())
    stats = service.creator_stats(creator)
    assert stats["total_codes"] == 1
    assert stats["total_usage"] == 2
    assert stats["total_revenue"] == 100.0
    assert stats["earnings"]["pending"] == {"count": 2, "total": 10.0}
    assert stats["earnings"]["paid"] == {"count": 0, "total": 0.0}
