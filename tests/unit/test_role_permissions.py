from types import SimpleNamespace

import pytest

from final10.utils import role_permissions as rp


def _user(role, **perms):
    return SimpleNamespace(role=role, **perms)


def test_validate_role():
    rp.validate_role("admin")
    with pytest.raises(ValueError):
        rp.validate_role("owner")


def test_superadmin_passes_every_known_permission():
    boss = _user("superadmin")
    assert all(rp.has_permission(boss, p) for p in rp.ADMIN_PERMISSIONS)
    assert rp.has_permission(boss, "can_launch_rockets") is False


def test_admin_needs_the_flag():
    admin = _user("admin", can_manage_shield=True)
    assert rp.has_permission(admin, rp.PERM_MANAGE_SHIELD) is True
    assert rp.has_permission(admin, rp.PERM_MANAGE_USERS) is False
    assert rp.is_staff(admin) is True


def test_plain_user_has_nothing():
    user = _user("user", can_manage_shield=True)
    assert rp.has_permission(user, rp.PERM_MANAGE_SHIELD) is False
    assert rp.is_staff(user) is False
    assert set(rp.permissions_for(user).values()) == {False}


def test_promotions_access_follows_role_or_flag():
    assert rp.can_manage_promotions(_user("admin")) is True
    assert rp.can_manage_promotions(_user("user", can_manage_promotions=True)) is True
    assert rp.can_manage_promotions(_user("user")) is False
