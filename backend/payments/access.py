from __future__ import annotations

import logging
from datetime import timedelta

from django.utils import timezone

from content.models import UserNotification

from .models import PLAN_ACCESS_FIELDS, Plan, UserAccess

logger = logging.getLogger(__name__)


def _is_future(value, now):
    return bool(value and value > now)


def get_user_access(user) -> UserAccess | None:
    if not user or not user.is_authenticated:
        return None
    return UserAccess.objects.filter(user=user).first()


def compute_active_access(access: UserAccess | None, now=None) -> dict:
    """Effective entitlements; an active combo covers both PYQs and materials."""
    now = now or timezone.now()
    if access is None:
        return {
            "comboActive": False,
            "pyqActive": False,
            "materialActive": False,
            "comboExpiry": None,
            "pyqExpiry": None,
            "materialExpiry": None,
        }

    combo_active = access.combo_access and _is_future(access.expiry, now)
    pyq_active = combo_active or (access.pyq_access and _is_future(access.pyq_expiry, now))
    material_active = combo_active or (access.material_access and _is_future(access.material_expiry, now))

    def _effective_expiry(active, own_expiry):
        if not active:
            return None
        return access.expiry if combo_active else own_expiry

    return {
        "comboActive": bool(combo_active),
        "pyqActive": bool(pyq_active),
        "materialActive": bool(material_active),
        "comboExpiry": access.expiry if combo_active else None,
        "pyqExpiry": _effective_expiry(pyq_active, access.pyq_expiry),
        "materialExpiry": _effective_expiry(material_active, access.material_expiry),
    }


def _flag_for_plan(active: dict, plan_code: str):
    if plan_code == "combo":
        return active["comboActive"], active["comboExpiry"]
    if plan_code == "pyq":
        return active["pyqActive"], active["pyqExpiry"]
    return active["materialActive"], active["materialExpiry"]


class AccessChecker:
    """Caches plans and the user's access row for the length of one request."""

    def __init__(self, user, now=None):
        self.user = user
        self.is_admin = getattr(user, "role", "") == "admin"
        self.active = compute_active_access(get_user_access(user), now=now)
        self.plans = {plan.code: plan for plan in Plan.objects.all()}

    def can_access(self, plan_code: str) -> bool:
        if self.is_admin:
            return True
        plan = self.plans.get(plan_code)
        if not plan or not plan.is_active:
            return False
        if plan.is_free:
            return True
        unlocked, _expiry = _flag_for_plan(self.active, plan_code)
        return unlocked

    def status(self) -> dict:
        result = {}
        for code in ("pyq", "materials", "combo"):
            _unlocked, expiry = _flag_for_plan(self.active, code)
            result[code] = {"unlocked": self.can_access(code), "expiry": expiry}
        return result


def can_access_plan(user, plan_code: str) -> bool:
    return AccessChecker(user).can_access(plan_code)


def grant_access_for_plan(user, plan: Plan, now=None):
    """Switch on the plan's entitlement, notify the user and return the new expiry.

    Plans whose code maps to no entitlement grant nothing and return ``None``.
    """
    now = now or timezone.now()
    if plan.code not in PLAN_ACCESS_FIELDS:
        logger.error("Plan %s has unknown code %r; no access granted to user %s", plan.id, plan.code, user.id)
        return None
    flag_field, expiry_field = PLAN_ACCESS_FIELDS[plan.code]
    expiry = now + timedelta(days=plan.duration_days or 365)

    access, _ = UserAccess.objects.get_or_create(user=user)
    setattr(access, flag_field, True)
    setattr(access, expiry_field, expiry)
    access.save(update_fields=[flag_field, expiry_field, "updated_at"])

    UserNotification.objects.create(
        user=user,
        title="Premium activated",
        message=f"Your {plan.name} is active.",
    )
    return expiry
