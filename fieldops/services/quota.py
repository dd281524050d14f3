"""Leave entitlement, usage and balance calculations.

Entitlements come from ``LEAVE_CATEGORY_POLICIES``; tenure-based categories
are scaled by the configured ``TenureProration``. Everything is expressed in
working minutes and converted to days only for display.
"""

from __future__ import annotations

import calendar
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING, Protocol
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlmodel import col

from fieldops.config import TenureProration, get_settings
from fieldops.exceptions import NotFoundError
from fieldops.models.enums import LeaveCategory, LeaveDurationType, LeaveStatus, ProrationMethod
from fieldops.models.leave import LeaveRequest
from fieldops.models.user import LeaveUsage, User
from fieldops.schemas.quota import CategoryQuota, QuotaSummaryItem, UserLeaveBalance
from fieldops.services.duration import WORK_MINUTES_PER_DAY, minutes_to_days

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_DAYS_PER_MONTH = 30


@dataclass(frozen=True)
class LeaveCategoryPolicy:
    """Rules for one leave category."""

    label: str
    annual_days: int
    allowed_duration_types: tuple[LeaveDurationType, ...] = (LeaveDurationType.FULL_DAY,)
    prorated_by_tenure: bool = False
    max_consecutive_days: int | None = None
    min_days_notice: int | None = None
    requires_documentation: bool = False
    birthday_month_only: bool = False


LEAVE_CATEGORY_POLICIES: dict[LeaveCategory, LeaveCategoryPolicy] = {
    LeaveCategory.SICK: LeaveCategoryPolicy(
        label="Sick leave",
        annual_days=30,
        allowed_duration_types=(LeaveDurationType.FULL_DAY, LeaveDurationType.TIME_BASED),
    ),
    LeaveCategory.PERSONAL: LeaveCategoryPolicy(
        label="Personal leave",
        annual_days=3,
        allowed_duration_types=(LeaveDurationType.FULL_DAY, LeaveDurationType.TIME_BASED),
        min_days_notice=3,
    ),
    LeaveCategory.VACATION: LeaveCategoryPolicy(
        label="Vacation",
        annual_days=6,
        prorated_by_tenure=True,
        min_days_notice=7,
    ),
    LeaveCategory.BIRTHDAY: LeaveCategoryPolicy(
        label="Birthday leave",
        annual_days=1,
        max_consecutive_days=1,
        birthday_month_only=True,
    ),
    LeaveCategory.OTHER: LeaveCategoryPolicy(
        label="Other leave",
        annual_days=5,
        allowed_duration_types=(LeaveDurationType.FULL_DAY, LeaveDurationType.TIME_BASED),
        requires_documentation=True,
    ),
}

# A callable (policy, employment_start_date, as_of) -> entitled days.
ProrationFunc = Callable[[LeaveCategoryPolicy, date, date], float]


class LeaveRecord(Protocol):
    category: str
    status: str
    start_at: datetime
    total_minutes: int


@dataclass
class UsedLeave:
    """Approved (``used``) and pending minutes for one category and year."""

    used: int = 0
    pending: int = 0


@dataclass
class LeaveValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def get_category_policy(category: LeaveCategory | str) -> LeaveCategoryPolicy:
    return LEAVE_CATEGORY_POLICIES[LeaveCategory(category)]


# ---------------------------------------------------------------------------
# Entitlement
# ---------------------------------------------------------------------------


def months_employed(employment_start_date: date, as_of: date) -> int:
    """Completed 30-day months between the start date and ``as_of``."""
    days = (as_of - employment_start_date).days
    return max(days, 0) // _DAYS_PER_MONTH


def _default_employment_start(as_of: date) -> date:
    try:
        return as_of.replace(year=as_of.year - 1)
    except ValueError:
        # 29 February
        return as_of.replace(year=as_of.year - 1, day=28)


def prorate_days(
    policy: LeaveCategoryPolicy,
    employment_start_date: date,
    as_of: date,
    proration: TenureProration,
) -> float:
    """Entitled days for a tenure-based category under ``proration``."""
    months = months_employed(employment_start_date, as_of)

    if proration.method == ProrationMethod.MONTHS_EMPLOYED:
        days = months // max(proration.months_per_day, 1)
        return min(days, proration.max_days)

    if proration.method == ProrationMethod.FIRST_YEAR_PRORATA:
        if months >= 12:
            return policy.annual_days
        return (policy.annual_days * months) // 12

    return policy.annual_days


def calculate_user_quota(
    category: LeaveCategory | str,
    employment_start_date: date | None,
    as_of: date | None = None,
    proration: TenureProration | ProrationFunc | None = None,
) -> int:
    """Annual entitlement in minutes for one category.

    A missing employment start date falls back to one year before ``as_of``
    so that proration always sees a positive tenure.
    """
    policy = get_category_policy(category)
    if not policy.prorated_by_tenure:
        return policy.annual_days * WORK_MINUTES_PER_DAY

    today = as_of or date.today()
    if employment_start_date is None:
        employment_start_date = _default_employment_start(today)
        logger.warning(
            "No employment start date for %s quota; assuming %s", LeaveCategory(category), employment_start_date
        )

    if proration is None:
        proration = get_settings().quota_proration
    if callable(proration):
        days = proration(policy, employment_start_date, today)
    else:
        days = prorate_days(policy, employment_start_date, today, proration)

    return max(int(days * WORK_MINUTES_PER_DAY), 0)


# ---------------------------------------------------------------------------
# Usage and balance
# ---------------------------------------------------------------------------


def local_year(moment: datetime, tz: ZoneInfo | None = None) -> int:
    """Calendar year of ``moment`` in ``tz`` (default: the configured timezone)."""
    # naive values are already wall-clock times in the configured zone
    if moment.tzinfo is None:
        return moment.year
    return moment.astimezone(tz or ZoneInfo(get_settings().timezone)).year


def calculate_used_leave(
    records: Iterable[LeaveRecord],
    category: LeaveCategory | str,
    year: int,
    tz: ZoneInfo | None = None,
) -> UsedLeave:
    """Sum approved and pending minutes of ``category`` starting in ``year``.

    The year is read on the local calendar of ``tz`` (default: the configured
    timezone), so leave starting just after local midnight on January 1st
    belongs to the new year even when its UTC instant does not.
    """
    zone = tz or ZoneInfo(get_settings().timezone)
    target = LeaveCategory(category)
    result = UsedLeave()
    for record in records:
        if record.category != target or local_year(record.start_at, zone) != year:
            continue
        if record.status == LeaveStatus.APPROVED:
            result.used += record.total_minutes
        elif record.status == LeaveStatus.PENDING:
            result.pending += record.total_minutes
    return result


def build_leave_balance(
    user_id: uuid.UUID,
    records: Iterable[LeaveRecord],
    year: int,
    employment_start_date: date | None = None,
    birth_month: int | None = None,
    quota_overrides: dict[LeaveCategory, int] | None = None,
    as_of: date | None = None,
    tz: ZoneInfo | None = None,
) -> UserLeaveBalance:
    """Assemble every category's quota, usage and remaining minutes."""
    records = list(records)
    zone = tz or ZoneInfo(get_settings().timezone)
    overrides = quota_overrides or {}
    quotas: list[CategoryQuota] = []
    for category in LeaveCategory:
        total = overrides.get(category)
        if total is None:
            total = calculate_user_quota(category, employment_start_date, as_of)
        usage = calculate_used_leave(records, category, year, zone)
        quotas.append(
            CategoryQuota(
                category=category,
                total_minutes=total,
                used_minutes=usage.used,
                pending_minutes=usage.pending,
                remaining_minutes=max(0, total - usage.used - usage.pending),
            )
        )
    return UserLeaveBalance(
        user_id=user_id,
        year=year,
        employment_start_date=employment_start_date,
        birth_month=birth_month,
        quotas=quotas,
    )


def get_leave_quota_summary(balance: UserLeaveBalance, as_of: date | None = None) -> list[QuotaSummaryItem]:
    """Display rows per category, flagging (not blocking) over-quota usage."""
    today = as_of or date.today()
    items: list[QuotaSummaryItem] = []
    for quota in balance.quotas:
        policy = get_category_policy(quota.category)
        remaining = max(0, quota.total_minutes - quota.used_minutes - quota.pending_minutes)

        note = None
        if policy.prorated_by_tenure and balance.employment_start_date is not None:
            months = months_employed(balance.employment_start_date, today)
            note = f"Based on {months} months of service"
        if policy.birthday_month_only and balance.birth_month:
            note = f"Only during {calendar.month_name[balance.birth_month]}"

        items.append(
            QuotaSummaryItem(
                category=quota.category,
                label=policy.label,
                total_minutes=quota.total_minutes,
                used_minutes=quota.used_minutes,
                pending_minutes=quota.pending_minutes,
                remaining_minutes=remaining,
                total_days=minutes_to_days(quota.total_minutes),
                remaining_days=minutes_to_days(remaining),
                over_quota=quota.used_minutes + quota.pending_minutes > quota.total_minutes,
                allowed_duration_types=list(policy.allowed_duration_types),
                note=note,
            )
        )
    return items


async def get_user_leave_balance(
    session: AsyncSession,
    user_id: uuid.UUID,
    year: int,
    as_of: date | None = None,
) -> UserLeaveBalance:
    """Load a user's leave records for ``year`` and build the balance."""
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")

    zone = ZoneInfo(get_settings().timezone)
    year_start = datetime(year, 1, 1, tzinfo=zone)
    next_year_start = datetime(year + 1, 1, 1, tzinfo=zone)
    result = await session.execute(
        select(LeaveRequest).where(
            col(LeaveRequest.requester_id) == user_id,
            col(LeaveRequest.start_at) >= year_start,
            col(LeaveRequest.start_at) < next_year_start,
        )
    )
    records = list(result.scalars().all())

    usage_result = await session.execute(
        select(LeaveUsage).where(
            col(LeaveUsage.user_id) == user_id,
            col(LeaveUsage.quota_minutes).is_not(None),
        )
    )
    overrides = {LeaveCategory(u.category): u.quota_minutes for u in usage_result.scalars().all()}

    return build_leave_balance(
        user_id,
        records,
        year,
        employment_start_date=user.employment_start_date,
        birth_month=user.birth_month,
        quota_overrides=overrides,  # type: ignore[arg-type]
        as_of=as_of,
        tz=zone,
    )


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------


def validate_leave_request(
    category: LeaveCategory | str,
    start_date: date,
    end_date: date,
    total_minutes: int,
    duration_type: LeaveDurationType,
    balance: UserLeaveBalance,
    today: date | None = None,
) -> LeaveValidationResult:
    """Apply category rules to a prospective request.

    Quota shortfalls are warnings: managers keep the authority to approve
    over-quota leave.
    """
    today = today or date.today()
    target = LeaveCategory(category)
    policy = get_category_policy(target)
    result = LeaveValidationResult()

    if duration_type not in policy.allowed_duration_types:
        allowed = ", ".join(t.value for t in policy.allowed_duration_types)
        result.errors.append(f"{policy.label} can only be taken as: {allowed}")

    calendar_days = (end_date - start_date).days + 1
    if policy.max_consecutive_days is not None and calendar_days > policy.max_consecutive_days:
        result.errors.append(f"{policy.label} is limited to {policy.max_consecutive_days} consecutive days")

    if policy.birthday_month_only and balance.birth_month != start_date.month:
        month = calendar.month_name[balance.birth_month] if balance.birth_month else "unknown"
        result.errors.append(f"{policy.label} can only be taken during the birth month ({month})")

    quota = balance.quota_for(target)
    if quota is not None and total_minutes > quota.remaining_minutes:
        result.warnings.append(
            f"{policy.label} quota exceeded: {minutes_to_days(quota.remaining_minutes):g} days remaining, "
            f"{minutes_to_days(total_minutes):g} days requested"
        )

    if policy.min_days_notice is not None and start_date - today < timedelta(days=policy.min_days_notice):
        result.warnings.append(f"{policy.label} should be requested at least {policy.min_days_notice} days ahead")

    if policy.requires_documentation:
        result.warnings.append(f"{policy.label} may require supporting documents")

    certificate_days = get_settings().sick_certificate_days
    if target == LeaveCategory.SICK and total_minutes > certificate_days * WORK_MINUTES_PER_DAY:
        result.warnings.append(f"Sick leave longer than {certificate_days} days requires a medical certificate")

    return result
