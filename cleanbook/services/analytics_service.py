"""Analytics service - dashboard statistics for admins and staff.

All figures are computed on request from bookings and assignments; nothing
is cached.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select, func, case, distinct
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.models.assignment import Assignment, AssignmentStatus
from cleanbook.models.booking import Booking
from cleanbook.models.staff import Staff, StaffStatus
from cleanbook.models.team import Team, TeamMember, TeamStatus

PERIODS = ("day", "week", "month", "year")
DEFAULT_PERIOD = "week"

# Time-of-day buckets by assignment hour
TIME_BUCKETS = (
    ("Morning (6-11)", range(6, 12)),
    ("Afternoon (12-17)", range(12, 18)),
    ("Evening (18-23)", range(18, 24)),
    ("Night (0-5)", range(0, 6)),
)

WEEKLY_TREND_LIMIT = 8


def period_start(period: str, now: Optional[datetime] = None) -> datetime:
    """Start of the reporting window. Unknown periods fall back to a week."""
    now = now or datetime.utcnow()
    if period == "day":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "month":
        return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if period == "year":
        return now.replace(month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    return now - timedelta(days=7)


def success_rate(completed: int, total: int, digits: int = 2) -> float:
    if not total:
        return 0.0
    return round(completed * 100.0 / total, digits)


def _count_status(status: AssignmentStatus):
    return func.count(case((Assignment.status == status, 1)))


def _time_bucket(hour: int) -> str:
    for label, hours in TIME_BUCKETS:
        if hour in hours:
            return label
    return TIME_BUCKETS[-1][0]


class AnalyticsService:
    """Service for dashboard statistics."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, model, *conditions) -> int:
        return await self.db.scalar(select(func.count()).select_from(model).where(*conditions))

    # =========================================================================
    # Admin dashboard
    # =========================================================================

    async def dashboard(self, period: str = DEFAULT_PERIOD, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Everything the admin analytics tab shows."""
        if period not in PERIODS:
            period = DEFAULT_PERIOD
        now = now or datetime.utcnow()
        start = period_start(period, now)

        return {
            "overview": await self.overview(start),
            "bookingStatusBreakdown": await self.booking_status_breakdown(),
            "assignmentStatusBreakdown": await self.assignment_status_breakdown(),
            "staffPerformance": await self.staff_performance(),
            "teamPerformance": await self.team_performance(),
            "dailyActivity": await self.daily_activity(start),
            "serviceBreakdown": await self.service_breakdown(),
            "period": period,
            "dateRange": {"start": start.isoformat(), "end": now.isoformat()},
        }

    async def overview(self, start: datetime) -> Dict[str, int]:
        return {
            "totalBookings": await self._count(Booking),
            "totalAssignments": await self._count(Assignment),
            "totalStaff": await self._count(Staff, Staff.status == StaffStatus.ACTIVE),
            "totalTeams": await self._count(Team, Team.status == TeamStatus.ACTIVE),
            "recentBookings": await self._count(Booking, Booking.created_at >= start),
            "recentAssignments": await self._count(Assignment, Assignment.assigned_at >= start),
        }

    async def booking_status_breakdown(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(Booking.status, func.count()).group_by(Booking.status).order_by(Booking.status)
        )
        return [{"status": status.value, "count": count} for status, count in result.all()]

    async def assignment_status_breakdown(self) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            select(Assignment.status, func.count()).group_by(Assignment.status).order_by(Assignment.status)
        )
        return [{"status": status.value, "count": count} for status, count in result.all()]

    async def staff_performance(self) -> List[Dict[str, Any]]:
        """Assignment counts for every active staff member, best first."""
        completed = _count_status(AssignmentStatus.COMPLETED)
        result = await self.db.execute(
            select(
                Staff.id,
                Staff.name,
                Staff.role,
                func.count(Assignment.id),
                completed,
                _count_status(AssignmentStatus.IN_PROGRESS),
                _count_status(AssignmentStatus.ASSIGNED),
            )
            .outerjoin(Assignment, Assignment.staff_id == Staff.id)
            .where(Staff.status == StaffStatus.ACTIVE)
            .group_by(Staff.id, Staff.name, Staff.role)
            .order_by(completed.desc(), Staff.name)
        )
        return [
            {
                "id": staff_id,
                "name": name,
                "role": role.value,
                "total_assignments": total,
                "completed_assignments": done,
                "in_progress_assignments": in_progress,
                "pending_assignments": pending,
            }
            for staff_id, name, role, total, done, in_progress, pending in result.all()
        ]

    async def team_performance(self) -> List[Dict[str, Any]]:
        """Member and assignment counts for every active team, best first."""
        member_counts = (
            select(TeamMember.team_id, func.count().label("member_count"))
            .group_by(TeamMember.team_id)
            .subquery()
        )
        completed = func.count(distinct(case((Assignment.status == AssignmentStatus.COMPLETED, Assignment.id))))
        result = await self.db.execute(
            select(
                Team.id,
                Team.name,
                func.coalesce(member_counts.c.member_count, 0),
                func.count(distinct(Assignment.id)),
                completed,
            )
            .outerjoin(member_counts, member_counts.c.team_id == Team.id)
            .outerjoin(Assignment, Assignment.team_id == Team.id)
            .where(Team.status == TeamStatus.ACTIVE)
            .group_by(Team.id, Team.name, member_counts.c.member_count)
            .order_by(completed.desc(), Team.name)
        )
        return [
            {
                "id": team_id,
                "name": name,
                "member_count": members,
                "total_assignments": total,
                "completed_assignments": done,
            }
            for team_id, name, members, total, done in result.all()
        ]

    async def daily_activity(self, start: datetime) -> List[Dict[str, Any]]:
        """Bookings created per day since ``start``, newest day first."""
        result = await self.db.execute(
            select(Booking.created_at).where(Booking.created_at >= start)
        )
        per_day: Dict[str, int] = defaultdict(int)
        for (created_at,) in result.all():
            per_day[created_at.date().isoformat()] += 1
        return [{"date": day, "bookings": per_day[day]} for day in sorted(per_day, reverse=True)]

    async def service_breakdown(self) -> List[Dict[str, Any]]:
        count = func.count()
        result = await self.db.execute(
            select(Booking.service_type, count)
            .group_by(Booking.service_type)
            .order_by(count.desc(), Booking.service_type)
        )
        return [{"service_type": service_type, "count": total} for service_type, total in result.all()]

    # =========================================================================
    # Staff performance
    # =========================================================================

    async def staff_report(
        self,
        staff_id: int,
        period: str = DEFAULT_PERIOD,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Performance report for one staff member over a period."""
        if period not in PERIODS:
            period = DEFAULT_PERIOD
        now = now or datetime.utcnow()
        start = period_start(period, now)

        result = await self.db.execute(
            select(Assignment, Booking.service_type)
            .join(Booking, Booking.id == Assignment.booking_id)
            .where(Assignment.staff_id == staff_id, Assignment.assigned_at >= start)
            .order_by(Assignment.assigned_at.desc())
        )
        rows = result.all()
        assignments = [assignment for assignment, _ in rows]

        return {
            "overview": self._staff_overview(assignments),
            "recentActivity": self._recent_activity(assignments),
            "servicePerformance": self._service_performance(rows),
            "timePerformance": self._time_performance(assignments),
            "teamPerformance": await self._team_performance_for(staff_id, start),
            "avgCompletionTime": self._completion_time(assignments),
            "weeklyTrends": self._weekly_trends(assignments),
            "period": period,
            "dateRange": {"start": start.isoformat(), "end": now.isoformat()},
        }

    def _staff_overview(self, assignments: List[Assignment]) -> Dict[str, Any]:
        by_status: Dict[AssignmentStatus, int] = defaultdict(int)
        for assignment in assignments:
            by_status[assignment.status] += 1

        total = len(assignments)
        completed = by_status[AssignmentStatus.COMPLETED]
        return {
            "total_assignments": total,
            "completed_assignments": completed,
            "in_progress_assignments": by_status[AssignmentStatus.IN_PROGRESS],
            "pending_assignments": by_status[AssignmentStatus.ASSIGNED],
            "rejected_assignments": by_status[AssignmentStatus.REJECTED],
            "cancelled_assignments": by_status[AssignmentStatus.CANCELLED],
            "success_rate": round(success_rate(completed, total, digits=2)),
        }

    def _recent_activity(self, assignments: List[Assignment]) -> List[Dict[str, Any]]:
        per_day: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
        for assignment in assignments:
            day = per_day[assignment.assigned_at.date().isoformat()]
            day[0] += 1
            if assignment.status == AssignmentStatus.COMPLETED:
                day[1] += 1
        return [
            {"date": day, "assignments": counts[0], "completed": counts[1]}
            for day, counts in sorted(per_day.items(), reverse=True)
        ]

    def _service_performance(self, rows) -> List[Dict[str, Any]]:
        per_service: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
        for assignment, service_type in rows:
            counts = per_service[service_type]
            counts[0] += 1
            if assignment.status == AssignmentStatus.COMPLETED:
                counts[1] += 1
        report = [
            {
                "service_type": service_type,
                "total_assignments": total,
                "completed_assignments": done,
                "success_rate": success_rate(done, total),
            }
            for service_type, (total, done) in per_service.items()
        ]
        return sorted(report, key=lambda item: (-item["completed_assignments"], item["service_type"]))

    def _time_performance(self, assignments: List[Assignment]) -> List[Dict[str, Any]]:
        per_bucket: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
        for assignment in assignments:
            counts = per_bucket[_time_bucket(assignment.assigned_at.hour)]
            counts[0] += 1
            if assignment.status == AssignmentStatus.COMPLETED:
                counts[1] += 1
        report = [
            {
                "time_period": label,
                "assignments": total,
                "completed": done,
                "success_rate": success_rate(done, total),
            }
            for label, (total, done) in per_bucket.items()
        ]
        return sorted(report, key=lambda item: -item["success_rate"])

    async def _team_performance_for(self, staff_id: int, start: datetime) -> List[Dict[str, Any]]:
        """Assignments of the team(s) this staff member belongs to."""
        completed = _count_status(AssignmentStatus.COMPLETED)
        result = await self.db.execute(
            select(Team.name, func.count(Assignment.id), completed)
            .join(Assignment, Assignment.team_id == Team.id)
            .join(TeamMember, TeamMember.team_id == Team.id)
            .where(TeamMember.staff_id == staff_id, Assignment.assigned_at >= start)
            .group_by(Team.id, Team.name)
        )
        report = [
            {
                "team_name": name,
                "team_assignments": total,
                "team_completed": done,
                "team_success_rate": success_rate(done, total),
            }
            for name, total, done in result.all()
        ]
        return sorted(report, key=lambda item: -item["team_success_rate"])

    def _completion_time(self, assignments: List[Assignment]) -> Dict[str, Optional[float]]:
        hours = [
            (a.completed_at - a.assigned_at).total_seconds() / 3600
            for a in assignments
            if a.status == AssignmentStatus.COMPLETED and a.completed_at and a.assigned_at
        ]
        if not hours:
            return {"avg_hours": None, "fastest_hours": None, "slowest_hours": None}
        return {
            "avg_hours": round(sum(hours) / len(hours), 2),
            "fastest_hours": round(min(hours), 2),
            "slowest_hours": round(max(hours), 2),
        }

    def _weekly_trends(self, assignments: List[Assignment]) -> List[Dict[str, Any]]:
        # Week numbers as strftime("%W"): Monday-based, week 00 before the first Monday
        per_week: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
        for assignment in assignments:
            counts = per_week[assignment.assigned_at.strftime("%W")]
            counts[0] += 1
            if assignment.status == AssignmentStatus.COMPLETED:
                counts[1] += 1
        weeks = sorted(per_week.items(), reverse=True)[:WEEKLY_TREND_LIMIT]
        return [
            {"week_number": week, "assignments": counts[0], "completed": counts[1]}
            for week, counts in weeks
        ]
