"""Persistence collaborator consumed by the engine.

Every save flushes immediately so the engine controls write order
(session -> progression -> streak -> weekly goal). Commit and rollback
belong to the caller's unit of work (``get_db`` in the HTTP shell).
"""
import uuid
from datetime import datetime

from sqlalchemy import and_, case, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from focusflow.errors import ConflictError, NotFoundError
from focusflow.models.distraction import Distraction
from focusflow.models.progression import Progression, Streak, WeeklyGoal
from focusflow.models.reward_grant import RewardGrant
from focusflow.models.session import ACTIVE_STATUSES, Session
from focusflow.models.task import Task
from focusflow.models.user import User


class DistractionQuery:
    """Lazy, finite, restartable sequence of distractions.

    Each ``async for`` runs the query afresh, so the same object can be
    iterated any number of times.
    """

    def __init__(self, db: AsyncSession, statement):
        self._db = db
        self._statement = statement

    async def __aiter__(self):
        result = await self._db.stream_scalars(self._statement)
        async for distraction in result:
            yield distraction

    async def all(self) -> list[Distraction]:
        return [d async for d in self]


class EngineStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def ensure_user(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # Sessions

    async def load_session(self, user_id: uuid.UUID) -> Session | None:
        """The user's running or paused session, locked for update."""
        result = await self.db.execute(
            select(Session)
            .where(Session.user_id == user_id, Session.status.in_(ACTIVE_STATUSES))
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_session(self, user_id: uuid.UUID, session_id: uuid.UUID) -> Session | None:
        result = await self.db.execute(
            select(Session)
            .where(Session.id == session_id, Session.user_id == user_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()

    async def last_completed_session(self, user_id: uuid.UUID) -> Session | None:
        result = await self.db.execute(
            select(Session)
            .where(Session.user_id == user_id, Session.status == "completed")
            .order_by(Session.end_time.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_sessions(
        self,
        user_id: uuid.UUID,
        limit: int = 50,
        offset: int = 0,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> list[Session]:
        query = select(Session).where(Session.user_id == user_id)
        if start_date:
            query = query.where(Session.start_time >= start_date)
        if end_date:
            query = query.where(Session.start_time <= end_date)
        query = query.order_by(Session.start_time.desc()).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def session_totals(self, user_id: uuid.UUID, start: datetime, end: datetime):
        completed = Session.status == "completed"
        work = Session.session_type == "work"
        result = await self.db.execute(
            select(
                func.count(Session.id).label("total_sessions"),
                func.coalesce(func.sum(case((completed, 1), else_=0)), 0).label("completed_sessions"),
                func.coalesce(func.sum(case((work, 1), else_=0)), 0).label("work_sessions"),
                func.coalesce(
                    func.sum(case((and_(completed, work), 1), else_=0)), 0
                ).label("completed_work_sessions"),
                func.coalesce(func.sum(Session.xp_earned), 0).label("total_xp"),
                func.coalesce(
                    func.sum(case((completed, Session.actual_duration_seconds), else_=0)), 0
                ).label("focused_seconds"),
                func.avg(Session.rating).label("average_rating"),
            ).where(
                Session.user_id == user_id,
                Session.start_time >= start,
                Session.start_time <= end,
            )
        )
        return result.one()

    async def daily_session_history(self, user_id: uuid.UUID, start: datetime, end: datetime):
        # date() works on both SQLite and Postgres
        date_expr = func.date(Session.start_time)
        completed = Session.status == "completed"
        result = await self.db.execute(
            select(
                date_expr.label("day"),
                func.count(Session.id).label("total_sessions"),
                func.coalesce(func.sum(case((completed, 1), else_=0)), 0).label("completed_sessions"),
                func.coalesce(func.sum(Session.xp_earned), 0).label("total_xp"),
                func.coalesce(
                    func.sum(case((completed, Session.actual_duration_seconds), else_=0)), 0
                ).label("focused_seconds"),
            ).where(
                Session.user_id == user_id,
                Session.start_time >= start,
                Session.start_time <= end,
            ).group_by(
                date_expr
            ).order_by(
                date_expr.desc()
            )
        )
        return result.all()

    async def save_session(self, session: Session) -> Session:
        self.db.add(session)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            # Lost a race against a concurrent start for the same user
            await self.db.rollback()
            raise ConflictError("User already has an active session") from exc
        return session

    # Progression, streak, weekly goal

    async def load_progression(self, user_id: uuid.UUID, create: bool = True) -> Progression:
        """The user's progression row. With ``create=False`` a missing row is
        returned as an unsaved blank instead of being added."""
        result = await self.db.execute(
            select(Progression).where(Progression.user_id == user_id).with_for_update()
        )
        progression = result.scalar_one_or_none()
        if progression is None:
            await self.ensure_user(user_id)
            progression = Progression(user_id=user_id, xp_total=0, level=1)
            if create:
                self.db.add(progression)
        return progression

    async def save_progression(self, progression: Progression) -> None:
        self.db.add(progression)
        await self.db.flush()

    async def load_streak(self, user_id: uuid.UUID, create: bool = True) -> Streak:
        result = await self.db.execute(
            select(Streak).where(Streak.user_id == user_id).with_for_update()
        )
        streak = result.scalar_one_or_none()
        if streak is None:
            await self.ensure_user(user_id)
            streak = Streak(
                user_id=user_id,
                current_streak_days=0,
                longest_streak_days=0,
                last_milestone_days=0,
            )
            if create:
                self.db.add(streak)
        return streak

    async def save_streak(self, streak: Streak) -> None:
        self.db.add(streak)
        await self.db.flush()

    async def load_weekly_goal(self, user_id: uuid.UUID) -> WeeklyGoal | None:
        result = await self.db.execute(
            select(WeeklyGoal).where(WeeklyGoal.user_id == user_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def save_weekly_goal(self, goal: WeeklyGoal) -> None:
        self.db.add(goal)
        await self.db.flush()

    # Tasks

    async def get_task(self, user_id: uuid.UUID, task_id: uuid.UUID) -> Task | None:
        result = await self.db.execute(
            select(Task).where(Task.id == task_id, Task.user_id == user_id)
        )
        return result.scalar_one_or_none()

    # Distractions

    async def append_distraction(self, distraction: Distraction) -> Distraction:
        self.db.add(distraction)
        await self.db.flush()
        return distraction

    def list_distractions(
        self,
        user_id: uuid.UUID,
        session_id: uuid.UUID | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> DistractionQuery:
        query = select(Distraction).where(Distraction.user_id == user_id)
        if session_id is not None:
            query = query.where(Distraction.session_id == session_id)
        if start is not None:
            query = query.where(Distraction.occurred_at >= start)
        if end is not None:
            query = query.where(Distraction.occurred_at < end)
        return DistractionQuery(self.db, query.order_by(Distraction.occurred_at.asc()))

    async def count_distractions(
        self, user_id: uuid.UUID, start: datetime, end: datetime
    ) -> dict[str, int]:
        result = await self.db.execute(
            select(Distraction.type, func.count(Distraction.id).label("count"))
            .where(
                Distraction.user_id == user_id,
                Distraction.occurred_at >= start,
                Distraction.occurred_at <= end,
            )
            .group_by(Distraction.type)
        )
        return {row.type: row.count for row in result.all()}

    async def daily_distraction_counts(
        self, user_id: uuid.UUID, start: datetime, end: datetime
    ) -> dict:
        date_expr = func.date(Distraction.occurred_at)
        result = await self.db.execute(
            select(date_expr.label("day"), func.count(Distraction.id).label("count"))
            .where(
                Distraction.user_id == user_id,
                Distraction.occurred_at >= start,
                Distraction.occurred_at <= end,
            )
            .group_by(date_expr)
        )
        return {row.day: row.count for row in result.all()}

    # Reward ledger

    async def get_grants(
        self, user_id: uuid.UUID, source_type: str, source_id: str
    ) -> dict[str, RewardGrant]:
        result = await self.db.execute(
            select(RewardGrant).where(
                RewardGrant.user_id == user_id,
                RewardGrant.source_type == source_type,
                RewardGrant.source_id == source_id,
            )
        )
        return {grant.step: grant for grant in result.scalars().all()}

    async def record_grant(
        self,
        user_id: uuid.UUID,
        source_type: str,
        source_id: str,
        step: str,
        xp: int = 0,
        detail: dict | None = None,
    ) -> RewardGrant:
        grant = RewardGrant(
            user_id=user_id,
            source_type=source_type,
            source_id=source_id,
            step=step,
            xp=xp,
            detail_json=detail,
        )
        self.db.add(grant)
        await self.db.flush()
        return grant
