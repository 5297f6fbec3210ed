"""Repository classes encapsulating data store operations.

`TableRepository` gives every table the same narrow query surface:
fetch by key, equality-filtered listing with ordering and a row window,
count, insert, update and delete. Subclasses add the few table specific
queries. Store failures are rolled back and re-raised as `UpstreamError`
so handlers can report them with the standard envelope.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import func
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from . import models
from .errors import UpstreamError

logger = logging.getLogger("arunika.store")

M = TypeVar("M", bound=SQLModel)

# dialects whose insert() supports on_conflict_do_nothing
UPSERT_INSERTS = {"postgresql": postgresql.insert, "sqlite": sqlite.insert}


class TableRepository(Generic[M]):
    """CRUD operations for a single table."""
    model: Type[M]
    key: str = "id"

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _guard(self):
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            detail = str(getattr(exc, "orig", None) or exc)
            logger.warning("store_error table=%s detail=%s", self.model.__tablename__, detail)
            raise UpstreamError(detail) from exc

    def _column(self, name: str):
        return getattr(self.model, name)

    def _filtered(self, stmt, filters: Optional[Dict[str, Any]]):
        for name, value in (filters or {}).items():
            if value is None:
                continue
            stmt = stmt.where(self._column(name) == value)
        return stmt

    def get(self, key: Any) -> Optional[M]:
        """Return the row with primary key `key` or `None`."""
        with self._guard():
            return self.session.get(self.model, key)

    def find(self, filters: Optional[Dict[str, Any]] = None, order_by: Optional[str] = None,
             descending: bool = False, offset: Optional[int] = None, limit: Optional[int] = None) -> List[M]:
        """List rows matching every `filters` equality (None values are ignored)."""
        stmt = self._filtered(select(self.model), filters)
        column = self._column(order_by or self.key)
        stmt = stmt.order_by(column.desc() if descending else column.asc())
        if offset is not None:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._guard():
            return list(self.session.exec(stmt).all())

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        stmt = self._filtered(select(func.count()).select_from(self.model), filters)
        with self._guard():
            return self.session.exec(stmt).one()

    def page(self, filters: Optional[Dict[str, Any]], offset: int, limit: int,
             order_by: Optional[str] = None, descending: bool = False) -> Tuple[List[M], int]:
        """Return one window of matching rows together with the total match count."""
        rows = self.find(filters, order_by=order_by, descending=descending, offset=offset, limit=limit)
        return rows, self.count(filters)

    def create(self, values: Dict[str, Any]) -> M:
        """Insert a row built from `values` and return the managed instance."""
        row = self.model(**values)
        with self._guard():
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        return row

    def update(self, key: Any, values: Dict[str, Any]) -> Optional[M]:
        """Apply `values` to the row with primary key `key`.

        Returns `None` when the row does not exist. `updated_at` is
        refreshed on tables that carry it.
        """
        row = self.get(key)
        if row is None:
            return None
        for name, value in values.items():
            setattr(row, name, value)
        if hasattr(row, "updated_at"):
            row.updated_at = datetime.now(timezone.utc)
        with self._guard():
            self.session.add(row)
            self.session.commit()
            self.session.refresh(row)
        return row

    def delete(self, key: Any) -> bool:
        """Delete by primary key; False when nothing was deleted."""
        row = self.get(key)
        if row is None:
            return False
        with self._guard():
            self.session.delete(row)
            self.session.commit()
        return True

    def delete_where(self, filters: Dict[str, Any]) -> int:
        rows = self.find(filters)
        with self._guard():
            for row in rows:
                self.session.delete(row)
            self.session.commit()
        return len(rows)


class ProfileRepository(TableRepository[models.UserProfile]):
    """`users` table: one profile per identity."""
    model = models.UserProfile
    key = "user_id"

    def ensure(self, values: Dict[str, Any]) -> models.UserProfile:
        """Insert the profile unless one already exists, then return the stored row.

        On dialects with `ON CONFLICT` support this is a single
        INSERT .. ON CONFLICT DO NOTHING, so concurrent registrations for
        the same identity cannot both insert. Other dialects fetch first
        and treat an integrity error on insert as a row inserted meanwhile.
        """
        insert = UPSERT_INSERTS.get(self.session.get_bind().dialect.name)
        if insert is None:
            return self._fetch_or_insert(values)
        row = self.model(**values)
        stmt = insert(self.model).values(**row.model_dump()).on_conflict_do_nothing(index_elements=[self.key])
        with self._guard():
            self.session.connection().execute(stmt)
            self.session.commit()
        stored = self.get(values[self.key])
        if stored is None:
            raise UpstreamError("Profile creation failed")
        return stored

    def _fetch_or_insert(self, values: Dict[str, Any]) -> models.UserProfile:
        stored = self.get(values[self.key])
        if stored is not None:
            return stored
        row = self.model(**values)
        with self._guard():
            try:
                self.session.add(row)
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                stored = self.get(values[self.key])
                if stored is None:
                    raise UpstreamError("Profile creation failed")
                return stored
            self.session.refresh(row)
        return row


class JobRepository(TableRepository[models.Job]):
    model = models.Job


class SkillCourseRepository(TableRepository[models.SkillCourse]):
    model = models.SkillCourse


class PersonalizedRepository(TableRepository[models.Personalized]):
    """Personalization records and the recommendations attached to them."""
    model = models.Personalized

    def latest_for_user(self, user_id: str) -> Optional[models.Personalized]:
        rows = self.find({"user_id": user_id}, order_by="id", descending=True, limit=1)
        return rows[0] if rows else None

    def delete_with_children(self, personalized_id: int) -> bool:
        """Delete a record together with its job and course recommendations."""
        if self.get(personalized_id) is None:
            return False
        JobRecommendationRepository(self.session).delete_where({"personalized_id": personalized_id})
        CourseRecommendationRepository(self.session).delete_where({"personalized_id": personalized_id})
        return self.delete(personalized_id)

    def delete_for_user(self, user_id: str) -> int:
        records = self.find({"user_id": user_id})
        for record in records:
            self.delete_with_children(record.id)
        return len(records)


class JobRecommendationRepository(TableRepository[models.JobRecommendation]):
    model = models.JobRecommendation

    def job_ids_for(self, personalized_id: int) -> List[int]:
        return [r.job_id for r in self.find({"personalized_id": personalized_id})]


class CourseRecommendationRepository(TableRepository[models.CourseRecommendation]):
    model = models.CourseRecommendation


class SkillQuestionRepository(TableRepository[models.SkillQuestion]):
    model = models.SkillQuestion

    def categories(self) -> List[str]:
        """Distinct role categories present in the question bank."""
        stmt = select(models.SkillQuestion.role_category).distinct().order_by(models.SkillQuestion.role_category)
        with self._guard():
            return list(self.session.exec(stmt).all())
