"""Database setup, models and repository for the planning store."""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    or_,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session

from .models import ActivityCandidate, SubcategoryInfo
from .utils import PersistenceError


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class Category(Base):
    """A strategic concept grouping subcategories (e.g. a tertial plan)."""
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    is_time_based = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)


class Subcategory(Base):
    """A focus area within a category; month-bound or theme-based."""
    __tablename__ = "subcategories"

    id = Column(String(36), primary_key=True, default=_new_id)
    category_id = Column(String(36), ForeignKey("categories.id"), nullable=False)
    name = Column(String(100), nullable=False)
    color = Column(String(7), nullable=False)
    start_month = Column(Integer, nullable=True)
    end_month = Column(Integer, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    def to_info(self) -> SubcategoryInfo:
        return SubcategoryInfo(
            id=self.id,
            name=self.name,
            category_id=self.category_id,
            color=self.color,
            start_month=self.start_month,
            end_month=self.end_month,
            sort_order=self.sort_order,
        )


class Activity(Base):
    """A committed planning activity."""
    __tablename__ = "activities"

    id = Column(String(36), primary_key=True, default=_new_id)
    focus_area_id = Column(String(36), ForeignKey("subcategories.id"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(String(10), nullable=True)  # YYYY-MM-DD
    end_date = Column(String(10), nullable=True)
    responsible = Column(String(100), nullable=True)
    purpose = Column(String(100), nullable=True)
    theme = Column(String(100), nullable=True)
    target_group = Column(String(200), nullable=True)
    status = Column(String(20), nullable=False, default="ongoing")
    weeks = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=_utcnow)
    updated_at = Column(DateTime, nullable=False, default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'focus_area_id': self.focus_area_id,
            'title': self.title,
            'description': self.description,
            'start_date': self.start_date,
            'end_date': self.end_date,
            'responsible': self.responsible,
            'purpose': self.purpose,
            'theme': self.theme,
            'target_group': self.target_group,
            'status': self.status,
            'weeks': list(self.weeks or []),
        }


def get_db_engine(db_path: str = "planning_data.db"):
    """
    Create and return a SQLAlchemy Engine connected to SQLite database.

    Args:
        db_path: Path to the SQLite database file, relative to the project root
            unless absolute (default: planning_data.db in project root)

    Returns:
        sqlalchemy.Engine: Database engine instance
    """
    # Resolve to project root
    project_root = Path(__file__).parent.parent
    full_db_path = project_root / db_path
    connection_string = f"sqlite:///{full_db_path}"

    return create_engine(connection_string, echo=False)


def create_tables(engine) -> None:
    """
    Create all database tables defined in Base.metadata.

    Args:
        engine: SQLAlchemy Engine instance
    """
    Base.metadata.create_all(engine)


# Default taxonomy: one tertial-based and one theme-based category
DEFAULT_TAXONOMY = [
    {
        'id': '11111111-1111-1111-1111-111111111111',
        'name': 'Verksamhetsplanering',
        'description': 'Tertialbaserad planering för Service & Kompetens, Platsutveckling, Etablering & Innovation',
        'is_time_based': True,
        'subcategories': [
            ('Service & Kompetens', '#93C5FD', 0, 3),
            ('Platsutveckling', '#86EFAC', 4, 7),
            ('Etablering & Innovation', '#FCA5A5', 8, 11),
        ],
    },
    {
        'id': '22222222-2222-2222-2222-222222222222',
        'name': 'Företagsträffar',
        'description': 'Temabaserade företagsaktiviteter',
        'is_time_based': False,
        'subcategories': [
            ('Lätt att göra rätt', '#93C5FD', None, None),
            ('Mod att växa', '#FDBA74', None, None),
            ('Framtidssäkring av företag', '#86EFAC', None, None),
            ('Falkenberg växer', '#D8B4FE', None, None),
        ],
    },
]


class PlanningRepository:
    """Reads the taxonomy and reads/writes activities."""

    def __init__(self, engine):
        self.engine = engine

    def seed_default_taxonomy(self) -> bool:
        """
        Insert DEFAULT_TAXONOMY if no categories exist.

        Returns:
            True if the taxonomy was inserted
        """
        with Session(self.engine) as session:
            if session.scalar(select(Category.id).limit(1)) is not None:
                return False

            for order, entry in enumerate(DEFAULT_TAXONOMY, 1):
                session.add(Category(
                    id=entry['id'],
                    name=entry['name'],
                    description=entry['description'],
                    is_time_based=entry['is_time_based'],
                    sort_order=order,
                ))
                for sub_order, (name, color, start, end) in enumerate(entry['subcategories'], 1):
                    session.add(Subcategory(
                        category_id=entry['id'],
                        name=name,
                        color=color,
                        start_month=start,
                        end_month=end,
                        sort_order=sub_order,
                    ))
            session.commit()
            return True

    def list_categories(self) -> List[Category]:
        with Session(self.engine, expire_on_commit=False) as session:
            return list(session.scalars(select(Category).order_by(Category.sort_order)))

    def list_subcategories(self, category_id: Optional[str] = None) -> List[SubcategoryInfo]:
        """Return subcategories, optionally for one category, in display order."""
        with Session(self.engine) as session:
            stmt = select(Subcategory).order_by(Subcategory.category_id, Subcategory.sort_order)
            if category_id:
                stmt = stmt.where(Subcategory.category_id == category_id)
            return [s.to_info() for s in session.scalars(stmt)]

    def list_activities(
        self,
        focus_area_ids: Optional[Iterable[str]] = None,
        category_id: Optional[str] = None,
        status: Optional[str] = None,
        year: Optional[int] = None
    ) -> List[Activity]:
        """
        Return activities matching the filters.

        Args:
            focus_area_ids: Restrict to these subcategories
            category_id: Restrict to subcategories of this category
            status: Restrict to this status
            year: Activities starting or ending in this year
        """
        with Session(self.engine, expire_on_commit=False) as session:
            stmt = select(Activity)
            if focus_area_ids is not None:
                stmt = stmt.where(Activity.focus_area_id.in_(list(focus_area_ids)))
            if category_id:
                stmt = stmt.join(Subcategory, Activity.focus_area_id == Subcategory.id).where(
                    Subcategory.category_id == category_id
                )
            if status:
                stmt = stmt.where(Activity.status == status)
            if year:
                prefix = f"{year}-%"
                stmt = stmt.where(or_(Activity.start_date.like(prefix), Activity.end_date.like(prefix)))
            stmt = stmt.order_by(Activity.start_date.is_(None), Activity.start_date, Activity.title)
            return list(session.scalars(stmt))

    def create_activity(self, candidate: ActivityCandidate) -> Activity:
        """
        Persist one activity.

        Raises:
            PersistenceError: If the insert fails
        """
        activity = Activity(
            focus_area_id=candidate.focus_area_id,
            title=candidate.title,
            description=candidate.description,
            start_date=candidate.start_date,
            end_date=candidate.end_date,
            responsible=candidate.responsible,
            purpose=candidate.purpose,
            theme=candidate.theme,
            target_group=candidate.target_group,
            status=candidate.status,
            weeks=list(candidate.weeks),
        )

        with Session(self.engine, expire_on_commit=False) as session:
            try:
                if session.get(Subcategory, candidate.focus_area_id) is None:
                    raise PersistenceError(f"Unknown focus area: {candidate.focus_area_id}")
                session.add(activity)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceError(f"Could not save activity '{candidate.title}': {e}") from e

        return activity
