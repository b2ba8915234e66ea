"""
Dataset Store

Loads the per-entity usage exports into memory, computes the
:class:`AggregateSummary` once, and serves read-only lookups
(top-N by metric, filter by category, school lookup).

Loading is best-effort: a missing or malformed export file becomes an
empty collection and the summary degrades to zeros.  Nothing here
raises to callers once ``run()`` has been called; a "refresh" is a
full ``reload()``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

from backend.app.engine.summary import compute_summary
from backend.app.schema.dataset_schema import (
    AccommodationRecord,
    AggregateSummary,
    QuestionTypeRecord,
    SchoolRecord,
    StandardRecord,
    TeacherRecord,
)

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

# Export file name per record type.
DATASET_FILES: dict[str, type[BaseModel]] = {
    "schools.json": SchoolRecord,
    "teachers.json": TeacherRecord,
    "question_types.json": QuestionTypeRecord,
    "accommodations.json": AccommodationRecord,
    "standards.json": StandardRecord,
}


def load_records(path: Path, model: type[R]) -> list[R]:
    """Read a JSON array of export rows, skipping rows that fail validation.

    Returns an empty list (and logs) if the file is absent, unreadable,
    or not a JSON array.
    """
    if not path.is_file():
        logger.warning("Dataset file %s not found; using an empty collection.", path)
        return []

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return []

    if not isinstance(raw, list):
        logger.warning("Expected a JSON array in %s, got %s.", path, type(raw).__name__)
        return []

    records: list[R] = []
    for index, row in enumerate(raw):
        try:
            records.append(model.model_validate(row))
        except ValidationError as exc:
            logger.warning(
                "Skipping row %d of %s: %d validation error(s).",
                index,
                path.name,
                exc.error_count(),
            )
    return records


def _to_frame(records: Sequence[BaseModel], model: type[BaseModel]) -> pd.DataFrame:
    """Build a DataFrame with one column per model field, even when empty."""
    return pd.DataFrame(
        [r.model_dump() for r in records],
        columns=list(model.model_fields),
    )


class DatasetStore:
    """In-memory, read-only view of one district's usage exports.

    Typical usage::

        store = DatasetStore(Path("data/usage")).run()
        store.summary.accommodation_usage_percent
        store.top_schools("active_teachers", limit=10)
    """

    def __init__(
        self,
        data_dir: Optional[Path] = None,
        *,
        organization: str = "",
        last_updated: str = "",
    ) -> None:
        self._data_dir = Path(data_dir) if data_dir is not None else None
        self._organization = organization
        self._last_updated = last_updated

        self._schools: tuple[SchoolRecord, ...] = ()
        self._teachers: tuple[TeacherRecord, ...] = ()
        self._question_types: tuple[QuestionTypeRecord, ...] = ()
        self._accommodations: tuple[AccommodationRecord, ...] = ()
        self._standards: tuple[StandardRecord, ...] = ()

        self._frames: dict[type[BaseModel], pd.DataFrame] = {}
        self._summary: Optional[AggregateSummary] = None

    @classmethod
    def from_records(
        cls,
        schools: Iterable[SchoolRecord] = (),
        teachers: Iterable[TeacherRecord] = (),
        question_types: Iterable[QuestionTypeRecord] = (),
        accommodations: Iterable[AccommodationRecord] = (),
        standards: Iterable[StandardRecord] = (),
        **kwargs: Any,
    ) -> "DatasetStore":
        """Build a loaded store directly from record objects."""
        store = cls(None, **kwargs)
        store._install(
            tuple(schools),
            tuple(teachers),
            tuple(question_types),
            tuple(accommodations),
            tuple(standards),
        )
        return store

    # Lifecycle

    def run(self) -> "DatasetStore":
        """Load every export file and compute the summary.

        Returns ``self`` so callers can chain.
        """
        if self._data_dir is None:
            logger.warning("No data directory configured; dataset is empty.")
            self._install((), (), (), (), ())
            return self

        logger.info("Loading usage data from %s", self._data_dir)
        loaded = {
            model: load_records(self._data_dir / filename, model)
            for filename, model in DATASET_FILES.items()
        }
        self._install(
            tuple(loaded[SchoolRecord]),
            tuple(loaded[TeacherRecord]),
            tuple(loaded[QuestionTypeRecord]),
            tuple(loaded[AccommodationRecord]),
            tuple(loaded[StandardRecord]),
        )
        logger.info(
            "Usage data loaded: %d schools, %d teachers, %d question types, "
            "%d accommodations, %d standards",
            len(self._schools),
            len(self._teachers),
            len(self._question_types),
            len(self._accommodations),
            len(self._standards),
        )
        return self

    def reload(self) -> "DatasetStore":
        """Discard everything and load again from disk."""
        self._summary = None
        return self.run()

    @property
    def is_loaded(self) -> bool:
        return self._summary is not None

    # Read-only accessors

    @property
    def summary(self) -> AggregateSummary:
        self._ensure_loaded()
        return self._summary

    @property
    def schools(self) -> tuple[SchoolRecord, ...]:
        return self._schools

    @property
    def teachers(self) -> tuple[TeacherRecord, ...]:
        return self._teachers

    @property
    def question_types(self) -> tuple[QuestionTypeRecord, ...]:
        return self._question_types

    @property
    def accommodations(self) -> tuple[AccommodationRecord, ...]:
        return self._accommodations

    @property
    def standards(self) -> tuple[StandardRecord, ...]:
        return self._standards

    @property
    def school_names(self) -> list[str]:
        return [s.school_name for s in self._schools]

    def get_school(self, name: str) -> Optional[SchoolRecord]:
        """Case-insensitive lookup by school name."""
        wanted = name.strip().lower()
        for school in self._schools:
            if school.school_name.lower() == wanted:
                return school
        return None

    def teachers_at(self, school_name: str) -> list[TeacherRecord]:
        wanted = school_name.strip().lower()
        return [t for t in self._teachers if t.school_name.lower() == wanted]

    # Ranked lookups

    def top_schools(
        self,
        metric: str,
        limit: int = 10,
        ascending: bool = False,
    ) -> list[SchoolRecord]:
        """Schools with ``metric > 0`` ordered by *metric*.

        Ties keep dataset order.  Returns ``[]`` for an unknown metric.
        """
        return self._top(SchoolRecord, self._schools, metric, limit, ascending)

    def top_teachers(
        self,
        metric: str,
        limit: int = 10,
        ascending: bool = False,
    ) -> list[TeacherRecord]:
        """Teachers with ``metric > 0`` ordered by *metric*."""
        return self._top(TeacherRecord, self._teachers, metric, limit, ascending)

    def top_standards(self, limit: int = 10) -> list[StandardRecord]:
        return self._top(StandardRecord, self._standards, "sessions", limit, False, positive_only=False)

    def question_types_by_category(self, category: Optional[str] = None) -> list[QuestionTypeRecord]:
        if category:
            return [q for q in self._question_types if q.category == category]
        return list(self._question_types)

    def accommodations_by_category(self, category: Optional[str] = None) -> list[AccommodationRecord]:
        if category:
            return [a for a in self._accommodations if a.category == category]
        return list(self._accommodations)

    # Internal helpers

    def _install(
        self,
        schools: tuple[SchoolRecord, ...],
        teachers: tuple[TeacherRecord, ...],
        question_types: tuple[QuestionTypeRecord, ...],
        accommodations: tuple[AccommodationRecord, ...],
        standards: tuple[StandardRecord, ...],
    ) -> None:
        self._schools = schools
        self._teachers = teachers
        self._question_types = question_types
        self._accommodations = accommodations
        self._standards = standards

        self._frames = {
            SchoolRecord: _to_frame(schools, SchoolRecord),
            TeacherRecord: _to_frame(teachers, TeacherRecord),
            QuestionTypeRecord: _to_frame(question_types, QuestionTypeRecord),
            AccommodationRecord: _to_frame(accommodations, AccommodationRecord),
            StandardRecord: _to_frame(standards, StandardRecord),
        }

        try:
            self._summary = compute_summary(
                self._frames[SchoolRecord],
                self._frames[TeacherRecord],
                self._frames[QuestionTypeRecord],
                self._frames[AccommodationRecord],
                self._frames[StandardRecord],
                organization=self._organization,
                last_updated=self._last_updated,
            )
        except Exception as exc:
            logger.exception("Summary computation failed, using an empty summary: %s", exc)
            self._summary = AggregateSummary(
                organization=self._organization,
                last_updated=self._last_updated,
            )

    def _top(
        self,
        model: type[BaseModel],
        records: tuple[R, ...],
        metric: str,
        limit: int,
        ascending: bool,
        positive_only: bool = True,
    ) -> list[R]:
        frame = self._frames.get(model)
        if frame is None or metric not in frame.columns or frame.empty:
            return []
        values = pd.to_numeric(frame[metric], errors="coerce")
        if positive_only:
            values = values[values > 0]
        else:
            values = values.dropna()
        ordered = values.sort_values(ascending=ascending, kind="stable").head(max(limit, 0))
        return [records[i] for i in ordered.index]

    def _ensure_loaded(self) -> None:
        """Raise if data has not been loaded yet."""
        if self._summary is None:
            raise RuntimeError("Usage data has not been loaded. Call run() first.")
