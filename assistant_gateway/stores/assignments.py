"""
Assignment Store

Key-based lookup of assignments for the chat routes. The assignment records
themselves are owned by the wider application; the gateway only reads the
fields it can talk about (title, description, due date, max marks).

The in-memory store can be seeded from a JSON file holding either a list
of assignment objects or an object keyed by assignment id.

Pattern: Repository pattern (abstract store, swappable implementation)
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError

from assistant_gateway.models.domain import AssignmentContext

logger = logging.getLogger(__name__)


class AssignmentStoreError(Exception):
    """Raised when the backing store cannot be read."""


class Assignment(BaseModel):
    """
    Assignment record as stored.

    Accepts both snake_case and the camelCase / Mongo-style keys the main
    application writes (_id, dueDate, maxMarks).
    """

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    title: str
    description: Optional[str] = None
    due_date: Optional[Union[datetime, date, str]] = Field(
        default=None, validation_alias=AliasChoices("due_date", "dueDate")
    )
    max_marks: float = Field(
        default=100, validation_alias=AliasChoices("max_marks", "maxMarks")
    )

    model_config = {"populate_by_name": True}

    def to_context(self) -> AssignmentContext:
        return AssignmentContext(
            title=self.title,
            description=self.description,
            due_date=self.due_date,
            max_marks=self.max_marks,
        )


class AssignmentStore(ABC):
    """Read-only assignment lookup."""

    @abstractmethod
    async def get(self, assignment_id: str) -> Optional[Assignment]:
        """
        Look up an assignment.

        Returns:
            The assignment, or None when no assignment has that id.

        Raises:
            AssignmentStoreError: The store could not be read.
        """


class InMemoryAssignmentStore(AssignmentStore):
    """Dictionary-backed store, for single-process deployments and tests."""

    def __init__(self, assignments: Optional[Iterable[Assignment]] = None) -> None:
        self._assignments: dict[str, Assignment] = {}
        for assignment in assignments or ():
            self.add(assignment)

    def __len__(self) -> int:
        return len(self._assignments)

    def add(self, assignment: Assignment) -> None:
        self._assignments[assignment.id] = assignment

    async def get(self, assignment_id: str) -> Optional[Assignment]:
        return self._assignments.get(assignment_id)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryAssignmentStore":
        """
        Load assignments from a JSON file.

        Raises:
            AssignmentStoreError: The file is missing or not valid JSON.
        """
        path = Path(path)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise AssignmentStoreError(f"Cannot load assignments from {path}: {e}") from e

        store = cls(_parse_records(raw))
        logger.info("Loaded %d assignments from %s", len(store), path)
        return store


def _parse_records(raw: Any) -> list[Assignment]:
    if isinstance(raw, dict):
        records = [{"id": key, **value} for key, value in raw.items() if isinstance(value, dict)]
    elif isinstance(raw, list):
        records = [item for item in raw if isinstance(item, dict)]
    else:
        raise AssignmentStoreError("Assignments file must hold a list or an object")
    try:
        return [Assignment.model_validate(record) for record in records]
    except ValidationError as e:
        raise AssignmentStoreError(f"Invalid assignment record: {e}") from e
