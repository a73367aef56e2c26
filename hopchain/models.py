from datetime import datetime, timezone
from typing import Annotated, Any, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

LINK_SEPARATOR = "::"
EPOCH_MILLIS_THRESHOLD = 100_000_000_000


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class WireModel(BaseModel):
    """
    Base for everything that crosses a service boundary. Fields are snake_case in Python
    and camelCase on the wire; either spelling is accepted on input.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# -----------------------------
# Collaborator records
# -----------------------------
class Puzzle(WireModel):
    id: str
    words: List[str]

    @field_validator("words")
    @classmethod
    def _at_least_two_words(cls, words: List[str]) -> List[str]:
        if len(words) < 2:
            raise ValueError("a puzzle needs at least two starting words")
        return words


class Hop(WireModel):
    id: str
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    link_key: str
    associations_key: str = ""
    created_at: Optional[str] = None

    @field_validator("associations_key", mode="before")
    @classmethod
    def _blank_associations(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("created_at", mode="before")
    @classmethod
    def _timestamp_text(cls, value: Any) -> Any:
        # stores hand back epoch numbers, milliseconds when large enough
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            seconds = value / 1000 if value > EPOCH_MILLIS_THRESHOLD else value
            return datetime.fromtimestamp(seconds, timezone.utc).isoformat()
        return value

    def pair(self) -> Optional[Tuple[str, str]]:
        """
        Canonical (from, to) parsed from the link key. The hop's own from/to fields are what the
        player typed and may run backwards along the link, so they are never used here.
        Returns None when the link key has no separator.
        """
        if LINK_SEPARATOR not in self.link_key:
            return None
        first, second = self.link_key.split(LINK_SEPARATOR, 1)
        return first, second


# -----------------------------
# Attempts and solves
# -----------------------------
class AttemptContext(WireModel):
    owner_id: Optional[str] = None
    puzzle_id: Optional[str] = None
    attempt_id: Optional[str] = None

    def missing(self) -> List[str]:
        return [name for name in ("owner_id", "puzzle_id", "attempt_id") if not getattr(self, name)]


class Attempt(WireModel):
    id: str
    puzzle_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class AttemptState(WireModel):
    id: str
    owner_id: str
    puzzle_id: str
    hop_ids: List[str]
    associations_key: str
    open_edges: List[str]
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Solve(WireModel):
    id: str
    owner_id: str
    puzzle_id: str
    hop_ids: List[str]
    length: int
    associations_key: str
    composite_key: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class SolveQuery(WireModel):
    owner_id: Optional[str] = None
    puzzle_id: Optional[str] = None
    associations_key: Optional[str] = None


# -----------------------------
# Outcome of a hop attempt
# -----------------------------
class Pending(BaseModel):
    status: Literal["pending"] = "pending"
    attempt: AttemptState

    def to_wire(self) -> dict:
        return {"status": self.status, "attempt": self.attempt.to_wire()}


class Completed(BaseModel):
    status: Literal["completed"] = "completed"
    solve: Solve

    def to_wire(self) -> dict:
        return {"status": self.status, "solve": self.solve.to_wire()}


HopOutcome = Annotated[Union[Pending, Completed], Field(discriminator="status")]
