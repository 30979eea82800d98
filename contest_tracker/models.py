from typing import Generic, List, Optional, TypeVar
from datetime import datetime

from pydantic import BaseModel, EmailStr, field_validator, model_validator
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from contest_tracker.clock import utcnow, to_utc
from contest_tracker.db import UTCDateTime

PLATFORMS = {
    "leetcode": "LeetCode",
    "codeforces": "Codeforces",
    "hackerrank": "HackerRank",
    "codechef": "CodeChef",
    "hackerearth": "HackerEarth",
    "topcoder": "TopCoder",
    "kaggle": "Kaggle",
    "other": "Other",
}

CATEGORIES = {
    "algorithms": "Algorithms",
    "data-structures": "Data Structures",
    "machine-learning": "Machine Learning",
    "web-development": "Web Development",
    "game-development": "Game Development",
    "hackathon": "Hackathon",
    "other": "Other",
}

# "all" disables a filter
ALL = "all"


# ---------------------------------------------------------------- tables

class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(unique=True, index=True)
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class ContestBase(SQLModel):
    title: str
    platform: str = Field(index=True)
    category: str = Field(index=True)
    description: str
    rules: Optional[str] = None
    prizes: Optional[str] = None
    website: Optional[str] = None
    start_date: datetime = Field(index=True, sa_type=UTCDateTime)
    end_date: datetime = Field(sa_type=UTCDateTime)
    duration: Optional[str] = None


class Contest(ContestBase, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_by_id: int = Field(foreign_key="user.id", index=True)
    created_by_name: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Bookmark(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "contest_id", name="uq_bookmark_user_contest"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    contest_id: int = Field(foreign_key="contest.id", index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Solution(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("user_id", "contest_id", name="uq_solution_user_contest"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    contest_id: int = Field(foreign_key="contest.id", index=True)
    link: str
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


# ---------------------------------------------------------------- write payloads

REQUIRED_CONTEST_FIELDS = ("title", "platform", "category", "description", "start_date", "end_date")


class ContestCreate(ContestBase):
    """Fields a client may set when creating a contest. Anything else is dropped."""

    @field_validator("title", "platform", "category", "description")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("start_date", "end_date")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return to_utc(value)

    @model_validator(mode="after")
    def _ordered(self):
        if self.start_date >= self.end_date:
            raise ValueError("start_date must be before end_date")
        return self


class ContestUpdate(SQLModel):
    """Partial update. Only the fields listed here can be changed."""
    title: Optional[str] = None
    platform: Optional[str] = None
    category: Optional[str] = None
    description: Optional[str] = None
    rules: Optional[str] = None
    prizes: Optional[str] = None
    website: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    duration: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_utc(value) if value is not None else value

    @model_validator(mode="after")
    def _required_not_cleared(self):
        for name in REQUIRED_CONTEST_FIELDS:
            if name in self.model_fields_set:
                value = getattr(self, name)
                if value is None or (isinstance(value, str) and not value.strip()):
                    raise ValueError(f"{name} must not be empty")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class SolutionSave(BaseModel):
    link: str
    notes: Optional[str] = None


class UserRegister(BaseModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def _name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("password")
    @classmethod
    def _password(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError("must be at least 6 characters")
        return value


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    name: str
    current_password: Optional[str] = None
    new_password: Optional[str] = None


# ---------------------------------------------------------------- read models

class UserRead(SQLModel):
    id: int
    name: str
    email: str


class CreatorRef(SQLModel):
    id: int
    name: str


class ContestSummary(SQLModel):
    id: int
    title: str
    platform: str
    category: str
    start_date: datetime
    end_date: datetime = Field(sa_type=UTCDateTime)
    duration: str
    status: str


class SolutionRead(SQLModel):
    id: int
    user_id: int
    contest: ContestSummary
    link: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SolutionWithUser(SQLModel):
    id: int
    user: CreatorRef
    contest_id: int
    link: str
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    is_owner: bool = False


class ContestRead(ContestBase):
    id: int
    duration: str
    created_by: CreatorRef
    created_at: datetime
    updated_at: datetime
    status: str
    is_bookmarked: bool = False
    can_edit: bool = False
    user_solution: Optional[SolutionRead] = None


class ContestPage(SQLModel):
    items: List[ContestRead] = []
    total_pages: int = 0


T = TypeVar("T")


class ListResult(BaseModel, Generic[T]):
    """Listing outcome. ``error`` is set when the store failed and ``items`` is empty."""
    items: List[T] = []
    total_pages: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None
