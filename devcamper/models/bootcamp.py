# devcamper/models/bootcamp.py
import re
from datetime import datetime
from typing import List, Optional, get_args
from enum import Enum
from pydantic import BaseModel, EmailStr, Field, field_validator
from devcamper.core.geopoint import Location
from devcamper.models.base import DocumentInDB
from devcamper.models.course import CourseInDB

URL_RE = re.compile(r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)$")


class Career(str, Enum):
    web_development = "Web Development"
    mobile_development = "Mobile Development"
    ui_ux = "UI/UX"
    data_science = "Data Science"
    business = "Business"
    other = "Other"


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


class BootcampCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=500)
    website: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    address: str = Field(..., min_length=1)
    careers: List[Career] = Field(..., min_length=1)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False

    @field_validator("name", "description", "address", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("website")
    @classmethod
    def check_website(cls, v):
        if v is not None and not URL_RE.match(v):
            raise ValueError("Please use a valid URL with HTTP or HTTPS")
        return v


class BootcampUpdate(BootcampCreate):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    website: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, min_length=1)
    careers: Optional[List[Career]] = Field(None, min_length=1)
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None

    # Omitting a field leaves it untouched; sending null would erase a required value
    @field_validator("name", "description", "address", "careers",
                     "housing", "job_assistance", "job_guarantee", "accept_gi")
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class BootcampInDB(DocumentInDB, BootcampCreate):
    slug: Optional[str] = None
    location: Optional[Location] = None
    average_rating: Optional[float] = Field(None, ge=1, le=10)
    average_cost: Optional[float] = None
    photo: str = "no-photo.jpg"
    geohash: Optional[str] = Field(None, exclude=True)
    courses: Optional[List[CourseInDB]] = None


class BootcampSelection(DocumentInDB, BootcampUpdate):
    """A bootcamp read back with a field projection; every field may be absent."""
    slug: Optional[str] = None
    location: Optional[Location] = None
    average_rating: Optional[float] = None
    average_cost: Optional[float] = None
    photo: Optional[str] = None
    geohash: Optional[str] = Field(None, exclude=True)
    courses: Optional[List[CourseInDB]] = None


# Fields a client may filter, select or sort on
QUERYABLE_FIELDS = {name for name in BootcampInDB.model_fields if name not in ("id", "courses", "geohash")}
LIST_FIELDS = {"careers"}


def _scalar_kind(annotation) -> type:
    # bool before int: bool is an int subclass
    for kind in (bool, int, float, datetime):
        if annotation is kind or kind in get_args(annotation):
            return kind
    return str


# Query-string values are coerced to these types before reaching Firestore
FIELD_KINDS = {name: _scalar_kind(BootcampInDB.model_fields[name].annotation) for name in QUERYABLE_FIELDS}
FIELD_KINDS.update({f"location.{name}": _scalar_kind(field.annotation) for name, field in Location.model_fields.items()})
