# devcamper/models/course.py
from typing import Optional
from enum import Enum
from pydantic import BaseModel
from devcamper.models.base import DocumentInDB


class MinimumSkill(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class CourseBase(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    weeks: Optional[str] = None
    tuition: Optional[float] = None
    minimum_skill: Optional[MinimumSkill] = None
    scholarship_available: bool = False
    bootcamp: str


class CourseInDB(DocumentInDB, CourseBase):
    pass
