"""Pydantic response schemas for the qabook API."""

from typing import List, Optional
from pydantic import BaseModel


# ---- Document ----

class ChapterSummary(BaseModel):
    number: int
    title: str
    question_count: int
    section_count: int


class DocumentResponse(BaseModel):
    title: Optional[str] = None
    chapters: List[ChapterSummary]
    total_questions: int


# ---- Chapter ----

class SectionSchema(BaseModel):
    heading: str
    body: str = ""


class QuestionAnswerSchema(BaseModel):
    question: str
    answer: str


class ChapterResponse(BaseModel):
    number: int
    title: str
    sections: List[SectionSchema]
    questions: List[QuestionAnswerSchema]


# ---- Search ----

class SearchHitSchema(BaseModel):
    chapter: int
    index: int
    question: str
    answer: str
    score: float


class SearchResponse(BaseModel):
    query: str
    hits: List[SearchHitSchema]
