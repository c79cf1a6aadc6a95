"""
Source Record Models

Typed records returned by the source adapters (profiles, Q&A responses,
survey responses, status notes) and the roster provider. Adapters may hand
back these models or plain mappings; the extractor validates each one.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any


class RosterUser(BaseModel):
    """A person known to the organization."""

    id: str
    name: str
    department: Optional[str] = None
    role: Optional[str] = None
    email: Optional[str] = None


class ProfileRecord(BaseModel):
    """Self-declared profile: expertise list plus working preferences."""

    id: str
    user_id: str
    work_style: Optional[str] = None
    communication_style: Optional[str] = None
    expertise: List[str] = Field(default_factory=list)
    availability: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class QuestionRecord(BaseModel):
    """Prompt posed to members in the Q&A rotation."""

    id: str
    content: str
    category: str = "general"


class QAResponseRecord(BaseModel):
    """A member's answer to a Q&A question."""

    id: str
    user_id: str
    question: QuestionRecord
    response: str
    created_at: datetime


class SurveyQuestionType(str, Enum):
    """Survey question kinds. Only TEXT answers carry indexable signal."""

    TEXT = "text"
    MULTIPLE_CHOICE = "multiple_choice"
    SINGLE_CHOICE = "single_choice"
    RATING = "rating"
    BOOLEAN = "boolean"


class SurveyQuestion(BaseModel):
    id: str
    type: SurveyQuestionType
    question: str
    options: Optional[List[str]] = None
    required: bool = False


class SurveyRecord(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    questions: List[SurveyQuestion] = Field(default_factory=list)

    def get_question(self, question_id: str) -> Optional[SurveyQuestion]:
        return next((q for q in self.questions if q.id == question_id), None)


class SurveyResponseRecord(BaseModel):
    """One member's answers to a survey, keyed by question id."""

    id: str
    user_id: str
    survey: SurveyRecord
    responses: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class StatusNoteRecord(BaseModel):
    """Free-text status update (daily report)."""

    id: str
    user_id: str
    condition: Optional[str] = None
    progress: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
