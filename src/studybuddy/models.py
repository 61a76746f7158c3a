"""Data classes for the study domain model."""
from dataclasses import dataclass, field
from typing import Optional

DIFFICULTIES = ("easy", "medium", "hard")
STRENGTH_LEVELS = ("weak", "moderate", "strong")
DEFAULT_TOPIC = "General"


@dataclass
class Flashcard:
    id: int
    user_id: str
    question: str
    answer: str
    subject: Optional[str] = None
    difficulty: Optional[str] = None
    document_id: Optional[int] = None
    times_reviewed: int = 0
    last_reviewed_at: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Flashcard":
        return cls(**{k: row[k] for k in row.keys() if k in cls.__dataclass_fields__})


@dataclass
class QuizQuestion:
    source_flashcard_id: int
    question_text: str
    correct_answer: str
    options: list[str]
    topic: str = DEFAULT_TOPIC

    @property
    def distractors(self) -> list[str]:
        return [o for o in self.options if o != self.correct_answer]


@dataclass
class Answer:
    question_id: int
    chosen_answer: str
    is_correct: bool


@dataclass
class Quiz:
    id: int
    user_id: str
    title: str
    subject: str
    total_questions: int
    score: int
    percentage: float
    time_taken_seconds: Optional[int] = None
    quiz_type: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "Quiz":
        return cls(**{k: row[k] for k in row.keys() if k in cls.__dataclass_fields__})


@dataclass
class QuizQuestionResult:
    id: int
    quiz_id: int
    user_id: str
    topic: str
    question_text: str
    correct_answer: str
    user_answer: Optional[str] = None
    is_correct: bool = False
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "QuizQuestionResult":
        data = {k: row[k] for k in row.keys() if k in cls.__dataclass_fields__}
        data["is_correct"] = bool(data.get("is_correct"))
        return cls(**data)


@dataclass
class PerformanceAnalytics:
    id: int
    user_id: str
    subject: str
    topic: str
    total_attempts: int = 0
    correct_attempts: int = 0
    accuracy_percentage: float = 0.0
    strength_level: str = "weak"
    last_updated: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "PerformanceAnalytics":
        return cls(**{k: row[k] for k in row.keys() if k in cls.__dataclass_fields__})


@dataclass
class AnalyticsReport:
    """Read model assembled for the analytics screen."""
    quiz_stats: dict
    subjects: list[dict] = field(default_factory=list)
    topics: list[PerformanceAnalytics] = field(default_factory=list)
    strength_summary: dict = field(default_factory=dict)
    recent: list[dict] = field(default_factory=list)
    trend: str = "stable"
