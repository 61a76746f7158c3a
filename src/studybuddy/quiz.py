"""Quiz generation from flashcards and the in-memory quiz session."""
import random
from datetime import datetime

from studybuddy.analytics import round_percentage
from studybuddy.errors import InsufficientContent, InvalidSessionState
from studybuddy.models import DEFAULT_TOPIC, Answer, Flashcard, QuizQuestion

MIN_FLASHCARDS = 5
MAX_QUESTIONS = 10
OPTIONS_PER_QUESTION = 4

NOT_STARTED = "not_started"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"


def build_options(correct_answer: str, sibling_answers: list[str], rng: random.Random) -> list[str]:
    """Shuffle the correct answer in with up to three distinct sibling answers.

    Fewer than three usable siblings yields fewer options; nothing is padded.
    """
    candidates = []
    for answer in sibling_answers:
        if answer != correct_answer and answer not in candidates:
            candidates.append(answer)
    distractors = rng.sample(candidates, min(OPTIONS_PER_QUESTION - 1, len(candidates)))
    options = distractors + [correct_answer]
    rng.shuffle(options)
    return options[:OPTIONS_PER_QUESTION]


def generate_quiz(flashcards: list[Flashcard], rng: random.Random | None = None) -> list[QuizQuestion]:
    """Build up to 10 multiple-choice questions from a flashcard collection.

    Raises:
        InsufficientContent: fewer than MIN_FLASHCARDS cards were given.
    """
    if len(flashcards) < MIN_FLASHCARDS:
        raise InsufficientContent(len(flashcards), MIN_FLASHCARDS)
    rng = rng or random.Random()
    shuffled = list(flashcards)
    rng.shuffle(shuffled)
    selected = shuffled[:min(MAX_QUESTIONS, len(shuffled))]

    questions = []
    for card in selected:
        siblings = [other.answer for other in flashcards if other.id != card.id]
        questions.append(QuizQuestion(
            source_flashcard_id=card.id,
            question_text=card.question,
            correct_answer=card.answer,
            options=build_options(card.answer, siblings, rng),
            topic=card.subject or DEFAULT_TOPIC,
        ))
    return questions


class QuizSession:
    """Progress through one generated question set.

    not_started -> in_progress -> completed; abandon() returns to not_started
    from anywhere and throws the answers away.
    """

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self.state = NOT_STARTED
        self.questions: list[QuizQuestion] = []
        self.answers: list[Answer] = []
        self.current_index = 0
        self.started_at: datetime | None = None
        self.completed_at: datetime | None = None

    def start(self, questions: list[QuizQuestion]) -> None:
        if self.state != NOT_STARTED:
            raise InvalidSessionState(f"Cannot start a session that is {self.state}")
        if not questions:
            raise InvalidSessionState("Cannot start a session without questions")
        self.questions = list(questions)
        self.answers = []
        self.current_index = 0
        self.started_at = datetime.now()
        self.completed_at = None
        self.state = IN_PROGRESS

    def submit_answer(self, choice: str) -> Answer:
        if self.state != IN_PROGRESS:
            raise InvalidSessionState(f"Cannot answer a session that is {self.state}")
        question = self.current_question
        answer = Answer(
            question_id=question.source_flashcard_id,
            chosen_answer=choice,
            is_correct=choice == question.correct_answer,
        )
        self.answers.append(answer)
        if self.current_index == len(self.questions) - 1:
            self.completed_at = datetime.now()
            self.state = COMPLETED
        else:
            self.current_index += 1
        return answer

    def abandon(self) -> None:
        self._reset()

    @property
    def current_question(self) -> QuizQuestion | None:
        if self.state != IN_PROGRESS:
            return None
        return self.questions[self.current_index]

    @property
    def is_complete(self) -> bool:
        return self.state == COMPLETED

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def score(self) -> int:
        return sum(1 for a in self.answers if a.is_correct)

    @property
    def percentage(self) -> int:
        return round_percentage(self.score, self.total_questions)

    @property
    def progress(self) -> float:
        """Share of questions answered, 0-100."""
        if not self.questions:
            return 0.0
        return len(self.answers) / len(self.questions) * 100

    @property
    def time_taken_seconds(self) -> int | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return int((self.completed_at - self.started_at).total_seconds())
