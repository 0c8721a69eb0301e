# Interview module
from .questions import Question, QuestionBank, QUESTION_BANK, default_question_bank
from .state import InterviewStateMachine, InterviewStateError
from .scoring import InterviewScorer
from .timer import AsyncioScheduler, CountdownTimer, ManualScheduler
