"""
Static question bank and lookup helpers.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from models.schemas import Difficulty


@dataclass(frozen=True)
class Question:
    """A single timed interview question."""
    difficulty: Difficulty
    allotted_seconds: int
    prompt: str

    def get_config(self) -> Dict[str, Any]:
        """Get question configuration as dictionary."""
        return {
            "difficulty": self.difficulty.value,
            "allotted_seconds": self.allotted_seconds,
            "prompt": self.prompt,
        }


# Asked in this order; positions identify questions
QUESTION_BANK: Tuple[Question, ...] = (
    Question(Difficulty.EASY, 20, "What is the purpose of a 'key' prop in React?"),
    Question(Difficulty.EASY, 20, "What is the difference between 'let' and 'const' in JavaScript?"),
    Question(Difficulty.MEDIUM, 60, "Explain the concept of the virtual DOM in React."),
    Question(Difficulty.MEDIUM, 60, "What are React Hooks? Name three common ones and their purpose."),
    Question(Difficulty.HARD, 120, "Describe a situation where you would use 'useMemo' and explain why it is useful."),
    Question(Difficulty.HARD, 120, "How would you handle global state management in a large React application? Discuss one approach."),
)


class QuestionBank:
    """
    Read-only access to an ordered sequence of questions.
    """

    def __init__(self, questions: Tuple[Question, ...] = QUESTION_BANK):
        if not questions:
            raise ValueError("question bank must not be empty")
        self._questions = tuple(questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self):
        return iter(self._questions)

    def get_question(self, index: int) -> Optional[Question]:
        """Get the question at a bank position, or None past the end."""
        if 0 <= index < len(self._questions):
            return self._questions[index]
        return None

    def allotted_seconds_for(self, next_question_index: int) -> int:
        """
        Time allotted to the most recently asked question.

        Args:
            next_question_index: Index of the next question to ask

        Returns:
            Allotted seconds of question ``next_question_index - 1``,
            or of the first question when none has been asked
        """
        last_asked = max(0, min(next_question_index, len(self._questions)) - 1)
        return self._questions[last_asked].allotted_seconds

    def get_all_questions_info(self) -> List[Dict[str, Any]]:
        return [
            {"index": i, **question.get_config()}
            for i, question in enumerate(self._questions)
        ]


default_question_bank = QuestionBank()
