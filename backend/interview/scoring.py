"""
Presence-based scoring of a finished interview.
A question earns points when the candidate answered it before time ran out.
"""
from dataclasses import dataclass
from typing import List, Optional

from models.schemas import Sender, TranscriptEntry
from interview.questions import QuestionBank, default_question_bank
from utils.config import config


@dataclass
class QuestionOutcome:
    """Whether a single question was answered in time."""
    index: int
    asked: bool
    answered: bool
    answer: Optional[str] = None


class InterviewScorer:
    """
    Scores transcripts against a question bank.
    """

    def __init__(
        self,
        question_bank: QuestionBank = default_question_bank,
        points_per_question: int = None,
        timeout_sentinel: str = None,
    ):
        self.question_bank = question_bank
        self.points_per_question = points_per_question or config.interview.points_per_question
        self.timeout_sentinel = timeout_sentinel or config.interview.timeout_sentinel

    @property
    def max_score(self) -> int:
        return self.points_per_question * len(self.question_bank)

    def _find_question_entry(self, transcript: List[TranscriptEntry], index: int) -> Optional[int]:
        """Position of the AI entry asking bank question ``index``."""
        prompt = self.question_bank.get_question(index).prompt
        for position, entry in enumerate(transcript):
            if entry.sender != Sender.AI:
                continue
            if entry.question_index == index:
                return position
            # Untagged entries from older saves
            if entry.question_index is None and entry.text == prompt:
                return position
        return None

    def question_outcomes(self, transcript: List[TranscriptEntry]) -> List[QuestionOutcome]:
        """
        Evaluate every bank question in order.

        Args:
            transcript: Full interview transcript

        Returns:
            One outcome per bank question
        """
        outcomes = []
        for index in range(len(self.question_bank)):
            position = self._find_question_entry(transcript, index)
            if position is None:
                outcomes.append(QuestionOutcome(index=index, asked=False, answered=False))
                continue

            reply = transcript[position + 1] if position + 1 < len(transcript) else None
            answered = (
                reply is not None
                and reply.sender == Sender.USER
                and reply.text != self.timeout_sentinel
            )
            outcomes.append(QuestionOutcome(
                index=index,
                asked=True,
                answered=answered,
                answer=reply.text if reply is not None and reply.sender == Sender.USER else None,
            ))
        return outcomes

    def calculate_score(self, transcript: List[TranscriptEntry]) -> int:
        answered = sum(1 for outcome in self.question_outcomes(transcript) if outcome.answered)
        return answered * self.points_per_question

    def build_summary(self, score: int) -> str:
        """Fixed-template summary for the dashboard."""
        answered = score // self.points_per_question
        return (
            f"The candidate answered {answered} out of {len(self.question_bank)} questions "
            f"before the time ran out. Further review is recommended."
        )
