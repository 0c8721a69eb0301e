"""
Interview state machine for managing interview flow.
Collects candidate details, asks the timed question sequence,
scores the result and recovers interrupted sessions.
"""
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from models.schemas import (
    CandidateDetails,
    CompletedSession,
    DetailField,
    InterviewPhase,
    InterviewSession,
    Sender,
    SessionView,
    TranscriptEntry,
)
from interview.questions import QuestionBank, default_question_bank
from interview.scoring import InterviewScorer
from interview.timer import AsyncioScheduler, CountdownTimer
from utils.config import config
from utils.validators import is_valid_email, is_valid_phone

logger = logging.getLogger(__name__)


MISSING_DETAIL_OPENER = "It seems I'm missing some information. What is your full {field}?"
DETAILS_COMPLETE_MESSAGE = "Great, I have all your details. Let's begin the interview."
INTERVIEW_COMPLETE_MESSAGE = "Thank you for your answers. The interview is now complete."

DETAIL_PROMPTS = {
    DetailField.NAME: "Thank you. What is your full name?",
    DetailField.EMAIL: "Got it. What is your email address?",
    DetailField.PHONE: "Perfect. And finally, what is your phone number?",
}

INVALID_DETAIL_PROMPTS = {
    DetailField.NAME: "Please tell me your full name.",
    DetailField.EMAIL: "That doesn't look like a valid email. Please provide a correct email address.",
    DetailField.PHONE: "That doesn't look like a valid 10-digit phone number. Please try again.",
}

DETAIL_VALIDATORS = {
    DetailField.NAME: lambda value: bool(value.strip()),
    DetailField.EMAIL: is_valid_email,
    DetailField.PHONE: is_valid_phone,
}


class InterviewStateError(RuntimeError):
    """Raised when an operation is not allowed in the current phase."""


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class InterviewStateMachine:
    """
    Owns the single active interview session.

    Every transition persists a snapshot through the persistence adapter.
    The countdown and the delayed next question are held as scheduled
    handles and cancelled whenever the session leaves the answering state.
    """

    def __init__(
        self,
        persistence,
        scheduler=None,
        question_bank: QuestionBank = default_question_bank,
        scorer: Optional[InterviewScorer] = None,
        answer_delay: Optional[float] = None,
        tick_seconds: Optional[float] = None,
        timeout_sentinel: Optional[str] = None,
        clock: Callable[[], str] = _utc_timestamp,
    ):
        """
        Initialize the state machine with a fresh, unstarted session.

        Args:
            persistence: Session persistence adapter
            scheduler: Object with call_later(delay, callback) returning a cancellable handle
            question_bank: Ordered questions to ask
            scorer: Transcript scorer (defaults to one over the same bank)
            answer_delay: Pause before the next question after an answer
            tick_seconds: Countdown tick interval
            timeout_sentinel: Answer recorded when a question times out
            clock: Returns the completion timestamp for archived sessions
        """
        self.persistence = persistence
        self.scheduler = scheduler or AsyncioScheduler()
        self.question_bank = question_bank
        self.timeout_sentinel = timeout_sentinel or config.interview.timeout_sentinel
        self.scorer = scorer or InterviewScorer(question_bank, timeout_sentinel=self.timeout_sentinel)
        self.answer_delay = config.interview.answer_delay_seconds if answer_delay is None else answer_delay
        self.clock = clock

        self.countdown = CountdownTimer(
            self.scheduler,
            interval=tick_seconds or config.interview.tick_seconds,
        )
        self._pending_question = None

        self.started = False
        self.storage_warning: Optional[str] = None
        self.last_completed: Optional[CompletedSession] = None
        self.session = self._fresh_session()

    def _fresh_session(self) -> InterviewSession:
        return InterviewSession(seconds_remaining=self.question_bank.allotted_seconds_for(0))

    # ========================================
    # Status
    # ========================================

    @property
    def phase(self) -> InterviewPhase:
        if self.session.ended:
            return InterviewPhase.ENDED
        if not self.started:
            return InterviewPhase.NOT_STARTED
        if self.session.pending_detail_field is not None:
            return InterviewPhase.COLLECTING_DETAILS
        return InterviewPhase.AWAITING_ANSWER

    @property
    def awaiting_next_question(self) -> bool:
        """True during the pause between an answer and the next question."""
        return self._pending_question is not None

    def snapshot(self) -> SessionView:
        """Get the current session as a read model."""
        return SessionView(
            phase=self.phase,
            transcript=list(self.session.transcript),
            seconds_remaining=self.session.seconds_remaining,
            time_expired=self.session.time_expired,
            ended=self.session.ended,
            candidate=self.session.candidate.model_copy(),
            pending_detail_field=self.session.pending_detail_field,
            question_number=self.session.next_question_index,
            total_questions=len(self.question_bank),
            awaiting_next_question=self.awaiting_next_question,
            storage_warning=self.storage_warning,
        )

    # ========================================
    # Conversation Management
    # ========================================

    def _append(self, sender: Sender, text: str, question_index: Optional[int] = None):
        self.session.transcript.append(
            TranscriptEntry(sender=sender, text=text, question_index=question_index)
        )

    def _persist(self):
        self._record_write(self.persistence.save_in_progress(self.session), "interview progress")

    def _record_write(self, succeeded: bool, what: str):
        if succeeded:
            self.storage_warning = None
        else:
            self.storage_warning = f"Could not save {what}; it may be lost if the page is reloaded."

    def _cancel_scheduled(self):
        self.countdown.stop()
        if self._pending_question is not None:
            self._pending_question.cancel()
            self._pending_question = None

    def _is_question_entry(self, entry: TranscriptEntry, index: int) -> bool:
        question = self.question_bank.get_question(index)
        if question is None or entry.sender != Sender.AI:
            return False
        if entry.question_index is not None:
            return entry.question_index == index
        return entry.text == question.prompt

    # ========================================
    # Lifecycle
    # ========================================

    def prefill_candidate(self, details: CandidateDetails):
        """Merge extracted details into the candidate before the interview starts."""
        if self.started:
            raise InterviewStateError("Candidate details can only be pre-filled before the interview starts")
        updates = {k: v for k, v in details.model_dump().items() if v}
        self.session.candidate = self.session.candidate.model_copy(update=updates)
        logger.info(f"Pre-filled candidate details: {sorted(updates)}")

    def start(self) -> SessionView:
        """
        Start the interview, collecting any missing details first.

        Returns:
            Snapshot after the opening message
        """
        if self.started:
            raise InterviewStateError("An interview is already in progress")
        if self.persistence.has_in_progress():
            raise InterviewStateError("A saved interview must be resumed or discarded first")

        self.started = True
        self.session.pending_detail_field = self.session.candidate.next_missing()
        logger.info(
            f"Interview started (collecting: "
            f"{self.session.pending_detail_field.value if self.session.pending_detail_field else 'nothing'})"
        )
        self._open_conversation()
        return self.snapshot()

    def _open_conversation(self):
        if self.session.transcript:
            return
        if self.session.pending_detail_field is not None:
            self._append(
                Sender.AI,
                MISSING_DETAIL_OPENER.format(field=self.session.pending_detail_field.value),
            )
            self._persist()
        else:
            self._advance()

    def resume(self) -> bool:
        """
        Restore the persisted interview and continue where it left off.

        Returns:
            True if a saved interview was restored, False if a fresh session was started instead
        """
        self._cancel_scheduled()
        saved = self.persistence.load_in_progress()
        if saved is None:
            logger.info("No saved interview to resume, starting fresh")
            self.session = self._fresh_session()
            self.started = False
            return False

        self.session = InterviewSession(
            transcript=list(saved.transcript),
            next_question_index=saved.next_question_index,
            candidate=saved.candidate,
            pending_detail_field=saved.pending_detail_field,
            # The remaining count itself is not persisted
            seconds_remaining=self.question_bank.allotted_seconds_for(saved.next_question_index),
        )
        self.started = True
        logger.info(
            f"Resumed interview at question {self.session.next_question_index} "
            f"with {len(self.session.transcript)} messages"
        )

        if self.session.pending_detail_field is None and self.session.next_question_index == 0:
            self.session.pending_detail_field = self.session.candidate.next_missing()

        if self.session.pending_detail_field is not None:
            self._open_conversation()
            return True

        last_entry = self.session.transcript[-1] if self.session.transcript else None
        if last_entry is not None and self._is_question_entry(last_entry, self.session.next_question_index - 1):
            self.countdown.start(self._tick)
        else:
            # Interrupted between an answer and the next question
            self._advance()
        return True

    def discard(self):
        """Drop any saved or active interview and reset to a fresh session."""
        self._cancel_scheduled()
        self._record_write(self.persistence.clear_in_progress(), "the reset")
        self.session = self._fresh_session()
        self.started = False
        logger.info("Interview discarded")

    # ========================================
    # Candidate Input
    # ========================================

    def submit(self, text: str) -> bool:
        """
        Handle free-text input from the candidate.

        Returns:
            True if the input was accepted by the current phase
        """
        if not isinstance(text, str) or not text.strip():
            return False

        phase = self.phase
        if phase == InterviewPhase.COLLECTING_DETAILS:
            self._collect_detail(text)
            return True

        if phase != InterviewPhase.AWAITING_ANSWER:
            logger.debug(f"Ignoring input in phase {phase.value}")
            return False
        if self.awaiting_next_question or self.session.time_expired or self.session.next_question_index == 0:
            return False

        self.countdown.stop()
        self._advance(text)
        return True

    def _collect_detail(self, answer: str):
        detail = self.session.pending_detail_field
        self._append(Sender.USER, answer)

        # Checked as typed; only the stored value is trimmed
        if not DETAIL_VALIDATORS[detail](answer):
            logger.info(f"Rejected invalid {detail.value}")
            self._append(Sender.AI, INVALID_DETAIL_PROMPTS[detail])
            self._persist()
            return

        self.session.candidate = self.session.candidate.model_copy(update={detail.value: answer.strip()})
        next_detail = self.session.candidate.next_missing()
        self.session.pending_detail_field = next_detail

        if next_detail is not None:
            self._append(Sender.AI, DETAIL_PROMPTS[next_detail])
            self._persist()
            return

        self._append(Sender.AI, DETAILS_COMPLETE_MESSAGE)
        self._persist()
        self._advance()

    # ========================================
    # Question Sequencing
    # ========================================

    def _advance(self, answer: Optional[str] = None):
        """Record an answer (if any), then ask the next question or finalize."""
        if self.session.ended:
            return

        if answer is not None:
            self._append(Sender.USER, answer)
            self._persist()

        if self.session.next_question_index >= len(self.question_bank):
            self._finalize()
            return

        if answer is not None and self.answer_delay > 0:
            self._pending_question = self.scheduler.call_later(self.answer_delay, self._ask_next_question)
        else:
            self._ask_next_question()

    def _ask_next_question(self):
        self._pending_question = None
        if self.session.ended:
            return

        index = self.session.next_question_index
        question = self.question_bank.get_question(index)
        self._append(Sender.AI, question.prompt, question_index=index)
        self.session.seconds_remaining = question.allotted_seconds
        self.session.next_question_index = index + 1
        self.session.time_expired = False
        self.countdown.start(self._tick)
        self._persist()
        logger.info(f"Asked question {index + 1}/{len(self.question_bank)} ({question.difficulty.value})")

    def _tick(self) -> bool:
        if (
            self.phase != InterviewPhase.AWAITING_ANSWER
            or self.session.time_expired
            or self.awaiting_next_question
        ):
            return False

        self.session.seconds_remaining -= 1
        if self.session.seconds_remaining > 0:
            return True

        self.session.seconds_remaining = 0
        self.session.time_expired = True
        logger.info(f"Time ran out on question {self.session.next_question_index}")
        self._advance(self.timeout_sentinel)
        return False

    # ========================================
    # Finalization
    # ========================================

    def _finalize(self):
        if self.session.ended:
            return

        self._cancel_scheduled()
        self._append(Sender.AI, INTERVIEW_COMPLETE_MESSAGE)
        score = self.scorer.calculate_score(self.session.transcript)
        completed = CompletedSession(
            candidate=self.session.candidate.model_copy(),
            transcript=list(self.session.transcript),
            completed_at=self.clock(),
            score=score,
            summary=self.scorer.build_summary(score),
        )
        self.session.ended = True
        self.session.seconds_remaining = 0
        self.last_completed = completed

        archived = self.persistence.append_completed(completed)
        self._record_write(archived, "the completed interview")
        if archived:
            # Otherwise the saved slot lets a reload finalize again
            cleared = self.persistence.clear_in_progress()
            if not cleared:
                self._record_write(cleared, "the end of the interview; it may be archived twice")
        logger.info(f"Interview complete with score {score}/{self.scorer.max_score}")
