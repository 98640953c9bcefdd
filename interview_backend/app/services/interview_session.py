from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from interview_backend.app.config import settings
from interview_backend.app.schemas.interview import (
    AnsweredQuestion,
    InterviewResult,
    InterviewSession,
    Question,
    Recommendation,
    SessionView,
)
from interview_backend.app.services.answer_collector import AnswerCollector
from interview_backend.app.services.errors import InvalidSessionStateError
from interview_backend.app.services.evaluation_client import EvaluationClient
from interview_backend.app.services.integrity_monitor import FullscreenController, IntegrityMonitor
from interview_backend.app.services.question_sequencer import (
    QuestionSequencer,
    default_questions,
    validate_questions,
)
from interview_backend.app.services.result_persister import ResultPersister
from interview_backend.app.services.session_store import RestoreOutcome, SessionStore
from interview_backend.app.services.timer_engine import CountdownTimer

logger = logging.getLogger(__name__)

EVALUATION_FAILED = "AI evaluation failed"


@dataclass
class SubmitOutcome:
    answer: AnsweredQuestion
    result: Optional[InterviewResult] = None
    # last question answered; with deferred completion the result comes later
    finished: bool = False


def _clamp_score(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


class InterviewSessionEngine:
    """
    One candidate's timed interview.

    Owns the session object and wires the sequencer, timer, answer collector,
    integrity monitor and session store around it. Not thread-safe: callers
    serialize access (see ``SessionRegistry``). Time only moves when
    ``poll()`` is called.

    Answering the last question closes the interview. Scoring then runs in
    ``complete()``, inline by default. With ``defer_completion`` the caller
    runs ``complete()`` itself, outside whatever lock guards the engine.
    """

    def __init__(
        self,
        candidate_id: str,
        candidate_name: str,
        resume_content: str = "",
        *,
        store: SessionStore,
        evaluator: EvaluationClient,
        persister: ResultPersister,
        fullscreen: Optional[FullscreenController] = None,
        questions: Optional[Sequence[Question]] = None,
        clock: Callable[[], float] = time.time,
        defer_completion: bool = False,
    ) -> None:
        self.store = store
        self.evaluator = evaluator
        self.persister = persister
        self._fullscreen = fullscreen
        self._questions = validate_questions(questions) if questions is not None else default_questions()
        self._clock = clock
        self.defer_completion = defer_completion

        self.timer = CountdownTimer()
        self.awaiting_resume_decision = False
        self.restored = False
        self.result: Optional[InterviewResult] = None
        self._closed = False
        self._closed_at: Optional[float] = None
        self._completion = threading.Lock()
        self._claim = threading.Lock()
        self._claimed = False
        self._bind(self._fresh_session(candidate_id, candidate_name, resume_content))

    def _fresh_session(self, candidate_id: str, candidate_name: str, resume_content: str) -> InterviewSession:
        return InterviewSession(
            candidate_id=candidate_id,
            candidate_name=candidate_name,
            resume_content=resume_content or "",
            questions=list(self._questions),
        )

    def _bind(self, session: InterviewSession) -> None:
        self.session = session
        self.sequencer = QuestionSequencer(session, self.timer, self._clock)
        self.collector = AnswerCollector(session, self._clock)
        self.monitor = IntegrityMonitor(session, self._save, self._fullscreen)

    @property
    def candidate_id(self) -> str:
        return self.session.candidate_id

    @property
    def is_finished(self) -> bool:
        return self._closed

    @property
    def evaluating(self) -> bool:
        return self._closed and self.result is None

    def view(self) -> SessionView:
        return SessionView(
            session=self.session,
            awaiting_resume_decision=self.awaiting_resume_decision,
            restored=self.restored,
            evaluating=self.evaluating,
            result=self.result,
        )

    def _save(self) -> bool:
        return self.store.save(self.session)

    def _require_running(self) -> None:
        if not self.session.is_active:
            raise InvalidSessionStateError("Interview is not in progress")
        if self.awaiting_resume_decision:
            raise InvalidSessionStateError("Choose to continue or restart the interview first")

    # --- lifecycle ---

    def restore(self) -> RestoreOutcome:
        """Load a saved snapshot, if any. A restored session waits for continue/restart."""
        if self.session.interview_started:
            raise InvalidSessionStateError("Interview already in progress")
        outcome = self.store.load(self.candidate_id)
        if outcome.restored and outcome.session is not None:
            self._bind(outcome.session)
            self.timer.load(outcome.session.time_left)
            self.awaiting_resume_decision = True
            self.restored = True
        return outcome

    def start(self) -> Question:
        if self.session.interview_started:
            raise InvalidSessionStateError("Interview already started")
        now = self._clock()
        self.session.interview_started = True
        self.session.started_at = now
        self.monitor.request_fullscreen()
        question = self.sequencer.start()
        self._save()
        logger.info(f"Interview started for {self.session.candidate_name} ({self.candidate_id})")
        return question

    def continue_session(self) -> None:
        if not self.awaiting_resume_decision:
            raise InvalidSessionStateError("Nothing to continue")
        self.awaiting_resume_decision = False
        self.monitor.request_fullscreen()
        self.timer.arm(self._clock())
        self._save()
        logger.info(
            f"Candidate {self.candidate_id} continued at question "
            f"{self.session.current_question_index + 1} with {self.session.time_left}s left"
        )

    def restart(self) -> None:
        """Drop all progress; the candidate has to start again."""
        if self._closed:
            raise InvalidSessionStateError("Interview already finished")
        self.store.clear(self.candidate_id)
        self.timer.cancel()
        self._bind(
            self._fresh_session(
                self.session.candidate_id,
                self.session.candidate_name,
                self.session.resume_content,
            )
        )
        self.awaiting_resume_decision = False
        self.restored = False
        logger.info(f"Interview restarted for {self.candidate_id}")

    # --- answering ---

    def update_answer(self, text: str) -> None:
        self._require_running()
        self.session.current_answer = text
        self._save()

    def submit(
        self,
        text: Optional[str] = None,
        *,
        auto_submit: bool = False,
        at: Optional[float] = None,
        question_index: Optional[int] = None,
    ) -> SubmitOutcome:
        """
        Record the answer to the current question and move on.

        ``question_index`` lets a caller state which question it is answering;
        a mismatch means the question was already closed (usually by its
        timer) and the submit is rejected. On the last question the interview
        is finalized and the result is returned in the outcome.
        """
        self._require_running()
        if not auto_submit:
            # apply any pending timeout first; it wins over a late manual submit
            expired = self._advance_clock(self._clock())
            if expired is not None and question_index is None:
                raise InvalidSessionStateError("Question time ran out before the answer arrived")
        if question_index is not None and question_index != self.session.current_question_index:
            raise InvalidSessionStateError(f"Question {question_index + 1} is no longer open")
        if not self.session.is_active:
            raise InvalidSessionStateError("Interview is not in progress")
        return self._submit(text, auto_submit=auto_submit, at=at)

    def _submit(self, text: Optional[str], *, auto_submit: bool, at: Optional[float]) -> SubmitOutcome:
        answer_text = self.session.current_answer if text is None else text
        record = self.collector.submit(answer_text, auto_submit=auto_submit, at=at)
        self.timer.cancel()
        if self.sequencer.advance():
            self._close()
            result = None if self.defer_completion else self.complete()
            return SubmitOutcome(answer=record, result=result, finished=True)
        self._save()
        return SubmitOutcome(answer=record)

    # --- clock ---

    def poll(self, now: Optional[float] = None) -> Optional[SubmitOutcome]:
        """Sync the timer with the clock; auto-submits when the question time runs out."""
        if not self.session.is_active or self.awaiting_resume_decision:
            return None
        now = self._clock() if now is None else now
        outcome = self._advance_clock(now)
        if outcome is not None:
            return outcome
        self.store.heartbeat(self.session)
        return None

    def _advance_clock(self, now: float) -> Optional[SubmitOutcome]:
        tick = self.timer.advance_to(now)
        self.session.time_left = self.timer.remaining
        if tick.expired_at is not None:
            logger.info(
                f"Time ran out on question {self.session.current_question_index + 1} "
                f"for {self.candidate_id}"
            )
            return self._submit(None, auto_submit=True, at=tick.expired_at)
        if tick.ticks:
            self._save()
        return None

    # --- integrity ---

    def on_fullscreen_exit(self) -> bool:
        if self.monitor.on_fullscreen_exit():
            self._save()
            return True
        return False

    def on_unload(self) -> Optional[str]:
        return self.monitor.on_unload()

    # --- finalization ---

    def _close(self) -> None:
        if self._closed:
            raise InvalidSessionStateError("Interview already finalized")
        self._closed = True
        self._closed_at = self._clock()

        session = self.session
        session.interview_completed = True
        self.timer.cancel()
        self.store.clear(session.candidate_id)
        self.monitor.release_fullscreen()

    def claim_completion(self) -> bool:
        """True for exactly one caller once a deferred interview is closed and unscored."""
        with self._claim:
            if self._claimed or not self.evaluating:
                return False
            self._claimed = True
            return True

    def complete(self) -> InterviewResult:
        """Score and persist a closed interview. Runs once; later calls get the same result."""
        with self._completion:
            if not self._closed:
                raise InvalidSessionStateError("Interview is still in progress")
            if self.result is None:
                self.result = self._finalize()
            return self.result

    def load_finished(self, result: InterviewResult) -> None:
        """Show an interview whose result was stored earlier."""
        if self.session.interview_started:
            raise InvalidSessionStateError("Interview already in progress")
        self.session.interview_started = True
        self.session.interview_completed = True
        self.session.answers = list(result.answers)
        self._closed = True
        self.result = result

    def _finalize(self) -> InterviewResult:
        session = self.session
        answers = list(session.answers)
        completed_at = datetime.fromtimestamp(self._closed_at, tz=timezone.utc).isoformat()
        try:
            evaluation = self.evaluator.evaluate(answers, session.candidate_name, session.resume_content)
            result = InterviewResult(
                score=_clamp_score(evaluation.overall_score),
                summary=self.monitor.annotate(evaluation.summary),
                answers=answers,
                ai_evaluation=evaluation.model_dump(mode="json", by_alias=True),
                completed_at=completed_at,
                recommendation=evaluation.recommendation or Recommendation.NO_HIRE.value,
            )
            self.persister.attach_result(session.candidate_id, result)
        # evaluation or persistence failed; the candidate still gets a result
        except Exception as exc:
            logger.error(f"Interview finalization failed for {session.candidate_id}: {exc}")
            result = self._fallback_result(answers, completed_at, exc)
            try:
                self.persister.attach_result(session.candidate_id, result)
            except Exception as save_exc:
                logger.error(f"Error saving fallback results for {session.candidate_id}: {save_exc}")

        logger.info(
            f"Interview finished for {session.candidate_name}: {result.score} ({result.recommendation})"
        )
        return result

    def _fallback_result(self, answers: List[AnsweredQuestion], completed_at: str, error: Exception) -> InterviewResult:
        return InterviewResult(
            score=0,
            summary=self.monitor.annotate(f"Interview could not be evaluated. Error: {error}"),
            answers=answers,
            ai_evaluation={"error": EVALUATION_FAILED, "details": str(error)},
            completed_at=completed_at,
            recommendation=Recommendation.NO_HIRE.value,
        )


class SessionRegistry:
    """
    In-process map of candidate id -> engine, each with its own lock.

    Every operation on an engine, including clock polling, runs under that
    engine's lock. Scoring does not: a finished interview is completed
    outside the lock (on a worker thread when the clock closed it) and the
    engine is then dropped, since its result lives in the database. Engines
    not running a question are dropped once left untouched for
    ``idle_seconds``.
    """

    def __init__(
        self,
        *,
        idle_seconds: Optional[float] = None,
        scoring_workers: Optional[int] = None,
        executor: Optional[Executor] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._engines: Dict[str, Tuple[InterviewSessionEngine, threading.RLock]] = {}
        self._touched: Dict[str, float] = {}
        self._guard = threading.Lock()
        self.idle_seconds = idle_seconds if idle_seconds is not None else settings.IDLE_ENGINE_SECONDS
        self._scoring_workers = scoring_workers if scoring_workers is not None else settings.SCORING_WORKERS
        self._executor = executor
        self._clock = clock

    def __len__(self) -> int:
        with self._guard:
            return len(self._engines)

    def get(self, candidate_id: str) -> Optional[Tuple[InterviewSessionEngine, threading.RLock]]:
        with self._guard:
            entry = self._engines.get(candidate_id)
            if entry is not None:
                self._touched[candidate_id] = self._clock()
            return entry

    def get_or_create(
        self,
        candidate_id: str,
        factory: Callable[[], InterviewSessionEngine],
    ) -> Tuple[InterviewSessionEngine, threading.RLock]:
        with self._guard:
            entry = self._engines.get(candidate_id)
            if entry is None:
                entry = (factory(), threading.RLock())
                self._engines[candidate_id] = entry
            self._touched[candidate_id] = self._clock()
            return entry

    def discard(self, candidate_id: str) -> None:
        with self._guard:
            self._engines.pop(candidate_id, None)
            self._touched.pop(candidate_id, None)

    def release(self, engine: InterviewSessionEngine) -> None:
        """Forget ``engine`` unless its slot has been taken by another one."""
        with self._guard:
            entry = self._engines.get(engine.candidate_id)
            if entry is not None and entry[0] is engine:
                del self._engines[engine.candidate_id]
                self._touched.pop(engine.candidate_id, None)

    def items(self) -> Iterator[Tuple[InterviewSessionEngine, threading.RLock]]:
        with self._guard:
            snapshot = list(self._engines.values())
        return iter(snapshot)

    def complete(self, engine: InterviewSessionEngine) -> InterviewResult:
        """Score a closed interview and drop its engine. Call without holding the engine lock."""
        result = engine.complete()
        self.release(engine)
        return result

    def _scoring_pool(self) -> Executor:
        with self._guard:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self._scoring_workers,
                    thread_name_prefix="interview-scoring",
                )
            return self._executor

    def _complete_in_background(self, engine: InterviewSessionEngine) -> Future:
        def _run() -> InterviewResult:
            try:
                return self.complete(engine)
            except Exception:
                logger.exception(f"Background completion failed for {engine.candidate_id}")
                raise

        return self._scoring_pool().submit(_run)

    def poll_all(self, now: Optional[float] = None) -> int:
        """Advance every active engine's clock. Returns the number of auto-submits."""
        fired = 0
        for engine, lock in self.items():
            with lock:
                outcome = engine.poll(now)
            if outcome is not None:
                fired += 1
            if engine.claim_completion():
                self._complete_in_background(engine)
            elif outcome is not None and outcome.finished:
                self.release(engine)
        self.evict_idle()
        return fired

    def evict_idle(self, now: Optional[float] = None) -> int:
        """Drop engines with no running question that nobody touched for ``idle_seconds``."""
        now = self._clock() if now is None else now
        evicted = 0
        with self._guard:
            for candidate_id, (engine, _) in list(self._engines.items()):
                running = engine.session.is_active and not engine.awaiting_resume_decision
                if running or engine.evaluating:
                    continue
                if now - self._touched.get(candidate_id, now) < self.idle_seconds:
                    continue
                del self._engines[candidate_id]
                self._touched.pop(candidate_id, None)
                evicted += 1
        if evicted:
            logger.info(f"Dropped {evicted} idle interview engine(s)")
        return evicted

    def shutdown(self, wait: bool = True) -> None:
        with self._guard:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def clear(self) -> None:
        with self._guard:
            self._engines.clear()
            self._touched.clear()
