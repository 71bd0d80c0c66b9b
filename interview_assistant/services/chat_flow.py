"""
Candidate chat flow: upload -> collecting -> ready -> interview -> completed.

`transition()` is a pure reducer: it takes the current `ChatState`, one event and the
wall-clock time, and returns the next state plus the side effects to run. The
`ChatFlowController` runs those effects (user save, tracker calls, question supplier,
evaluator), feeds their results back as events and persists the state to the session.
"""
import dataclasses
import datetime
import logging
import math
import typing

import pydantic

from interview_assistant.models.db.interview import Interview
from interview_assistant.models.schemas.chat import (
    ActiveQuestion,
    AnswerEvaluated,
    AttemptCompleted,
    AttemptStarted,
    CandidateFields,
    ChatEvent,
    ChatMessage,
    ChatState,
    CollectingPhase,
    CompletedPhase,
    InterviewPhase,
    PendingAnswer,
    QuestionIssued,
    ReadyPhase,
    Reset,
    ResumeUploaded,
    TimerExpired,
    UploadPhase,
    UserMessage,
)
from interview_assistant.models.schemas.interview import QuestionSlotSchema
from interview_assistant.repository.crud.session import SessionCRUDRepository
from interview_assistant.repository.crud.user import UserCRUDRepository
from interview_assistant.services import evaluation, question_bank
from interview_assistant.services.interview_tracker import InterviewTracker
from interview_assistant.services.resume_fields import (
    FIELD_PROMPTS,
    VALIDATORS,
    extract_fields,
    missing_fields,
)
from interview_assistant.utilities.exceptions.database import EntityDoesNotExist
from interview_assistant.utilities.exceptions.interview import InvalidTransition
from interview_assistant.utilities.formatters.datetime_formatter import as_utc, utc_now

logger = logging.getLogger(__name__)

START_KEYWORDS: tuple[str, ...] = ("yes", "start", "ready", "begin", "ok", "sure", "go")
TIMEOUT_ANSWER = "No answer provided (time expired)"
SLOT_COUNT = len(question_bank.DIFFICULTY_SEQUENCE)

CLARIFY_MESSAGE = 'I didn\'t quite understand. Please type "yes" or "start" when you\'re ready to begin the interview! 😊'


# Effects requested by the reducer


@dataclasses.dataclass(frozen=True)
class SaveUser:
    name: str
    email: str
    phone: str
    resume_text: str | None


@dataclasses.dataclass(frozen=True)
class StartAttempt:
    email: str
    candidate_info: dict


@dataclasses.dataclass(frozen=True)
class FetchQuestion:
    sequence_id: int
    difficulty: str
    previous_questions: tuple[str, ...]
    context_text: str | None


@dataclasses.dataclass(frozen=True)
class RecordSlot:
    attempt_id: str
    slot: dict
    issued_at: datetime.datetime | None = None


@dataclasses.dataclass(frozen=True)
class Evaluate:
    sequence_id: int
    question: str
    answer: str
    difficulty: str
    time_taken: int


@dataclasses.dataclass(frozen=True)
class CompleteAttempt:
    attempt_id: str
    final_answers: tuple[dict, ...]


@dataclasses.dataclass(frozen=True)
class DeactivateSessions:
    email: str


Effect = typing.Union[SaveUser, StartAttempt, FetchQuestion, RecordSlot, Evaluate, CompleteAttempt, DeactivateSessions]


class Transition(typing.NamedTuple):
    state: ChatState
    effects: list[Effect]


def _say(messages: list[ChatMessage], role: str, text: str, now: datetime.datetime) -> list[ChatMessage]:
    return [*messages, ChatMessage(role=role, text=text, at=now)]  # type: ignore[arg-type]


def _ready_message(fields: CandidateFields) -> str:
    return (
        "Perfect! ✅ I have all the information I need:\n\n"
        f"📋 **Your Details:**\n• Name: {fields.name}\n• Email: {fields.email}\n• Phone: {fields.phone}\n\n"
        "🎯 **Interview Details:**\n• 6 Technical Questions (React/Node.js)\n• 2 Easy → 2 Medium → 2 Hard\n"
        "• Timed: Easy (20s), Medium (60s), Hard (120s)\n\n"
        'Are you ready to start your technical interview? Type "yes", "start", or "ready" to begin!'
    )


def _question_message(question: ActiveQuestion) -> str:
    return (
        f"📝 **Question {question.sequence_id}/{SLOT_COUNT}** ({question.difficulty.upper()}) - {question.time_limit}s\n\n"
        f"{question.question}\n\n"
        f"⏰ **Timer started!** You have {question.time_limit} seconds to answer."
    )


def _enter_ready(
    messages: list[ChatMessage], fields: CandidateFields, resume_text: str | None, now: datetime.datetime
) -> Transition:
    messages = _say(messages, "bot", _ready_message(fields), now)
    return Transition(
        ChatState(state=ReadyPhase(fields=fields, resume_text=resume_text), messages=messages),
        [SaveUser(name=fields.name, email=fields.email, phone=fields.phone, resume_text=resume_text)],  # type: ignore[arg-type]
    )


def _on_resume_uploaded(state: ChatState, event: ResumeUploaded, now: datetime.datetime) -> Transition:
    if isinstance(state.state, (InterviewPhase, CompletedPhase)):
        raise InvalidTransition("A resume cannot be uploaded once the interview has started")

    scanned = extract_fields(event.text)
    values = {
        "name": (event.name or scanned["name"] or "").strip() or None,
        "email": (event.email or scanned["email"] or "").strip().lower() or None,
        "phone": (event.phone or scanned["phone"] or "").strip() or None,
    }
    fields = CandidateFields(**values)
    messages = _say([], "bot", "Hello! 👋 I've successfully processed your resume. Let me review the information I found...", now)
    messages = _say(
        messages,
        "bot",
        "Here's what I found in your resume:\n\n"
        f"Name: {fields.name or 'Not found'}\nEmail: {fields.email or 'Not found'}\nPhone: {fields.phone or 'Not found'}",
        now,
    )

    missing = missing_fields(values)
    if not missing:
        return _enter_ready(messages, fields, event.text, now)

    messages = _say(
        messages,
        "bot",
        "I need to collect some missing or invalid information. Let me ask you a few questions to complete your profile.",
        now,
    )
    messages = _say(messages, "bot", FIELD_PROMPTS[missing[0]], now)
    phase = CollectingPhase(resume_text=event.text, fields=fields, missing=missing)  # type: ignore[arg-type]
    return Transition(ChatState(state=phase, messages=messages), [])


def _on_collecting_input(state: ChatState, phase: CollectingPhase, text: str, now: datetime.datetime) -> Transition:
    field = phase.missing[0]
    value = text.strip().lower() if field == "email" else text.strip()
    messages = _say(state.messages, "user", text, now)

    if not VALIDATORS[field](value):
        messages = _say(messages, "bot", f"That doesn't look like a valid {field}. {FIELD_PROMPTS[field]}", now)
        return Transition(ChatState(state=phase, messages=messages), [])

    fields = phase.fields.model_copy(update={field: value})
    messages = _say(messages, "bot", f"Got it! {field}: {value} ✅", now)
    remaining = phase.missing[1:]
    if not remaining:
        return _enter_ready(messages, fields, phase.resume_text, now)

    messages = _say(messages, "bot", FIELD_PROMPTS[remaining[0]], now)
    next_phase = phase.model_copy(update={"fields": fields, "missing": remaining})
    return Transition(ChatState(state=next_phase, messages=messages), [])


def _on_ready_input(state: ChatState, phase: ReadyPhase, text: str, now: datetime.datetime) -> Transition:
    messages = _say(state.messages, "user", text, now)
    if phase.starting:
        return Transition(ChatState(state=phase, messages=messages), [])

    lowered = text.lower()
    if not any(keyword in lowered for keyword in START_KEYWORDS):
        messages = _say(messages, "bot", CLARIFY_MESSAGE, now)
        return Transition(ChatState(state=phase, messages=messages), [])

    messages = _say(messages, "bot", "Excellent! 🚀 Starting your technical interview now...", now)
    fields = phase.fields
    candidate_info = {"name": fields.name, "email": fields.email, "phone": fields.phone, "resume_text": phase.resume_text}
    return Transition(
        ChatState(state=phase.model_copy(update={"starting": True}), messages=messages),
        [StartAttempt(email=fields.email, candidate_info=candidate_info)],  # type: ignore[arg-type]
    )


def _answered_ids(phase: InterviewPhase) -> set[int]:
    return {slot.sequence_id for slot in phase.answers if slot.sequence_id is not None}


def _advance_round(
    phase: InterviewPhase, messages: list[ChatMessage], now: datetime.datetime, stored: dict[int, QuestionSlotSchema] | None = None
) -> Transition:
    """Ask the first unanswered question, or complete once all slots are answered."""
    answered = _answered_ids(phase)
    next_id = next((seq for seq in range(1, SLOT_COUNT + 1) if seq not in answered), None)

    if next_id is None:
        messages = _say(messages, "system", "🎉 **Interview Complete!** Generating your comprehensive results...", now)
        final_answers = tuple(slot.to_fields() for slot in phase.answers)
        next_phase = phase.model_copy(update={"current": None, "pending": None, "completing": True})
        return Transition(
            ChatState(state=next_phase, messages=messages),
            [CompleteAttempt(attempt_id=phase.attempt_id, final_answers=final_answers)],
        )

    difficulty = question_bank.difficulty_for(next_id)
    existing = (stored or {}).get(next_id)
    if existing is not None and existing.question:
        # Re-ask the question already recorded for this slot; the tracker keeps its first issue time
        issued = QuestionIssued(
            sequence_id=next_id,
            question=existing.question,
            difficulty=difficulty,  # type: ignore[arg-type]
            time_limit=existing.time_limit or question_bank.time_limit_for(difficulty),
        )
        return _on_question_issued(ChatState(state=phase, messages=messages), phase, issued, now)

    messages = _say(messages, "system", f"🤖 Generating Question {next_id}/{SLOT_COUNT} ({difficulty.upper()})...", now)
    next_phase = phase.model_copy(update={"current": None, "pending": None})
    return Transition(
        ChatState(state=next_phase, messages=messages),
        [
            FetchQuestion(
                sequence_id=next_id,
                difficulty=difficulty,
                previous_questions=tuple(phase.asked_questions),
                context_text=phase.resume_text,
            )
        ],
    )


def _on_attempt_started(state: ChatState, phase: ReadyPhase, event: AttemptStarted, now: datetime.datetime) -> Transition:
    stored = {slot.sequence_id: slot for slot in event.slots if slot.sequence_id is not None}
    answers = [slot for slot in event.slots if slot.answered]
    interview = InterviewPhase(
        attempt_id=event.attempt_id,
        resume_text=phase.resume_text,
        fields=phase.fields,
        asked_questions=[slot.question for slot in event.slots if slot.question],
        answers=answers,
    )
    messages = state.messages
    if answers:
        messages = _say(messages, "system", f"Welcome back! {len(answers)} of {SLOT_COUNT} questions already answered.", now)
    else:
        messages = _say(
            messages,
            "bot",
            "🎯 **Your Technical Interview Starts Now!**\n\n**Format Reminder:**\n"
            "• 6 Questions Total: 2 Easy → 2 Medium → 2 Hard\n"
            "• Timers: Easy (20s), Medium (60s), Hard (120s)\n• Auto-submit when time expires",
            now,
        )
    return _advance_round(interview, messages, now, stored=stored)


def _on_question_issued(state: ChatState, phase: InterviewPhase, event: QuestionIssued, now: datetime.datetime) -> Transition:
    question = ActiveQuestion(
        sequence_id=event.sequence_id,
        question=event.question,
        difficulty=event.difficulty,
        time_limit=event.time_limit,
        issued_at=now,
    )
    asked = phase.asked_questions if event.question in phase.asked_questions else [*phase.asked_questions, event.question]
    next_phase = phase.model_copy(update={"current": question, "pending": None, "asked_questions": asked})
    messages = _say(state.messages, "bot", _question_message(question), now)
    slot = {
        "sequence_id": event.sequence_id,
        "question": event.question,
        "difficulty": event.difficulty,
        "time_limit": event.time_limit,
        "answered": False,
    }
    return Transition(
        ChatState(state=next_phase, messages=messages),
        [RecordSlot(attempt_id=phase.attempt_id, slot=slot, issued_at=now)],
    )


def _submit(
    state: ChatState, phase: InterviewPhase, current: ActiveQuestion, answer: str, now: datetime.datetime, timed_out: bool
) -> Transition:
    if timed_out:
        time_taken = current.time_limit
        answer = answer.strip() or TIMEOUT_ANSWER
    else:
        elapsed = (as_utc(now) - as_utc(current.issued_at)).total_seconds()  # type: ignore[operator]
        time_taken = max(0, math.floor(elapsed))

    pending = PendingAnswer(sequence_id=current.sequence_id, answer=answer, time_taken=time_taken, timed_out=timed_out)
    next_phase = phase.model_copy(update={"pending": pending})
    messages = state.messages
    if timed_out:
        messages = _say(messages, "system", "⏰ Time's up! Auto-submitting your answer...", now)
    messages = _say(messages, "system", "🤖 AI is evaluating your answer...", now)
    return Transition(
        ChatState(state=next_phase, messages=messages),
        [
            Evaluate(
                sequence_id=current.sequence_id,
                question=current.question,
                answer=answer,
                difficulty=current.difficulty,
                time_taken=time_taken,
            )
        ],
    )


def _on_interview_input(state: ChatState, phase: InterviewPhase, text: str, now: datetime.datetime) -> Transition:
    if phase.current is None or phase.pending is not None:
        raise InvalidTransition("No question is waiting for an answer")
    if not text.strip():
        raise InvalidTransition("Answer cannot be empty")

    state = ChatState(state=phase, messages=_say(state.messages, "user", text.strip(), now))
    late = as_utc(now) >= as_utc(phase.current.deadline)  # type: ignore[operator]
    return _submit(state, phase, phase.current, text.strip(), now, timed_out=late)


def _on_timer_expired(state: ChatState, phase: InterviewPhase, event: TimerExpired, now: datetime.datetime) -> Transition:
    # Fires once after the countdown hits zero; anything after the first is a no-op
    if phase.current is None or phase.pending is not None:
        return Transition(state, [])
    return _submit(state, phase, phase.current, event.draft or "", now, timed_out=True)


def _on_answer_evaluated(state: ChatState, phase: InterviewPhase, event: AnswerEvaluated, now: datetime.datetime) -> Transition:
    pending, current = phase.pending, phase.current
    if pending is None or current is None or pending.sequence_id != event.sequence_id:
        raise InvalidTransition("No answer is awaiting evaluation for this question")

    slot = QuestionSlotSchema(
        sequence_id=current.sequence_id,
        question=current.question,
        difficulty=current.difficulty,
        time_limit=current.time_limit,
        answered=True,
        answer=pending.answer,
        score=event.score,
        time_taken=pending.time_taken,
        feedback=event.feedback,
        timed_out=pending.timed_out,
    )
    answers = [answer for answer in phase.answers if answer.sequence_id != slot.sequence_id] + [slot]
    offline = event.error == evaluation.SERVICE_UNAVAILABLE
    is_last = len({a.sequence_id for a in answers}) >= SLOT_COUNT
    score_text = f"{event.score:g}"
    messages = _say(
        state.messages,
        "system",
        f"{'⚠️' if offline else '✅'} Answer recorded! Score: {score_text}/10{' (Offline Mode)' if offline else ''}"
        f"{' - Generating final results...' if is_last else ' - Moving to next question...'}",
        now,
    )
    next_phase = phase.model_copy(update={"answers": answers, "current": None, "pending": None})
    following = _advance_round(next_phase, messages, now)
    return Transition(
        following.state,
        [RecordSlot(attempt_id=phase.attempt_id, slot=slot.to_fields()), *following.effects],
    )


def _on_attempt_completed(state: ChatState, phase: InterviewPhase, event: AttemptCompleted, now: datetime.datetime) -> Transition:
    completed = CompletedPhase(
        attempt_id=event.attempt_id,
        fields=phase.fields,
        total_score=event.total_score,
        average_score=event.average_score,
        status=event.status,
    )
    messages = _say(
        state.messages,
        "bot",
        f"Interview complete! Average score: {event.average_score:.1f}/10 across {SLOT_COUNT} questions.",
        now,
    )
    return Transition(ChatState(state=completed, messages=messages), [])


def transition(state: ChatState, event: ChatEvent, now: datetime.datetime) -> Transition:
    """Pure reducer over the chat flow; raises `InvalidTransition` when the event does not apply."""
    phase = state.state

    if isinstance(event, Reset):
        effects: list[Effect] = [DeactivateSessions(email=state.email)] if state.email else []
        return Transition(ChatState(state=UploadPhase(), messages=[]), effects)

    if isinstance(event, ResumeUploaded):
        return _on_resume_uploaded(state, event, now)

    if isinstance(event, UserMessage):
        if isinstance(phase, CollectingPhase):
            return _on_collecting_input(state, phase, event.text, now)
        if isinstance(phase, ReadyPhase):
            return _on_ready_input(state, phase, event.text, now)
        if isinstance(phase, InterviewPhase):
            return _on_interview_input(state, phase, event.text, now)
        raise InvalidTransition(f"Messages are not accepted in the {phase.phase} phase")

    if isinstance(event, TimerExpired):
        if isinstance(phase, InterviewPhase):
            return _on_timer_expired(state, phase, event, now)
        return Transition(state, [])

    if isinstance(event, AttemptStarted) and isinstance(phase, ReadyPhase):
        return _on_attempt_started(state, phase, event, now)
    if isinstance(event, QuestionIssued) and isinstance(phase, InterviewPhase):
        return _on_question_issued(state, phase, event, now)
    if isinstance(event, AnswerEvaluated) and isinstance(phase, InterviewPhase):
        return _on_answer_evaluated(state, phase, event, now)
    if isinstance(event, AttemptCompleted) and isinstance(phase, InterviewPhase):
        return _on_attempt_completed(state, phase, event, now)

    raise InvalidTransition(f"Event {event.type} does not apply to the {phase.phase} phase")


def remaining_seconds(state: ChatState, now: datetime.datetime) -> int | None:
    phase = state.state
    if isinstance(phase, InterviewPhase) and phase.current is not None and phase.pending is None:
        current = phase.current.model_copy(update={"issued_at": as_utc(phase.current.issued_at)})
        return current.remaining_seconds(as_utc(now))  # type: ignore[arg-type]
    return None


def _slots_of(interview: Interview) -> list[QuestionSlotSchema]:
    return [QuestionSlotSchema.from_slot(slot) for slot in interview.questions]


class ChatFlowController:
    def __init__(
        self,
        *,
        tracker: InterviewTracker,
        user_repo: UserCRUDRepository,
        session_repo: SessionCRUDRepository,
        clock: typing.Callable[[], datetime.datetime] = utc_now,
    ):
        self.tracker = tracker
        self.user_repo = user_repo
        self.session_repo = session_repo
        self.clock = clock

    async def load(self, *, email: str) -> ChatState:
        session = await self.session_repo.get_active_session(email=email)
        try:
            return ChatState.model_validate(session.session_data)
        except pydantic.ValidationError as exc:
            # Snapshots saved through /sessions/save may not be chat flow state
            logger.warning("Session of %s is not a chat state: %s", email, exc.error_count())
            raise EntityDoesNotExist("Session not found") from exc

    async def reconcile(self, state: ChatState) -> ChatState:
        """
        Rebuild the interview part of `state` from the tracker. Answers and scores come from the
        stored slots, and the open question keeps the issue time stamped on its slot, so a state
        sent back by a client cannot carry its own scores or move its deadline.
        """
        phase = state.state
        if not isinstance(phase, (InterviewPhase, CompletedPhase)):
            return state

        interview = await self.tracker.get_attempt(attempt_id=phase.attempt_id)
        owner = await self.user_repo.get_user_by_email(email=phase.fields.email or "", active_only=False)
        if interview.user_id != owner.id:
            raise InvalidTransition("Chat state does not belong to this interview")

        if not interview.is_open:
            completed = CompletedPhase(
                attempt_id=interview.id,
                fields=phase.fields,
                total_score=interview.total_score,
                average_score=interview.average_score,
                status=interview.status,
            )
            return ChatState(state=completed, messages=state.messages)
        if isinstance(phase, CompletedPhase):
            raise InvalidTransition("Interview is still in progress")

        current = phase.current
        if current is not None:
            stored = interview.slot_for(current.sequence_id)
            if stored is None or stored.answered or stored.question != current.question or stored.issued_at is None:
                raise InvalidTransition("Chat state does not match the recorded interview")
            difficulty = question_bank.difficulty_for(current.sequence_id)
            current = current.model_copy(
                update={
                    "difficulty": difficulty,
                    "time_limit": question_bank.time_limit_for(difficulty),
                    "issued_at": as_utc(stored.issued_at),
                }
            )

        rebuilt = phase.model_copy(
            update={
                "answers": [QuestionSlotSchema.from_slot(slot) for slot in interview.questions if slot.answered],
                "asked_questions": [slot.question for slot in interview.questions if slot.question],
                "current": current,
                "pending": None,
                "completing": False,
            }
        )
        return ChatState(state=rebuilt, messages=state.messages)

    async def advance(self, state: ChatState, event: ChatEvent) -> ChatState:
        """Apply a client event and every event its effects produce, then persist the state."""
        if not isinstance(event, Reset):
            state = await self.reconcile(state)

        queue: list[ChatEvent] = [event]
        while queue:
            current_event = queue.pop(0)
            result = transition(state, current_event, self.clock())
            state = result.state
            for effect in result.effects:
                follow_up = await self._run(effect)
                if follow_up is not None:
                    queue.append(follow_up)

        state = await self.reconcile(state)
        await self._persist(state)
        return state

    async def _run(self, effect: Effect) -> ChatEvent | None:
        if isinstance(effect, SaveUser):
            resume_data = {"text": effect.resume_text} if effect.resume_text else None
            await self.user_repo.save_user(name=effect.name, email=effect.email, phone=effect.phone, resume_data=resume_data)
            return None

        if isinstance(effect, StartAttempt):
            interview, _ = await self.tracker.start_attempt(email=effect.email, candidate_info=effect.candidate_info)
            return AttemptStarted(attempt_id=interview.id, slots=_slots_of(interview))

        if isinstance(effect, FetchQuestion):
            supplied = await question_bank.next_question(
                effect.difficulty,
                list(effect.previous_questions),
                context_text=effect.context_text,
            )
            return QuestionIssued(
                sequence_id=effect.sequence_id,
                question=supplied["question"],
                difficulty=supplied["difficulty"],
                time_limit=supplied["timeLimit"],
            )

        if isinstance(effect, RecordSlot):
            await self.tracker.record_question(attempt_id=effect.attempt_id, slot=effect.slot, issued_at=effect.issued_at)
            return None

        if isinstance(effect, Evaluate):
            result = await evaluation.evaluate_answer(
                question=effect.question,
                answer=effect.answer,
                difficulty=effect.difficulty,
                time_taken=effect.time_taken,
            )
            return AnswerEvaluated(sequence_id=effect.sequence_id, **result)

        if isinstance(effect, CompleteAttempt):
            interview = await self.tracker.complete_attempt(
                attempt_id=effect.attempt_id,
                final_answers=list(effect.final_answers),
            )
            return AttemptCompleted(
                attempt_id=interview.id,
                total_score=interview.total_score,
                average_score=interview.average_score,
                status=interview.status,
            )

        if isinstance(effect, DeactivateSessions):
            await self.session_repo.deactivate_sessions(email=effect.email)
            return None

        raise TypeError(f"Unknown effect {effect!r}")

    async def _persist(self, state: ChatState) -> None:
        email = state.email
        if not email:
            return
        try:
            user = await self.user_repo.get_user_by_email(email=email)
        except EntityDoesNotExist:
            # Nothing to attach the snapshot to until the profile is saved
            logger.debug("No user yet for %s, chat state not persisted", email)
            return
        await self.session_repo.save_session(user=user, session_data=state.model_dump(mode="json", by_alias=True))
