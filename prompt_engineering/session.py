from __future__ import annotations

import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional

from llm_completion.instruction import build_completion_request
from llm_completion.providers import CompletionProvider
from llm_completion.types import TargetModel
from prompt_engineering.clipboard import ClipboardError, ClipboardService

logger = logging.getLogger(__name__)

COPY_FEEDBACK_MS = 2000
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


class LifecyclePhase(str, Enum):
    IDLE = "idle"
    IN_FLIGHT = "in_flight"


class CopyFeedback(str, Enum):
    NONE = ""
    CONFIRMED = "Copied!"
    FAILED = "Failed!"


@dataclass(frozen=True)
class SessionState:
    """Everything the prompt engineer window shows.

    `pending_request` is the token of the outstanding completion request and is
    set iff the phase is IN_FLIGHT. `pending_feedback` is the token of the copy
    feedback reversion currently scheduled.
    """

    raw_input: str = ""
    target_model: TargetModel = TargetModel.PRIMARY
    result_text: Optional[str] = None
    phase: LifecyclePhase = LifecyclePhase.IDLE
    last_error: Optional[str] = None
    copy_feedback: CopyFeedback = CopyFeedback.NONE
    pending_request: Optional[int] = None
    pending_feedback: Optional[int] = None

    @property
    def is_loading(self) -> bool:
        return self.phase == LifecyclePhase.IN_FLIGHT

    @property
    def can_submit(self) -> bool:
        return self.phase == LifecyclePhase.IDLE and bool(self.raw_input.strip())

    @property
    def has_result(self) -> bool:
        return bool(self.result_text)

    @property
    def shows_output(self) -> bool:
        return self.is_loading or self.has_result or self.last_error is not None


# ---------------- Events ----------------


@dataclass(frozen=True)
class InputEdited:
    text: str


@dataclass(frozen=True)
class TargetModelSelected:
    target_model: TargetModel


@dataclass(frozen=True)
class RequestStarted:
    token: int


@dataclass(frozen=True)
class RequestSucceeded:
    token: int
    text: str


@dataclass(frozen=True)
class RequestFailed:
    token: int
    message: str


@dataclass(frozen=True)
class CopySucceeded:
    token: int


@dataclass(frozen=True)
class CopyFailed:
    token: int


@dataclass(frozen=True)
class CopyFeedbackExpired:
    token: int


def transition(state: SessionState, event: object) -> SessionState:
    """Return the state that follows `state` once `event` is applied.

    Events that are not allowed in the current state (edits while a request is
    in flight, completions carrying a stale token, copy feedback without a
    result...) leave the state unchanged.
    """
    if isinstance(event, InputEdited):
        if state.is_loading:
            return state
        return replace(state, raw_input=event.text)

    if isinstance(event, TargetModelSelected):
        if state.is_loading:
            return state
        return replace(state, target_model=TargetModel(event.target_model))

    if isinstance(event, RequestStarted):
        if not state.can_submit:
            return state
        return replace(
            state,
            phase=LifecyclePhase.IN_FLIGHT,
            result_text=None,
            last_error=None,
            copy_feedback=CopyFeedback.NONE,
            pending_request=event.token,
            pending_feedback=None,
        )

    if isinstance(event, RequestSucceeded):
        if not state.is_loading or event.token != state.pending_request:
            return state
        return replace(
            state,
            phase=LifecyclePhase.IDLE,
            result_text=event.text,
            last_error=None,
            pending_request=None,
        )

    if isinstance(event, RequestFailed):
        if not state.is_loading or event.token != state.pending_request:
            return state
        return replace(
            state,
            phase=LifecyclePhase.IDLE,
            result_text=None,
            last_error=event.message,
            pending_request=None,
        )

    if isinstance(event, (CopySucceeded, CopyFailed)):
        if not state.has_result:
            return state
        feedback = CopyFeedback.CONFIRMED if isinstance(event, CopySucceeded) else CopyFeedback.FAILED
        return replace(state, copy_feedback=feedback, pending_feedback=event.token)

    if isinstance(event, CopyFeedbackExpired):
        if event.token != state.pending_feedback:
            return state
        return replace(state, copy_feedback=CopyFeedback.NONE, pending_feedback=None)

    raise TypeError(f"Unknown session event: {event!r}")


def describe_error(exc: BaseException) -> str:
    """Human-readable message for a failed completion call.

    google-genai API errors carry a `message` attribute; everything
    else falls back to str(exc).
    """
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message.strip():
        return message.strip()
    text = str(exc).strip()
    return text or UNKNOWN_ERROR_MESSAGE


class Scheduler(ABC):
    """Event-loop seam: background work and timers resumed on the UI thread."""

    @abstractmethod
    def run_in_background(
        self,
        work: Callable[[], str],
        on_success: Callable[[str], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        raise NotImplementedError

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        raise NotImplementedError

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        raise NotImplementedError


StateListener = Callable[[SessionState], None]


class PromptEngineerSession:
    """Owns the session state and the two user-triggered operations.

    Every mutation goes through `dispatch`, which applies `transition` and
    notifies subscribers when the state actually changed.
    """

    def __init__(
        self,
        provider: CompletionProvider,
        scheduler: Scheduler,
        clipboard: ClipboardService,
        copy_feedback_ms: int = COPY_FEEDBACK_MS,
    ):
        self.provider = provider
        self.scheduler = scheduler
        self.clipboard = clipboard
        self.copy_feedback_ms = copy_feedback_ms

        self._state = SessionState()
        self._tokens = itertools.count(1)
        self._feedback_handle: Any = None
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def dispatch(self, event: object) -> SessionState:
        new_state = transition(self._state, event)
        if new_state != self._state:
            self._state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return self._state

    # ---------------- Operations ----------------

    def edit_input(self, text: str) -> None:
        self.dispatch(InputEdited(text))

    def select_target_model(self, target_model: TargetModel) -> None:
        self.dispatch(TargetModelSelected(TargetModel(target_model)))

    def submit_request(
        self,
        raw_input: Optional[str] = None,
        target_model: Optional[TargetModel] = None,
    ) -> Optional[int]:
        """Start one completion request; returns its token, or None if blocked.

        The arguments are only committed together with the request: a blocked
        trigger leaves the state untouched.
        """
        candidate = self._state
        if raw_input is not None:
            candidate = transition(candidate, InputEdited(raw_input))
        if target_model is not None:
            candidate = transition(candidate, TargetModelSelected(TargetModel(target_model)))

        if not candidate.can_submit:
            return None

        self._state = candidate
        token = next(self._tokens)
        self._cancel_feedback_timer()
        self.dispatch(RequestStarted(token))

        state = self._state
        request = build_completion_request(state.raw_input, state.target_model)
        logger.info(
            "Engineering prompt for %s (input: %d chars, request #%d)",
            state.target_model.display_name,
            len(state.raw_input),
            token,
        )

        self.scheduler.run_in_background(
            lambda: self.provider.generate(request.content, request.system_instruction),
            lambda text: self._on_request_succeeded(token, text),
            lambda exc: self._on_request_failed(token, exc),
        )
        return token

    def copy_result(self) -> Optional[int]:
        """Write the result to the clipboard; returns the feedback token, or None."""
        text = self._state.result_text
        if not text:
            return None

        token = next(self._tokens)
        try:
            self.clipboard.write(text)
        except ClipboardError as e:
            logger.warning("Clipboard write failed: %s", e)
            self.dispatch(CopyFailed(token))
        else:
            self.dispatch(CopySucceeded(token))

        self._schedule_feedback_reversion(token)
        return token

    # ---------------- Completion callbacks ----------------

    def _on_request_succeeded(self, token: int, text: str) -> None:
        logger.info("Request #%d completed (%d chars)", token, len(text or ""))
        self.dispatch(RequestSucceeded(token, text))

    def _on_request_failed(self, token: int, exc: Exception) -> None:
        logger.error("Request #%d failed", token, exc_info=exc)
        self.dispatch(RequestFailed(token, describe_error(exc)))

    # ---------------- Copy feedback timer ----------------

    def _schedule_feedback_reversion(self, token: int) -> None:
        self._cancel_feedback_timer()
        self._feedback_handle = self.scheduler.call_later(
            self.copy_feedback_ms,
            lambda: self._on_feedback_expired(token),
        )

    def _cancel_feedback_timer(self) -> None:
        if self._feedback_handle is not None:
            self.scheduler.cancel(self._feedback_handle)
        self._feedback_handle = None

    def _on_feedback_expired(self, token: int) -> None:
        if self._state.pending_feedback == token:
            self._feedback_handle = None
        self.dispatch(CopyFeedbackExpired(token))
