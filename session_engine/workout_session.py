import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from session_engine import DEFAULT_TICK_INTERVAL
from session_engine import settings
from session_engine.gesture import Gesture, GestureDisambiguator
from session_engine.kudos import KudosFeed, KudosType
from session_engine.progression import Advance, Progression
from session_engine.schedule import ScheduleNotifier, ScheduleStatus
from session_engine.timer import TimerMode, TimerPurpose, TimerUnit, format_seconds
from session_engine.workout import Workout, WorkoutExercise


class SessionState(Enum):
    CREATED = "created"
    ACTIVE = "active"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


@dataclass(frozen=True)
class SessionSummary:
    """Values sent to the session store when a workout is finished."""

    duration_seconds: int
    calories_burned: int
    notes: str
    completed_sets: int

    def to_dict(self) -> dict:
        return {
            "duration": self.duration_seconds,
            "caloriesBurned": self.calories_burned,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Notice:
    """Non-blocking message for the user (toast, banner)."""

    level: str
    message: str
    event: Optional[KudosType] = None
    retry: bool = False


@dataclass(frozen=True)
class SessionView:
    """Everything the presentation layer needs to render the session."""

    state: SessionState
    exercise: WorkoutExercise
    exercise_index: int
    exercise_count: int
    set_number: int
    set_label: str
    countdown_text: str
    elapsed_text: str
    progress: float
    timer_mode: TimerMode
    timer_visible: bool
    timer_hint: str
    is_resting: bool
    is_holding: bool
    can_go_previous: bool
    can_advance: bool
    can_complete_set: bool
    can_skip_rest: bool
    exit_requested: bool
    save_failed: bool


# Kudos types loaded ahead of time when the session starts
PREFETCH_KUDOS = (
    KudosType.EXERCISE_COMPLETE,
    KudosType.REST_START,
    KudosType.REST_COMPLETE,
    KudosType.NEXT_EXERCISE,
    KudosType.WORKOUT_COMPLETE,
)


class WorkoutSessionEngine:
    """Runtime for one pass through a workout.

    The engine owns a countdown :class:`TimerUnit` for work and rest periods,
    a count-up :class:`TimerUnit` for the whole session, and the
    :class:`Progression` cursor/ledger.  Both timers are driven from a single
    interval on ``tick_source``.  Collaborators:

    ``session_store``
        ``create_session(workout_id) -> id`` and
        ``complete_session(id, summary)``.
    ``schedule_api``
        optional ``transition(schedule_id, status)``.
    ``kudos``
        :class:`KudosFeed` for motivational messages.

    User actions that do not apply to the current state return ``False``
    instead of raising.  Collaborator failures are reported through
    ``on_notice`` and never stop local progression.
    """

    def __init__(
        self,
        workout: Workout,
        session_store,
        tick_source,
        *,
        schedule_api=None,
        schedule_id: Optional[str] = None,
        kudos: Optional[KudosFeed] = None,
        on_notice: Optional[Callable[[Notice], None]] = None,
        on_change: Optional[Callable[["WorkoutSessionEngine"], None]] = None,
        on_feedback: Optional[Callable[[Gesture], None]] = None,
        hold_threshold_ms: Optional[int] = None,
        calories_per_second: Optional[float] = None,
        save_retry_attempts: Optional[int] = None,
    ):
        self.workout = workout
        self.progression = Progression(workout)
        self.store = session_store
        self.tick_source = tick_source
        self.kudos = kudos or KudosFeed()
        self.on_notice = on_notice
        self.on_change = on_change
        self.on_feedback = on_feedback

        if hold_threshold_ms is None:
            hold_threshold_ms = settings.get_value("hold_threshold_ms")
        if calories_per_second is None:
            calories_per_second = settings.get_value("calories_per_second")
        if save_retry_attempts is None:
            save_retry_attempts = settings.get_value("save_retry_attempts")
        self.calories_per_second = float(calories_per_second)
        self.save_retry_attempts = max(1, int(save_retry_attempts))
        self.kudos_prefetch_count = int(settings.get_value("kudos_prefetch_count", 5))

        self.state = SessionState.CREATED
        self.session_id: Optional[str] = None
        self.countdown = TimerUnit(on_expire=self._on_countdown_expire)
        self.elapsed = TimerUnit()
        self.gesture = GestureDisambiguator(
            tick_source,
            on_tap=self.toggle_timer,
            on_hold=self.reset_timer,
            can_hold=self._can_hold,
            feedback=self._on_gesture_feedback,
            threshold_ms=int(hold_threshold_ms),
        )
        self.schedule = ScheduleNotifier(
            schedule_api, schedule_id, on_error=self._on_schedule_error
        )

        self.is_resting = False
        # advance applied once the current rest period runs out
        self._pending_advance: Optional[Advance] = None
        self._set_started_at = 0.0
        self._interval = None
        self.disposed = False
        self.exit_requested = False

        self.summary: Optional[SessionSummary] = None
        # summary kept after a failed save so it can be retried
        self.pending_summary: Optional[SessionSummary] = None
        self.saved = False
        self.save_failed = False
        self.notices: list[Notice] = []

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.state is SessionState.ACTIVE and not self.disposed

    @property
    def is_degraded(self) -> bool:
        """``True`` when no session record exists in the store."""
        return self.state is not SessionState.CREATED and self.session_id is None

    @property
    def current_exercise(self) -> WorkoutExercise:
        return self.progression.current_exercise

    @property
    def cursor(self):
        return self.progression.cursor

    @property
    def ledger(self):
        return self.progression.ledger

    @property
    def progress(self) -> float:
        return self.progression.progress

    @property
    def has_pending_advance(self) -> bool:
        """A rest was cut short and its advance is still waiting."""
        return self._pending_advance is not None

    def _notify(self, level: str, message: str, event=None, retry: bool = False) -> None:
        notice = Notice(level, message, event, retry)
        self.notices.append(notice)
        if self.on_notice:
            self.on_notice(notice)

    def _cheer(self, kind: KudosType) -> None:
        self._notify("info", self.kudos.get_phrase(kind), event=kind)

    def _changed(self) -> None:
        if self.on_change:
            self.on_change(self)

    def _on_schedule_error(self, status: ScheduleStatus, exc: Exception) -> None:
        self._notify("warning", f"Couldn't update the schedule ({status.value.lower()})")

    def _on_gesture_feedback(self, gesture: Gesture) -> None:
        if self.on_feedback:
            self.on_feedback(gesture)

    def _can_hold(self) -> bool:
        return (
            self.countdown.mode is not TimerMode.IDLE
            or self.countdown.remaining_seconds > 0
        )

    def _clear_countdown(self) -> None:
        self.countdown.reset()
        self.is_resting = False
        self._pending_advance = None

    def _release_handles(self) -> None:
        if self._interval is not None:
            self._interval.cancel()
            self._interval = None
        self.gesture.dispose()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self) -> bool:
        """Start the session: clocks, store record and schedule status."""

        if self.state is not SessionState.CREATED or self.disposed:
            return False
        self.state = SessionState.ACTIVE
        self.elapsed.start_elapsed()
        self._set_started_at = self.tick_source.now()
        self._interval = self.tick_source.schedule_interval(self._on_tick, DEFAULT_TICK_INTERVAL)

        try:
            self.session_id = self.store.create_session(self.workout.id)
        except Exception:
            logging.exception("Failed to start session for workout %s", self.workout.id)
            self._notify(
                "error",
                "Failed to start workout session. Your progress will be saved when the connection returns.",
            )
        else:
            logging.info("Workout session %s started for workout %s", self.session_id, self.workout.id)
            self._cheer(KudosType.WORKOUT_START)

        self.schedule.session_started()
        self.kudos.prefetch(PREFETCH_KUDOS, self.kudos_prefetch_count)
        self._changed()
        return True

    def dispose(self) -> None:
        """Release every scheduled callback and stop both timers."""

        self._release_handles()
        self._clear_countdown()
        self.elapsed.stop()
        self.disposed = True

    def _on_tick(self) -> None:
        self.elapsed.tick()
        self.countdown.tick()
        self._changed()

    def _on_countdown_expire(self, purpose: TimerPurpose) -> None:
        if purpose is TimerPurpose.REST:
            advance = self._pending_advance
            self.is_resting = False
            self._pending_advance = None
            self._cheer(KudosType.REST_COMPLETE)
            if advance is not None:
                self._apply_advance(advance)
        elif purpose is TimerPurpose.WORK:
            self._cheer(KudosType.EXERCISE_COMPLETE)

    def _apply_advance(self, advance: Advance) -> None:
        if advance is Advance.NEXT_SET:
            self.progression.next_set()
            self._set_started_at = self.tick_source.now()
        elif advance is Advance.NEXT_EXERCISE:
            self.advance_exercise()
        else:
            self._complete()

    # ------------------------------------------------------------------
    # Timer control
    # ------------------------------------------------------------------

    def toggle_timer(self) -> bool:
        """Tap on the timer: start the work timer, pause or resume."""

        if not self.is_active:
            return False
        mode = self.countdown.mode
        if mode is TimerMode.COUNTING_DOWN:
            self.countdown.pause()
        elif mode is TimerMode.PAUSED:
            self.countdown.resume()
        else:
            work = self.current_exercise.work_duration
            if not work or self.is_resting:
                return False
            self.countdown.start(work, TimerPurpose.WORK)
        self._changed()
        return True

    def reset_timer(self) -> bool:
        """Hold on the timer: clear the countdown and any rest period.

        The cursor and ledger are left untouched.  A rest that is cut short
        keeps its deferred advance for :meth:`skip_rest`.
        """

        if not self.is_active:
            return False
        self.countdown.reset()
        self.is_resting = False
        self._changed()
        return True

    def on_press_start(self) -> None:
        if self.is_active:
            self.gesture.on_press_start()

    def on_press_end(self) -> Optional[Gesture]:
        if not self.is_active:
            self.gesture.on_press_cancel()
            return None
        return self.gesture.on_press_end()

    def on_press_cancel(self) -> None:
        self.gesture.on_press_cancel()

    def skip_rest(self) -> bool:
        """End the current rest early and perform the pending advance.

        Also continues after a rest that a hold already cleared.
        """

        if not self.is_active or not (self.is_resting or self.has_pending_advance):
            return False
        advance = self._pending_advance
        self._clear_countdown()
        if advance is not None:
            self._apply_advance(advance)
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------

    def complete_current_set(self) -> bool:
        """Record the current set, then rest or move on.

        Returns ``False`` when the set was already recorded.
        """

        if not self.is_active:
            return False
        exercise = self.current_exercise
        advance = self.progression.complete_current_set(
            self._set_started_at, self.tick_source.now()
        )
        if advance is None:
            return False

        if exercise.rest_time:
            self.countdown.reset()
            self.countdown.start(exercise.rest_time, TimerPurpose.REST)
            self.is_resting = True
            self._pending_advance = advance
            self._cheer(KudosType.REST_START)
        else:
            self._apply_advance(advance)
        self._changed()
        return True

    def advance_exercise(self) -> bool:
        """Move to the next exercise, or finish on the last one."""

        if not self.is_active:
            return False
        if self.progression.is_last_exercise:
            self._complete()
            self._changed()
            return True
        self._clear_countdown()
        self.progression.next_exercise()
        self._set_started_at = self.tick_source.now()
        self._cheer(KudosType.NEXT_EXERCISE)
        self._changed()
        return True

    def go_to_previous_exercise(self) -> bool:
        if not self.is_active or self.cursor.exercise_index == 0:
            return False
        self._clear_countdown()
        self.progression.previous_exercise()
        self._set_started_at = self.tick_source.now()
        self._changed()
        return True

    def finish_workout(self) -> bool:
        """Finish from the final exercise without completing every set."""

        if not self.is_active or not self.progression.is_last_exercise:
            return False
        self._complete()
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _build_summary(self) -> SessionSummary:
        duration = self.elapsed.elapsed_seconds
        calories = self.workout.calories_burn or int(duration * self.calories_per_second)
        completed = len(self.ledger)
        return SessionSummary(
            duration_seconds=duration,
            calories_burned=calories,
            notes=f"Completed {completed} sets",
            completed_sets=completed,
        )

    def _complete(self) -> None:
        if self.state is not SessionState.ACTIVE:
            return
        # stop both clocks before reading them
        self._release_handles()
        self._clear_countdown()
        self.elapsed.stop()
        self.state = SessionState.COMPLETED
        self.summary = self._build_summary()
        logging.info(
            "Workout %s completed in %ss with %s sets",
            self.workout.id,
            self.summary.duration_seconds,
            self.summary.completed_sets,
        )
        self.schedule.session_completed()
        self._submit(self.summary)

    def _submit(self, summary: SessionSummary) -> bool:
        for attempt in range(1, self.save_retry_attempts + 1):
            try:
                if self.session_id is None:
                    self.session_id = self.store.create_session(self.workout.id)
                self.store.complete_session(self.session_id, summary)
            except Exception:
                logging.exception(
                    "Saving workout session failed (attempt %s of %s)",
                    attempt,
                    self.save_retry_attempts,
                )
                continue
            self.saved = True
            self.save_failed = False
            self.pending_summary = None
            logging.info("Workout session %s saved", self.session_id)
            self._cheer(KudosType.WORKOUT_COMPLETE)
            return True

        self.pending_summary = summary
        self.save_failed = True
        self._notify("error", "Couldn't save your workout. Retry?", retry=True)
        return False

    def retry_save(self) -> bool:
        """Resubmit the summary kept from a failed save."""

        if self.pending_summary is None:
            return False
        result = self._submit(self.pending_summary)
        self._changed()
        return result

    # ------------------------------------------------------------------
    # Exit
    # ------------------------------------------------------------------

    def request_exit(self) -> bool:
        """Open the "are you sure" gate; nothing is discarded yet."""

        if not self.is_active:
            return False
        self.exit_requested = True
        self._changed()
        return True

    def cancel_exit(self) -> bool:
        if not self.exit_requested:
            return False
        self.exit_requested = False
        self._changed()
        return True

    def confirm_exit(self) -> bool:
        """Abandon the session after :meth:`request_exit`."""

        if not self.is_active or not self.exit_requested:
            return False
        self.exit_requested = False
        self.state = SessionState.ABANDONED
        self.dispose()
        logging.info("Workout session %s abandoned", self.session_id)
        self.schedule.session_abandoned()
        self._changed()
        return True

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def timer_hint(self) -> str:
        if self.gesture.is_holding:
            return "Resetting..."
        mode = self.countdown.mode
        if mode is TimerMode.COUNTING_DOWN:
            return "Tap to pause, hold to reset"
        if mode is TimerMode.PAUSED:
            return "Tap to resume, hold to reset"
        if self.has_pending_advance and not self.is_resting:
            return "Rest cleared, skip to continue"
        if self.current_exercise.work_duration and not self.is_resting:
            return "Tap to start"
        return ""

    def view(self) -> SessionView:
        exercise = self.current_exercise
        active = self.is_active
        return SessionView(
            state=self.state,
            exercise=exercise,
            exercise_index=self.cursor.exercise_index,
            exercise_count=len(self.workout.exercises),
            set_number=self.cursor.set_number,
            set_label=self.progression.set_label(),
            countdown_text=format_seconds(self.countdown.remaining_seconds),
            elapsed_text=format_seconds(self.elapsed.elapsed_seconds),
            progress=self.progress,
            timer_mode=self.countdown.mode,
            timer_visible=bool(exercise.work_duration) or self.is_resting,
            timer_hint=self.timer_hint(),
            is_resting=self.is_resting,
            is_holding=self.gesture.is_holding,
            can_go_previous=active and self.cursor.exercise_index > 0,
            can_advance=active,
            can_complete_set=active and not self.progression.is_current_set_completed(),
            can_skip_rest=active and (self.is_resting or self.has_pending_advance),
            exit_requested=self.exit_requested,
            save_failed=self.save_failed,
        )
