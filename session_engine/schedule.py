from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional


class ScheduleStatus(Enum):
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    MISSED = "MISSED"


class ScheduleNotifier:
    """Forward session lifecycle changes to a schedule entry.

    Transitions are fire-and-forget.  A failing ``ScheduleApi`` never stops
    the session; the error is logged and passed to ``on_error`` so the user
    can be told.
    """

    def __init__(
        self,
        api=None,
        schedule_id: Optional[str] = None,
        on_error: Optional[Callable[[ScheduleStatus, Exception], None]] = None,
    ) -> None:
        self.api = api
        self.schedule_id = schedule_id
        self.on_error = on_error

    @property
    def enabled(self) -> bool:
        return self.api is not None and self.schedule_id is not None

    def session_started(self) -> bool:
        return self._request(ScheduleStatus.IN_PROGRESS)

    def session_completed(self) -> bool:
        return self._request(ScheduleStatus.COMPLETED)

    def session_abandoned(self) -> bool:
        return self._request(ScheduleStatus.CANCELLED)

    def _request(self, status: ScheduleStatus) -> bool:
        if not self.enabled:
            return False
        try:
            self.api.transition(self.schedule_id, status)
        except Exception as exc:
            logging.exception(
                "Schedule %s transition to %s failed", self.schedule_id, status.value
            )
            if self.on_error:
                self.on_error(status, exc)
            return False
        logging.info("Schedule %s moved to %s", self.schedule_id, status.value)
        return True
