"""User-facing notices: success, error and info messages."""

import logging
import threading
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from gymledger.utils.logging_utils import get_logger


logger = get_logger(__name__)


class NoticeType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notice:
    id: str
    type: NoticeType
    title: str
    message: str | None = None
    duration: float | None = None


NoticeListener = Callable[[list[Notice]], None]


class Notifier(Protocol):
    """Anything that can announce an outcome to the user."""

    def success(self, title: str, message: str | None = None, duration: float | None = None) -> str:
        ...

    def error(self, title: str, message: str | None = None, duration: float | None = None) -> str:
        ...

    def info(self, title: str, message: str | None = None, duration: float | None = None) -> str:
        ...


class ToastNotifier:
    """Queue of pending notices with change listeners.

    Listeners receive a copy of the full queue after every change.
    Notices stay queued until removed.
    """

    def __init__(self) -> None:
        self._notices: list[Notice] = []
        self._listeners: list[NoticeListener] = []
        self._lock = threading.Lock()

    @property
    def notices(self) -> list[Notice]:
        with self._lock:
            return list(self._notices)

    def subscribe(self, listener: NoticeListener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        with self._lock:
            snapshot = list(self._notices)
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(list(snapshot))
            except Exception as e:
                logger.error(f"Notice listener failed: {e}", exc_info=True)

    def show(self, notice_type: NoticeType, title: str, message: str | None = None, duration: float | None = None) -> str:
        notice = Notice(uuid.uuid4().hex[:9], NoticeType(notice_type), title, message, duration)
        with self._lock:
            self._notices.append(notice)
        logger.debug(f"Notice queued: {notice.type.value} {title}")
        self._notify()
        return notice.id

    def remove(self, notice_id: str) -> None:
        with self._lock:
            self._notices = [n for n in self._notices if n.id != notice_id]
        self._notify()

    def success(self, title: str, message: str | None = None, duration: float | None = None) -> str:
        return self.show(NoticeType.SUCCESS, title, message, duration)

    def error(self, title: str, message: str | None = None, duration: float | None = None) -> str:
        return self.show(NoticeType.ERROR, title, message, duration)

    def info(self, title: str, message: str | None = None, duration: float | None = None) -> str:
        return self.show(NoticeType.INFO, title, message, duration)


class LoggingNotifier:
    """Writes notices to the log; used by the CLI and batch runs."""

    LEVELS = {
        NoticeType.SUCCESS: logging.INFO,
        NoticeType.ERROR: logging.ERROR,
        NoticeType.INFO: logging.INFO,
    }

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger(__name__)

    def _log(self, notice_type: NoticeType, title: str, message: str | None) -> str:
        text = f"{title}: {message}" if message else title
        self.logger.log(self.LEVELS[notice_type], text)
        return uuid.uuid4().hex[:9]

    def success(self, title: str, message: str | None = None, duration: float | None = None) -> str:
        return self._log(NoticeType.SUCCESS, title, message)

    def error(self, title: str, message: str | None = None, duration: float | None = None) -> str:
        return self._log(NoticeType.ERROR, title, message)

    def info(self, title: str, message: str | None = None, duration: float | None = None) -> str:
        return self._log(NoticeType.INFO, title, message)
