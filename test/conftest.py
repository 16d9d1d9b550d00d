import pytest

from prompt_engineering.clipboard import ClipboardError, ClipboardService
from prompt_engineering.session import Scheduler


class ManualScheduler(Scheduler):
    """Stand-in for the Tk event loop: work and timers run only when the test says so."""

    def __init__(self):
        self.pending_work = []
        self.timers = {}
        self.cancelled = []
        self._next_handle = 0

    def run_in_background(self, work, on_success, on_error):
        self.pending_work.append((work, on_success, on_error))

    def finish_work(self):
        while self.pending_work:
            work, on_success, on_error = self.pending_work.pop(0)
            try:
                result = work()
            except Exception as e:
                on_error(e)
            else:
                on_success(result)

    def call_later(self, delay_ms, callback):
        self._next_handle += 1
        handle = f"timer-{self._next_handle}"
        self.timers[handle] = (delay_ms, callback)
        return handle

    def cancel(self, handle):
        self.cancelled.append(handle)
        self.timers.pop(handle, None)

    def fire_timers(self):
        for handle, (_delay, callback) in list(self.timers.items()):
            del self.timers[handle]
            callback()


class RecordingClipboard(ClipboardService):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.writes = []

    def write(self, text: str) -> None:
        if self.fail:
            raise ClipboardError("clipboard access denied")
        self.writes.append(text)


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def clipboard():
    return RecordingClipboard()


@pytest.fixture
def failing_clipboard():
    return RecordingClipboard(fail=True)
