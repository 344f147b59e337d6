import heapq
import itertools
import logging
from typing import Callable, List, Tuple

logger = logging.getLogger(__name__)


class ScheduledTask:
    """A pending callback tagged with the game generation it belongs to.

    The scheduler only knows about cancellation; comparing ``generation``
    with the session's current generation is the owner's job.
    """

    def __init__(self, delay: float, callback: Callable[['ScheduledTask'], None], generation: int,
                 repeat: bool = False):
        self.delay = delay
        self.callback = callback
        self.generation = generation
        self.repeat = repeat
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if self.cancelled:
            return
        self.callback(self)

    def __repr__(self):
        kind = 'every' if self.repeat else 'later'
        return f"<ScheduledTask {kind} {self.delay}s gen={self.generation} cancelled={self.cancelled}>"


class ManualScheduler:
    """Virtual clock scheduler; nothing runs until ``advance`` is called.

    Used in TESTING mode so timer-driven behaviour is deterministic.
    """

    def __init__(self):
        self.now = 0.0
        self._queue: List[Tuple[float, int, ScheduledTask]] = []
        self._seq = itertools.count()

    def _push(self, due: float, task: ScheduledTask) -> None:
        heapq.heappush(self._queue, (due, next(self._seq), task))

    def call_later(self, delay, callback, generation) -> ScheduledTask:
        task = ScheduledTask(delay, callback, generation)
        self._push(self.now + delay, task)
        return task

    def call_every(self, interval, callback, generation) -> ScheduledTask:
        task = ScheduledTask(interval, callback, generation, repeat=True)
        self._push(self.now + interval, task)
        return task

    def pending(self) -> List[ScheduledTask]:
        return [task for _, _, task in sorted(self._queue) if not task.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due tasks in order."""
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            self.now = due
            if task.cancelled:
                continue
            if task.repeat:
                self._push(due + task.delay, task)
            task.fire()
        self.now = target


class SocketIOScheduler:
    """Runs each task as a Socket.IO background task.

    Sleeping goes through ``socketio.sleep`` so the worker cooperates with
    whichever async mode the server runs in.
    """

    def __init__(self, socketio):
        self.socketio = socketio

    def _worker(self, task: ScheduledTask) -> None:
        while True:
            self.socketio.sleep(task.delay)
            if task.cancelled:
                logger.debug(f"[timer-abort] {task!r}")
                return
            logger.debug(f"[timer-fire] {task!r}")
            try:
                task.fire()
            except Exception:
                logger.exception(f"[timer-error] {task!r}")
                return
            if not task.repeat:
                return

    def _start(self, task: ScheduledTask) -> ScheduledTask:
        logger.debug(f"[timer-set] {task!r}")
        self.socketio.start_background_task(self._worker, task)
        return task

    def call_later(self, delay, callback, generation) -> ScheduledTask:
        return self._start(ScheduledTask(delay, callback, generation))

    def call_every(self, interval, callback, generation) -> ScheduledTask:
        return self._start(ScheduledTask(interval, callback, generation, repeat=True))
