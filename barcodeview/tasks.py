"""Worker pool for background tasks with follow-up steps on the owning thread."""

import concurrent.futures
import logging
import queue
import threading
from typing import Callable, Dict, List, Optional, Tuple

log = logging.getLogger(__name__)


class UiThreadDispatcher:
    """Queue of callables posted from any thread and run on the owning one."""

    def __init__(self):
        self._queue: "queue.Queue[Callable[[], None]]" = queue.Queue()

    def post(self, fn: Callable[[], None]) -> None:
        self._queue.put(fn)

    def run_pending(self) -> int:
        """Run everything posted so far; returns how many callables ran."""
        count = 0
        while True:
            try:
                fn = self._queue.get_nowait()
            except queue.Empty:
                return count
            fn()
            count += 1


class TaskHandler:
    """Runs tasks exposing do_in_background(is_cancelled) and on_post_execute(result)."""

    BARCODE = "barcode"

    def __init__(self, max_workers: int = 2, dispatcher: Optional[UiThreadDispatcher] = None):
        self.dispatcher = dispatcher or UiThreadDispatcher()
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="barcodeview"
        )
        self._lock = threading.Lock()
        self._tasks: Dict[str, List[Tuple[concurrent.futures.Future, threading.Event]]] = {}

    def execute_task(self, task_type: str, task,
                     dispatcher: Optional[UiThreadDispatcher] = None) -> concurrent.futures.Future:
        """Submit a task; once its background step returns, the follow-up is posted to the dispatcher."""
        dispatcher = dispatcher or self.dispatcher
        cancelled = threading.Event()

        def run():
            try:
                result = task.do_in_background(cancelled.is_set)
            except Exception:
                log.exception("Background %s task failed", task_type)
                raise
            dispatcher.post(lambda: task.on_post_execute(result))
            return result

        future = self._executor.submit(run)
        with self._lock:
            self._tasks.setdefault(task_type, []).append((future, cancelled))
        future.add_done_callback(lambda f: self._forget(task_type, f))
        return future

    def flush_task_list(self, task_type: str, cancel: bool = True, wait: bool = False,
                        timeout: Optional[float] = None) -> None:
        """Signal cancellation to and/or wait for every pending task of a type."""
        with self._lock:
            pending = list(self._tasks.get(task_type, []))

        if cancel:
            for future, cancelled in pending:
                cancelled.set()
                future.cancel()

        if wait:
            concurrent.futures.wait([future for future, _ in pending], timeout=timeout)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _forget(self, task_type: str, future: concurrent.futures.Future) -> None:
        with self._lock:
            entries = self._tasks.get(task_type, [])
            self._tasks[task_type] = [entry for entry in entries if entry[0] is not future]
