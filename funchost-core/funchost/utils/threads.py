import concurrent.futures
import logging
import queue
import threading
import traceback
from concurrent.futures import Future
from typing import Any, Callable, List, Optional, Tuple

LOG = logging.getLogger(__name__)

counter_lock = threading.Lock()
counter = 0


class FuncThread(threading.Thread):
    """Helper class to run a Python function in a background thread."""

    def __init__(
        self,
        func,
        params=None,
        quiet=False,
        name: Optional[str] = None,
        daemon=True,
    ):
        global counter
        global counter_lock

        if name:
            with counter_lock:
                counter += 1
                thread_counter_current = counter

            threading.Thread.__init__(
                self, name=f"{name}-functhread{thread_counter_current}", daemon=daemon
            )
        else:
            threading.Thread.__init__(self, daemon=daemon)

        self.params = params
        self.func = func
        self.quiet = quiet
        self.result_future = Future()

    def run(self):
        result = None
        try:
            result = self.func(self.params)
        except Exception as e:
            self.result_future.set_exception(e)
            result = e
            if not self.quiet:
                LOG.info(
                    "Thread run method %s(%s) failed: %s %s",
                    self.func,
                    self.params,
                    e,
                    traceback.format_exc(),
                )
        finally:
            try:
                self.result_future.set_result(result)
            except concurrent.futures.InvalidStateError as e:
                # this can happen if the run method already set an exception
                LOG.debug(e)


def start_thread(method, *args, **kwargs) -> FuncThread:
    """Start the given method in a background thread"""
    kwargs.setdefault("name", method.__name__)
    thread = FuncThread(method, *args, **kwargs)
    thread.start()
    return thread


def start_worker_thread(method, *args, **kwargs):
    kwargs.setdefault("name", "start_worker_thread")
    return start_thread(method, *args, **kwargs)


Task = Tuple[Callable[..., Any], tuple]


class WorkerPool:
    """
    A bounded pool of worker threads that execute submitted tasks in FIFO order. ``min_workers`` threads are
    started with the pool, and additional workers are spawned on demand (whenever more tasks are pending than
    workers are idle) until ``max_workers`` is reached. Once the limit is reached, tasks queue up until a worker
    becomes available.
    """

    def __init__(self, min_workers: int = 1, max_workers: int = 16, name: str = "worker"):
        if min_workers < 0 or max_workers < 1 or max_workers < min_workers:
            raise ValueError(
                f"invalid pool bounds min_workers={min_workers}, max_workers={max_workers}"
            )
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.name = name

        self._tasks: "queue.Queue[Optional[Task]]" = queue.Queue()
        self._workers: List[FuncThread] = []
        self._idle = 0
        # submitted tasks that no worker has claimed yet
        self._pending = 0
        self._mutex = threading.Lock()
        self._started = False
        self._shutdown = False

    @property
    def size(self) -> int:
        """The number of worker threads that have been spawned so far."""
        with self._mutex:
            return len(self._workers)

    def start(self) -> None:
        with self._mutex:
            if self._started:
                return
            self._started = True
            for _ in range(self.min_workers):
                self._spawn()

    def submit(self, fn: Callable[..., Any], *args) -> None:
        """
        Schedules ``fn(*args)`` for execution on one of the pool's workers.

        :raises RuntimeError: if the pool has already been shut down
        """
        with self._mutex:
            if self._shutdown:
                raise RuntimeError("cannot submit tasks to a pool that was shut down")
            self._tasks.put((fn, args))
            self._pending += 1
            if self._pending > self._idle and len(self._workers) < self.max_workers:
                self._spawn()

    def shutdown(self, wait: bool = True, cancel_pending: bool = False) -> List[Task]:
        """
        Shuts down the pool. Workers finish the task they are currently executing and then exit.

        :param wait: whether to block until all workers have terminated
        :param cancel_pending: whether to drop tasks that have not started yet (otherwise they are still executed)
        :return: the tasks that were dropped
        """
        cancelled = []
        with self._mutex:
            if self._shutdown:
                workers = list(self._workers)
            else:
                self._shutdown = True
                if cancel_pending:
                    while True:
                        try:
                            task = self._tasks.get_nowait()
                        except queue.Empty:
                            break
                        if task is not None:
                            cancelled.append(task)
                    self._pending -= len(cancelled)
                workers = list(self._workers)
                for _ in workers:
                    self._tasks.put(None)

        if wait:
            for worker in workers:
                if worker is not threading.current_thread():
                    worker.join()

        return cancelled

    def _spawn(self) -> None:
        # needs to be called while holding the mutex
        self._idle += 1
        worker = start_worker_thread(self._work, name=self.name)
        self._workers.append(worker)

    def _work(self, *_):
        while True:
            task = self._tasks.get()
            if task is None:
                break

            with self._mutex:
                self._pending -= 1
                self._idle -= 1
            try:
                fn, args = task
                fn(*args)
            except Exception:
                LOG.exception("error while executing task in %s", threading.current_thread().name)
            finally:
                with self._mutex:
                    self._idle += 1
