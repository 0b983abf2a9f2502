"""Coalescing of concurrent identical fetches."""

from typing import Any, Awaitable, Callable, Dict, Optional

import anyio

from ..logging import debug, LogRecord, LogEvent


class _Call:
    """One in-flight execution and the outcome its waiters will receive."""

    def __init__(self) -> None:
        self.done = anyio.Event()
        self.completed = False
        self.result: Any = None
        self.error: Optional[BaseException] = None
        self.waiters = 0

    def outcome(self) -> Any:
        if self.error is not None:
            raise self.error
        return self.result


class SingleFlight:
    """
    Ensures at most one execution per key is running at a time.

    The first caller for a key (the leader) runs the work. Callers arriving
    while it runs wait and receive the same result or exception. The work
    runs in a shielded scope so that cancelling the leader's caller does not
    abort it for the others. Once the work finishes the key is released, and
    the next call starts a fresh execution.
    """

    def __init__(self) -> None:
        self._calls: Dict[str, _Call] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._calls

    @property
    def in_flight_count(self) -> int:
        return len(self._calls)

    async def do(self, key: str, func: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        """
        Run ``func(*args)`` unless an execution for ``key`` is already running.

        Args:
            key: Identity of the work being coalesced
            func: Coroutine function performing the work
            *args: Arguments passed to ``func``

        Returns:
            The result of the single execution

        Raises:
            Whatever the single execution raised
        """
        call = self._calls.get(key)
        if call is not None:
            call.waiters += 1
            debug(
                LogRecord(
                    event=LogEvent.SINGLE_FLIGHT.value,
                    message="Joined in-flight fetch",
                    key=key,
                    data={"waiters": call.waiters},
                )
            )
            await call.done.wait()
            return call.outcome()

        call = _Call()
        self._calls[key] = call
        try:
            with anyio.CancelScope(shield=True):
                call.result = await func(*args)
            call.completed = True
        except Exception as e:
            call.error = e
        finally:
            if not call.completed and call.error is None:
                call.error = RuntimeError(f"In-flight call for {key!r} was aborted")
            del self._calls[key]
            call.done.set()

        return call.outcome()
