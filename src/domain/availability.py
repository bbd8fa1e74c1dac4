"""
Field availability checker - Debounced, cancellable existence checks.

One FieldAvailabilityChecker watches one field (username or email) and
turns its stream of edits into ValidationState transitions:

    edit ──► local pre-filter ──► IDLE / ERROR        (no network)
               │
               └──► CHECKING ──(quiet interval)──► service call
                                                     │
                                          AVAILABLE / TAKEN / ERROR

Last edit wins
==============

Every edit bumps a generation counter and cancels the pending timer
together with any request already in flight for that field. A result is
applied only if its generation is still the current one, so a response
for a superseded value can never overwrite the state of a newer edit,
even if cancellation arrives too late to stop the request.

All methods must be called from the event loop that owns the wizard
session; the background task runs on that same loop, so state is only
ever mutated from one logical thread.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum

from .exceptions import ServiceError
from .formats import USERNAME_MIN_LENGTH, is_valid_email, is_valid_username
from .models import ValidationState

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.8

AvailabilityCheck = Callable[[str], Awaitable[bool]]
StateListener = Callable[[ValidationState], None]


class AvailabilityField(str, Enum):
    """Fields whose availability is verified server-side."""

    USERNAME = "username"
    EMAIL = "email"

    def prefilter(self, value: str) -> ValidationState | None:
        """
        Decide locally whether a value is worth a network call.

        Returns:
            IDLE if the value is empty or too short to check, ERROR if it
            fails the cheap format check, None if it should be checked
        """
        if not value:
            return ValidationState.IDLE
        if self is AvailabilityField.USERNAME:
            if len(value) < USERNAME_MIN_LENGTH:
                return ValidationState.IDLE
            if not is_valid_username(value):
                return ValidationState.ERROR
        else:
            if "@" not in value:
                return ValidationState.IDLE
            if not is_valid_email(value):
                return ValidationState.ERROR
        return None


class FieldAvailabilityChecker:
    """
    Debounce + cancellation policy around one availability check.

    Instances never share state; the username and email checkers of a
    session are independent.
    """

    def __init__(
        self,
        field: AvailabilityField,
        check: AvailabilityCheck,
        on_change: StateListener | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ) -> None:
        """
        Args:
            field: Which field this checker watches (selects the pre-filter)
            check: Coroutine function returning True when the value is free
            on_change: Optional listener, called on every state change
            debounce_seconds: Quiet interval before a check is dispatched
        """
        self.field = field
        self._check = check
        self._listeners: list[StateListener] = [on_change] if on_change else []
        self._debounce_seconds = debounce_seconds
        self._state = ValidationState.IDLE
        self._value = ""
        self._generation = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> ValidationState:
        return self._state

    @property
    def value(self) -> str:
        """The latest value seen by update()."""
        return self._value

    @property
    def pending(self) -> bool:
        """True while a debounced check is waiting or in flight."""
        return self._task is not None and not self._task.done()

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a state listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def update(self, value: str) -> None:
        """
        Feed the current field value after an edit.

        Unchanged values are ignored. Anything else invalidates pending
        work for this field before deciding what to do with the new value.
        """
        if value == self._value:
            return
        self._value = value
        self._invalidate()

        local_state = self.field.prefilter(value)
        if local_state is not None:
            self._set_state(local_state)
            return

        self._set_state(ValidationState.CHECKING)
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(
            self._debounced_check(value, self._generation),
            name=f"availability-{self.field.value}-{self._generation}",
        )
        self._task.add_done_callback(self._report_crash)

    def cancel(self) -> None:
        """Drop pending work; a late result will be discarded."""
        self._invalidate()

    def reset(self) -> None:
        """Cancel pending work and return to IDLE with an empty value."""
        self._invalidate()
        self._value = ""
        self._set_state(ValidationState.IDLE)

    async def wait_idle(self) -> None:
        """Wait until no check is pending (follows superseding checks)."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    def _invalidate(self) -> None:
        self._generation += 1
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _debounced_check(self, value: str, generation: int) -> None:
        await asyncio.sleep(self._debounce_seconds)
        if generation != self._generation:
            return

        logger.debug("Dispatching %s availability check", self.field.value)
        try:
            available = await self._check(value)
        except ServiceError as exc:
            if generation == self._generation:
                logger.warning("%s availability check failed: %s", self.field.value, exc)
                self._set_state(ValidationState.ERROR)
            return

        if generation != self._generation:
            logger.debug("Discarding stale %s availability result", self.field.value)
            return
        self._set_state(ValidationState.AVAILABLE if available else ValidationState.TAKEN)

    def _report_crash(self, task: asyncio.Task[None]) -> None:
        if task.cancelled() or task.exception() is None:
            return
        logger.error(
            "Unexpected failure in %s availability check",
            self.field.value,
            exc_info=task.exception(),
        )
        if task is self._task:
            self._set_state(ValidationState.ERROR)

    def _set_state(self, state: ValidationState) -> None:
        if state is self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)
