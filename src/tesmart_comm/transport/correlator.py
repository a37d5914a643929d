"""Single-flight request/response correlation.

The switch protocol carries no transaction identifiers, so a reply can
only be matched to a request by arrival order: the first frame read after
a command is written belongs to whoever wrote it. Any frame that arrives
while nobody is waiting is a device-initiated push and goes to the
unsolicited-frame observer instead.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from tesmart_comm.protocol.frames import format_frame

from .exceptions import CorrelatorBusyError
from .types import PendingRequest

UnsolicitedHandler = Callable[[bytes], None]


class ResponseCorrelator:
    """Pairs each outgoing command with the next inbound frame.

    One correlator lives exactly as long as one TCP connection. The
    supervisor builds a fresh instance on every reconnect so no pending
    marker survives into the next connection.
    """

    def __init__(
        self,
        on_unsolicited: UnsolicitedHandler | None = None,
        logger: logging.Logger | None = None,
    ):
        self.on_unsolicited = on_unsolicited
        self.logger = logger or logging.getLogger(__name__)
        self._pending: PendingRequest | None = None

    @property
    def has_pending(self) -> bool:
        """Whether a caller is awaiting the next frame."""
        return self._pending is not None

    @property
    def pending(self) -> PendingRequest | None:
        return self._pending

    def begin(self, correlation_id: str, frame: bytes) -> PendingRequest:
        """Set the pending marker ahead of a command write.

        Raises:
            CorrelatorBusyError: Another request is still awaiting its reply
        """
        if self._pending is not None:
            raise CorrelatorBusyError(self._pending.correlation_id)
        loop = asyncio.get_running_loop()
        self._pending = PendingRequest(
            correlation_id=correlation_id,
            frame=frame,
            sent_at=time.perf_counter(),
            future=loop.create_future(),
        )
        return self._pending

    def cancel(self, pending: PendingRequest) -> None:
        """Clear the marker if it still belongs to ``pending``."""
        if self._pending is pending:
            self._pending = None
        if not pending.future.done():
            pending.future.cancel()

    def dispatch(self, frame: bytes) -> bool:
        """Route an inbound frame to the waiter, or to the observer.

        Returns:
            True if the frame was delivered to a waiting caller
        """
        pending = self._pending
        if pending is not None:
            self._pending = None
            if not pending.future.done():
                self.logger.debug(
                    "Response for %s: %s",
                    pending.correlation_id,
                    format_frame(frame),
                    extra={"correlation_id": pending.correlation_id, "frame": frame.hex()},
                )
                pending.future.set_result(frame)
                return True

        self.logger.debug(
            "Unsolicited frame: %s",
            format_frame(frame),
            extra={"frame": frame.hex()},
        )
        if self.on_unsolicited is not None:
            try:
                self.on_unsolicited(frame)
            except Exception:
                # Observer faults must not kill the read loop
                self.logger.exception(
                    "Unsolicited frame handler failed",
                    extra={"frame": frame.hex()},
                )
        return False

    def fail_pending(self, exc: BaseException) -> None:
        """Fail the outstanding request, if any, with ``exc``."""
        pending = self._pending
        self._pending = None
        if pending is not None and not pending.future.done():
            self.logger.warning(
                "Failing pending request %s: %s",
                pending.correlation_id,
                exc,
                extra={"correlation_id": pending.correlation_id, "error": str(exc)},
            )
            pending.future.set_exception(exc)

    def __repr__(self) -> str:
        pending = self._pending.correlation_id if self._pending else None
        return f"ResponseCorrelator(pending={pending})"
