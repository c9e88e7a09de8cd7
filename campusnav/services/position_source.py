# campusnav/services/position_source.py
import asyncio
from typing import Callable, Optional

from campusnav.core.config import Settings, settings as default_settings
from campusnav.core.logger import logger
from campusnav.models.routing import Coordinate

FixCallback = Callable[[Coordinate], None]


class DeviceLocationError(Exception):
    """Raised by a feed when the device reports a positioning error."""


class PushedLocationFeed:
    """
    Device position feed filled by the HTTP layer.

    Holds at most one undelivered fix: a newer fix replaces an older one
    that has not been consumed yet (maximum fix age of zero).
    """

    def __init__(self) -> None:
        self._queue: "asyncio.Queue[object]" = asyncio.Queue(maxsize=1)
        self.latest: Optional[Coordinate] = None

    def _offer(self, item: object) -> None:
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(item)

    def push(self, fix: Coordinate) -> None:
        self.latest = fix
        self._offer(fix)

    def fail(self, reason: str) -> None:
        self._offer(DeviceLocationError(reason))

    def reset(self) -> None:
        """Drop any fix or error nobody has consumed yet."""
        while not self._queue.empty():
            self._queue.get_nowait()

    async def next_fix(self, timeout: float) -> Coordinate:
        """
        Wait for the next fix.

        Raises:
            asyncio.TimeoutError: no fix within `timeout` seconds.
            DeviceLocationError: the device reported an error.
        """
        item = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        if isinstance(item, DeviceLocationError):
            raise item
        return item


class PositionSource:
    """
    Continuous live-position subscription.

    start_tracking() spawns a task that forwards every fix to the callback
    and returns a cancel function. Any failure (no feed, device error, fix
    timeout) is logged and simply ends the subscription.
    """

    def __init__(
        self,
        feed: Optional[PushedLocationFeed],
        config: Optional[Settings] = None,
    ) -> None:
        self.feed = feed
        self.config = config or default_settings
        self._task: Optional[asyncio.Task] = None

    @property
    def is_tracking(self) -> bool:
        return self._task is not None and not self._task.done()

    def start_tracking(self, on_fix: FixCallback) -> Callable[[], None]:
        if self.feed is None:
            logger.error("Geolocation is not supported on this device; live tracking disabled.")
            return lambda: None

        if self.is_tracking:
            self._task.cancel()
        # A new subscription starts from the next fix, never a leftover one
        self.feed.reset()

        task = asyncio.get_running_loop().create_task(self._run(self.feed, on_fix))
        self._task = task

        def cancel() -> None:
            if not task.done():
                task.cancel()
                logger.info("Position tracking cancelled.")

        return cancel

    async def _run(self, feed: PushedLocationFeed, on_fix: FixCallback) -> None:
        timeout = self.config.POSITION_FIX_TIMEOUT_S
        logger.info("Position tracking started (fix timeout {:.1f} s).", timeout)
        while True:
            try:
                fix = await feed.next_fix(timeout)
            except asyncio.TimeoutError:
                logger.warning("Error getting location: no fix within {:.1f} s, tracking stopped.", timeout)
                return
            except DeviceLocationError as e:
                logger.warning("Error getting location: {}, tracking stopped.", e)
                return
            on_fix(fix)
