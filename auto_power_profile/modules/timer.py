from typing import Callable, Optional
import logging


class CustomTimer:
    def __init__(self, timeout: int, callback: Callable[[], None]) -> None:
        """
        A single-shot timer on the GLib main loop that can be restarted.

        :param timeout: Time in seconds after which the callback is executed.
        :param callback: The function to call when the timer expires.
        """
        self.timeout: int = timeout
        self.callback: Callable[[], None] = callback
        self._source_id: Optional[int] = None

    def start(self) -> None:
        """
        Start the timer.

        Cancels any existing timer before starting a new one.
        """
        # imported here so the decision core stays usable without PyGObject
        from gi.repository import GLib

        self.cancel()
        self._source_id = GLib.timeout_add_seconds(
            GLib.PRIORITY_DEFAULT, self.timeout, self._expire
        )

    def restart(self) -> None:
        """
        Restart the timer.

        Equivalent to calling start(), which cancels any existing timer and starts a new one.
        """
        self.start()

    def cancel(self) -> None:
        """
        Cancel the timer.

        If the timer doesn't exist or already fired, nothing happens.
        """
        if self._source_id is None:
            return
        from gi.repository import GLib

        GLib.source_remove(self._source_id)
        self._source_id = None

    def is_running(self) -> bool:
        """
        Check if the timer is currently running.

        :return: True if the timer was started and has neither fired nor been canceled.
        """
        return self._source_id is not None

    def _expire(self) -> bool:
        self._source_id = None
        try:
            self.callback()
        except Exception as e:
            logging.error(f"Error in timer callback: {e}")
        # GLib.SOURCE_REMOVE
        return False
