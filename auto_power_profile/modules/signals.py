from typing import Any, Callable, List, Optional
import logging


class Subscription:
    """
    Handle returned by every ``on_*`` registration.

    Calling :meth:`disconnect` removes the listener. It is safe to call it more
    than once, so owners can release all their handles on teardown without
    tracking which ones were already dropped.
    """

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Optional[Callable[[], None]] = release

    @property
    def active(self) -> bool:
        return self._release is not None

    def disconnect(self) -> None:
        if self._release is None:
            return
        release, self._release = self._release, None
        release()


class Signal:
    """
    Minimal observer used to fan out change notifications.

    Listeners are invoked in registration order. An exception raised by a
    listener is logged and does not stop delivery to the others, so a faulty
    decision never propagates back into the event source that emitted it.
    """

    def __init__(self, name: str) -> None:
        self.name: str = name
        self.__listeners: List[Callable[..., Any]] = []

    def connect(self, callback: Callable[..., Any]) -> Subscription:
        """
        Register a callback for this signal.

        :param callback: The function to call when the signal is emitted
        :return: Subscription that removes the callback again
        """
        self.__listeners.append(callback)
        return Subscription(lambda: self.__remove(callback))

    def __remove(self, callback: Callable[..., Any]) -> None:
        if callback in self.__listeners:
            self.__listeners.remove(callback)

    def emit(self, *args: Any) -> None:
        """
        Notify all listeners.

        :param args: Positional arguments forwarded to every listener
        """
        for cb in list(self.__listeners):
            try:
                cb(*args)
            except Exception as e:
                logging.error(
                    f"Error in {self.name} listener {getattr(cb, '__name__', cb)}: {e}"
                )

    def clear(self) -> None:
        self.__listeners = []

    def __len__(self) -> int:
        return len(self.__listeners)
