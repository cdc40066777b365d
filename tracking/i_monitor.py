# tracking/i_monitor.py

from abc import ABC, abstractmethod


class IMonitor(ABC):
    """
    Something that feeds a study session from its own thread.

    start() acquires the device and begins delivering ticks; it raises
    if the device cannot be opened. stop() is safe to call more than
    once and must release the device.
    """

    @abstractmethod
    def start(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def stop(self) -> None:
        raise NotImplementedError

    @property
    @abstractmethod
    def running(self) -> bool:
        """True while the delivery thread is alive."""
        raise NotImplementedError
