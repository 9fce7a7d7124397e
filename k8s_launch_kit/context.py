"""
Per-run context handed to every plugin call.
"""

import logging
import threading
from dataclasses import dataclass, field

from k8s_launch_kit.exceptions import OperationCancelledError
from k8s_launch_kit.util.progress import Output


@dataclass
class RunContext:
    """
    Output, logger and cancellation flag for one launcher run.

    Plugins receive the context instead of reaching for module globals, and
    check ``raise_if_cancelled()`` before starting cluster work.
    """

    output: Output
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("k8s_launch_kit"))
    cancel_event: threading.Event = field(default_factory=threading.Event)

    def cancel(self):
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def raise_if_cancelled(self):
        if self.cancel_event.is_set():
            raise OperationCancelledError()

    def child_logger(self, name: str) -> logging.Logger:
        return self.logger.getChild(name)
