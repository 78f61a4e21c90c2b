"""Background polling of knowledge-base document status."""
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from tavus_gateway import TavusDocument

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_S = 5.0


class DocumentStatusPoller:
    """Repeatedly list documents and hand each snapshot to ``on_update``.

    Provider status transitions (processing -> ready | failed) are only
    observable this way. The poller owns one daemon thread; ``stop()`` ends it
    deterministically, and the context-manager form ties it to a ``with`` block.
    Listing failures are logged and the next tick tries again.
    """

    def __init__(
        self,
        fetch: Callable[[], List[TavusDocument]],
        on_update: Callable[[List[TavusDocument]], None],
        *,
        interval_s: float = DEFAULT_POLL_INTERVAL_S,
        stop_when_settled: bool = False,
    ) -> None:
        self._fetch = fetch
        self._on_update = on_update
        self.interval_s = interval_s
        self.stop_when_settled = stop_when_settled
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> "DocumentStatusPoller":
        if self.running:
            return self
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="document-poller", daemon=True)
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def poll_once(self) -> List[TavusDocument]:
        documents = self._fetch()
        self.ticks += 1
        self._on_update(documents)
        return documents

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                documents = self.poll_once()
            except Exception as exc:  # noqa: BLE001
                logger.warning("Document status poll failed: %s", exc)
            else:
                if self.stop_when_settled and not any(doc.status == "processing" for doc in documents):
                    logger.info("All documents settled, stopping poller")
                    return
            self._stop.wait(self.interval_s)

    def __enter__(self) -> "DocumentStatusPoller":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


__all__ = ["DEFAULT_POLL_INTERVAL_S", "DocumentStatusPoller"]
