"""One-shot, background initialization of a shared OCR engine."""

import logging
import threading
from typing import Callable, Optional

from numcaptcha.engines.base import BaseOCREngine
from numcaptcha.errors import OcrEngineFailure, OcrUnavailable
from numcaptcha.models import EngineState

log = logging.getLogger(__name__)


class EngineHandle:
    """
    Holds the process-wide OCR engine while it is being created.

    The state moves once from INITIALIZING to READY or FAILED and never
    changes again. Readers never block unless they call wait().

    Usage:
        handle = EngineHandle(TesseractDigitEngine)
        handle.start()
        ...
        engine = handle.get()  # raises OcrUnavailable until ready
    """

    def __init__(
        self,
        factory: Callable[[], BaseOCREngine],
        on_failure: Optional[Callable[[OcrEngineFailure], None]] = None,
    ):
        self._factory = factory
        self._on_failure = on_failure
        self._done = threading.Event()
        self._start_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._engine: Optional[BaseOCREngine] = None
        self._error: Optional[OcrEngineFailure] = None

    @property
    def state(self) -> EngineState:
        if not self._done.is_set():
            return EngineState.INITIALIZING
        if self._error is not None:
            return EngineState.FAILED
        return EngineState.READY

    @property
    def error(self) -> Optional[OcrEngineFailure]:
        return self._error

    def is_ready(self) -> bool:
        return self.state == EngineState.READY

    def start(self) -> threading.Thread:
        """Run the factory on a daemon thread. Calling start() again is a no-op."""
        with self._start_lock:
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self.initialize, name="ocr-engine-init", daemon=True
                )
                self._thread.start()
            return self._thread

    def initialize(self) -> None:
        """Create the engine on the calling thread and publish the outcome."""
        if self._done.is_set():
            return

        log.info("Initializing OCR engine...")
        try:
            engine = self._factory()
        except OcrEngineFailure as e:
            self._fail(e)
            return
        except Exception as e:
            failure = OcrEngineFailure(f"OCR engine initialization failed: {e}")
            failure.__cause__ = e
            self._fail(failure)
            return

        self._engine = engine
        self._done.set()
        log.info("OCR engine %s initialized", engine.name)

    def _fail(self, error: OcrEngineFailure) -> None:
        self._error = error
        self._done.set()
        log.error("Failed to initialize OCR engine: %s", error)
        if self._on_failure is not None:
            self._on_failure(error)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until initialization finished. Returns False on timeout."""
        return self._done.wait(timeout)

    def get(self) -> BaseOCREngine:
        """
        Return the ready engine.

        Raises:
            OcrUnavailable: Initialization has not finished yet.
            OcrEngineFailure: Initialization failed.
        """
        if not self._done.is_set():
            raise OcrUnavailable("Server is still initializing. Please try again shortly.")
        if self._error is not None:
            raise self._error
        return self._engine
