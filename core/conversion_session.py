"""
Conversion Session Module

State machine for the conversion shown in the UI:
idle -> processing -> completed | error, and reset back to idle.
"""

import logging
import threading
from typing import Optional, Callable

from .exceptions import ConversionTimeoutError
from .format_detector import validate_selection
from .conversion_pipeline import ConversionPipeline
from .models import (
    ConversionOptions,
    ConversionState,
    ConversionStatus,
    SourceFile,
    OutputArtifact,
)

logger = logging.getLogger(__name__)


class ConversionSession:
    """
    Owns the ConversionState of one user session.

    Each run is tagged with a generation number. reset() and timeouts bump the
    generation, so an abandoned run that finishes later can no longer change
    the state; its artifact is released instead.
    """

    def __init__(
        self,
        pipeline: ConversionPipeline,
        on_state_change: Optional[Callable[[ConversionState], None]] = None,
        timeout: Optional[float] = None
    ):
        """
        Initialize the session.

        Args:
            pipeline: Pipeline used for every conversion
            on_state_change: Called with the new state after each transition
                (from the thread that made the transition)
            timeout: Seconds before a running conversion is abandoned
                (None = no limit)
        """
        self.pipeline = pipeline
        self.on_state_change = on_state_change
        self.timeout = timeout

        self._lock = threading.Lock()
        self._state = ConversionState.idle()
        self._generation = 0
        self._artifact: Optional[OutputArtifact] = None
        self._thread: Optional[threading.Thread] = None
        self._timer: Optional[threading.Timer] = None

    @property
    def state(self) -> ConversionState:
        with self._lock:
            return self._state

    @property
    def artifact(self) -> Optional[OutputArtifact]:
        with self._lock:
            return self._artifact

    @property
    def is_busy(self) -> bool:
        return self.state.status == ConversionStatus.PROCESSING

    def start(self, source: SourceFile, options: ConversionOptions) -> threading.Thread:
        """
        Start a conversion in a background thread.

        Raises:
            UnsupportedFormatError: The file is not a supported office format
            RuntimeError: A conversion is already processing
        """
        generation = self._begin(source)

        self._thread = threading.Thread(
            target=self._execute,
            args=(generation, source, options),
            name=f"conversion-{generation}",
            daemon=True
        )
        self._thread.start()
        return self._thread

    def run(self, source: SourceFile, options: ConversionOptions) -> ConversionState:
        """Run a conversion on the calling thread and return the final state."""
        generation = self._begin(source)
        self._execute(generation, source, options)
        return self.state

    def reset(self):
        """Return to idle, abandoning any running conversion."""
        with self._lock:
            was = self._state.status
            self._generation += 1
            self._cancel_timer()
            artifact, self._artifact = self._artifact, None
            self._state = ConversionState.idle()
            state = self._state

        if artifact is not None:
            artifact.release()

        if was == ConversionStatus.PROCESSING:
            logger.info("Session reset while processing; running conversion abandoned")
        self._notify(state)

    # === Internals ===

    def _begin(self, source: SourceFile) -> int:
        """Enter processing and return the generation of the new run."""
        # Unsupported files never leave idle
        validate_selection(source.name)

        with self._lock:
            if self._state.status == ConversionStatus.PROCESSING:
                raise RuntimeError("A conversion is already in progress")

            self._generation += 1
            generation = self._generation

            previous, self._artifact = self._artifact, None
            self._state = ConversionState.processing(10, 'Initializing conversion engine...')
            state = self._state

            if self.timeout:
                self._timer = threading.Timer(self.timeout, self._expire, args=(generation,))
                self._timer.daemon = True
                self._timer.start()

        if previous is not None:
            previous.release()

        logger.info(f"Starting conversion #{generation}: {source.name}")
        self._notify(state)
        return generation

    def _execute(self, generation: int, source: SourceFile, options: ConversionOptions):
        """Run the pipeline and record the outcome for this generation."""
        try:
            artifact = self.pipeline.run(
                source,
                options,
                progress_callback=lambda progress, message: self._on_progress(generation, progress, message)
            )
        except Exception as e:
            logger.exception(f"Conversion #{generation} failed")
            self._transition(generation, ConversionState.failed(str(e)))
            return

        if not self._transition(generation, ConversionState.completed(artifact.url), artifact):
            # Abandoned run: nobody will ever see this file
            artifact.release()

    def _on_progress(self, generation: int, progress: int, message: str):
        with self._lock:
            if generation != self._generation or self._state.status != ConversionStatus.PROCESSING:
                return
            self._state = self._state.with_progress(progress, message)
            state = self._state
        self._notify(state)

    def _transition(
        self,
        generation: int,
        new_state: ConversionState,
        artifact: Optional[OutputArtifact] = None
    ) -> bool:
        """Apply a terminal state if the run is still current."""
        with self._lock:
            if generation != self._generation:
                logger.info(f"Ignoring result of abandoned conversion #{generation}")
                return False
            self._cancel_timer()
            self._state = new_state
            self._artifact = artifact

        self._notify(new_state)
        return True

    def _expire(self, generation: int):
        """Timer callback: abandon a run that is taking too long."""
        with self._lock:
            if generation != self._generation or self._state.status != ConversionStatus.PROCESSING:
                return
            self._generation += 1
            self._timer = None
            error = ConversionTimeoutError(f"Conversion timed out after {self.timeout:g} seconds")
            self._state = ConversionState.failed(str(error))
            state = self._state

        logger.warning(f"Conversion #{generation} abandoned: {error}")
        self._notify(state)

    def _cancel_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _notify(self, state: ConversionState):
        if not self.on_state_change:
            return
        try:
            self.on_state_change(state)
        except Exception:
            logger.exception("State change listener failed")
