"""Preview session — the cooperative watch/rebuild loop.

State machine:
    IDLE --change--> REBUILDING --ok--> IDLE
                                 --error--> IDLE_WITH_ERROR --change--> REBUILDING

Rebuilds run on the loop's own thread, one at a time. Change events that
arrive during a rebuild leave one pending trigger in the debouncer, so a
burst of saves produces at most one follow-up rebuild.
"""

from __future__ import annotations

import shutil
import tempfile
import threading
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from src.common.exceptions import SiteError
from src.common.logging import setup_logging
from src.sitegen.publisher.models import BuildResult

from .debounce import Debouncer

logger = setup_logging(module_name="sitegen.preview")

BuildFunction = Callable[[Path], BuildResult]


class PreviewState(str, Enum):
    IDLE = "idle"
    REBUILDING = "rebuilding"
    IDLE_WITH_ERROR = "idle_with_error"


class PreviewSession:
    """Builds generations into a private directory and publishes them on success.

    Args:
        build: Callable that writes a complete site into the given directory.
        debouncer: Source of rebuild triggers.
        preview_root: Where generations are written; a temporary directory
            (removed on ``close``) when omitted.
    """

    def __init__(
        self,
        build: BuildFunction,
        debouncer: Debouncer,
        preview_root: Optional[Path] = None,
    ):
        self._build = build
        self.debouncer = debouncer
        self._owns_root = preview_root is None
        self.preview_root = Path(preview_root or tempfile.mkdtemp(prefix="sitegen-preview-"))
        self.preview_root.mkdir(parents=True, exist_ok=True)

        self.state = PreviewState.IDLE
        self.generation = 0
        self.rebuild_count = 0
        self.current_dir: Optional[Path] = None
        self.last_error: Optional[Exception] = None
        self.last_result: Optional[BuildResult] = None
        self._retired: Optional[Path] = None
        self._listeners: list[Callable[[Path], None]] = []

    def on_publish(self, listener: Callable[[Path], None]) -> None:
        """Register a callback receiving each successfully built directory."""
        self._listeners.append(listener)

    def rebuild(self) -> bool:
        """Run one full build into a new generation directory.

        Returns:
            True when the new generation was published.
        """
        self.state = PreviewState.REBUILDING
        self.rebuild_count += 1
        target = self.preview_root / f"build-{self.generation + 1}"
        shutil.rmtree(target, ignore_errors=True)

        try:
            result = self._build(target)
        except SiteError as e:
            shutil.rmtree(target, ignore_errors=True)
            self.last_error = e
            self.state = PreviewState.IDLE_WITH_ERROR
            logger.error("Rebuild failed, still serving the previous build: %s", e)
            return False
        except Exception as e:
            shutil.rmtree(target, ignore_errors=True)
            self.last_error = e
            self.state = PreviewState.IDLE_WITH_ERROR
            logger.exception("Unexpected error during rebuild, still serving the previous build")
            return False

        previous = self.current_dir
        self.generation += 1
        self.current_dir = target
        self.last_result = result
        self.last_error = None
        for listener in self._listeners:
            listener(target)

        # Keep one generation back: requests may still be reading it
        if self._retired is not None:
            shutil.rmtree(self._retired, ignore_errors=True)
        self._retired = previous

        self.state = PreviewState.IDLE
        logger.info("Rebuilt generation %d (%d pages)", self.generation, result.page_count)
        return True

    def poll(self) -> bool:
        """Rebuild if the debouncer has a ready trigger. Returns True if it did."""
        if not self.debouncer.consume():
            return False
        self.rebuild()
        return True

    def run(self, stop: threading.Event, interval: float = 0.1) -> None:
        """Poll until ``stop`` is set."""
        while not stop.is_set():
            self.poll()
            stop.wait(interval)

    def close(self) -> None:
        if self._owns_root:
            shutil.rmtree(self.preview_root, ignore_errors=True)
