"""Filesystem watching for preview mode (watchdog observer)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from src.common.config import SiteSettings
from src.common.logging import setup_logging

from .debounce import Debouncer

logger = setup_logging(module_name="sitegen.watcher")

IGNORED_EVENT_TYPES = {"opened", "closed_no_write"}
EDITOR_TEMP_SUFFIXES = ("~", ".swp", ".swx", ".tmp")


def is_editor_temp(path: Path) -> bool:
    name = path.name
    return name.startswith(".#") or name.endswith(EDITOR_TEMP_SUFFIXES) or name == "4913"


class ChangeHandler(FileSystemEventHandler):
    """Forwards relevant change events to a Debouncer.

    Args:
        debouncer: Receives one ``notify`` per relevant event.
        only: If given, only events on exactly these paths count.
        ignore: Events under any of these directories are dropped.
    """

    def __init__(
        self,
        debouncer: Debouncer,
        only: Optional[Iterable[Path]] = None,
        ignore: Iterable[Path] = (),
    ):
        super().__init__()
        self.debouncer = debouncer
        self.only = {Path(p).resolve() for p in only} if only is not None else None
        self.ignore = tuple(Path(p).resolve() for p in ignore)

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type in IGNORED_EVENT_TYPES:
            return
        if event.is_directory and event.event_type == "modified":
            return

        paths = [event.src_path, getattr(event, "dest_path", "") or ""]
        if any(self.should_rebuild(Path(os.fsdecode(p))) for p in paths if p):
            logger.debug("Change detected: %s %s", event.event_type, event.src_path)
            self.debouncer.notify()

    def should_rebuild(self, path: Path) -> bool:
        path = path.resolve()
        if is_editor_temp(path):
            return False
        for ignored in self.ignore:
            if path == ignored or ignored in path.parents:
                return False
        if self.only is not None:
            return path in self.only
        return True


class SourceWatcher:
    """Watches content, theme, layouts, static and site.yaml for changes.

    Usage:
        watcher = SourceWatcher(settings, debouncer, ignore=[preview_root])
        watcher.start()
        ...
        watcher.stop()
    """

    def __init__(
        self,
        settings: SiteSettings,
        debouncer: Debouncer,
        ignore: Iterable[Path] = (),
        observer_factory=Observer,
    ):
        self.settings = settings
        self.debouncer = debouncer
        self.ignore = [settings.output_path, *ignore]
        self.observer = observer_factory()

    def watched_directories(self) -> list[Path]:
        dirs = [
            self.settings.content_path,
            self.settings.theme_path,
            self.settings.layouts_path,
            self.settings.static_path,
        ]
        return [d for d in dict.fromkeys(dirs) if d.is_dir()]

    def start(self) -> None:
        handler = ChangeHandler(self.debouncer, ignore=self.ignore)
        for directory in self.watched_directories():
            self.observer.schedule(handler, str(directory), recursive=True)
            logger.info("Watching %s", directory)

        config_handler = ChangeHandler(
            self.debouncer,
            only=[self.settings.config_path],
            ignore=self.ignore,
        )
        self.observer.schedule(config_handler, str(self.settings.root), recursive=False)
        self.observer.start()

    def stop(self) -> None:
        self.observer.stop()
        self.observer.join()
