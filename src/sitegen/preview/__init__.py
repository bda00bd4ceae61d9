# Preview Module
# Local server + debounced live rebuild for `serve`

from .debounce import Debouncer
from .server import PreviewServer, inject_livereload
from .session import PreviewSession, PreviewState
from .watcher import ChangeHandler, SourceWatcher

__all__ = [
    "Debouncer",
    "PreviewServer",
    "inject_livereload",
    "PreviewSession",
    "PreviewState",
    "ChangeHandler",
    "SourceWatcher",
]
