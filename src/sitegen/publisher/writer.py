"""Output writer — materializes a SiteManifest on disk.

Every build is written into a fresh staging directory next to the output
directory and swapped into place only when complete, so the output
directory is never seen half-written and is left untouched on failure.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path, PurePosixPath

from src.common.exceptions import SiteIOError
from src.common.logging import setup_logging

from .minify import can_minify, minify_for
from .models import SiteManifest

logger = setup_logging(module_name="sitegen.writer")


class OutputWriter:
    """Writes rendered pages and static files into an output directory."""

    def __init__(self, output_dir: Path, minify: bool = False):
        self.output_dir = Path(output_dir)
        self.minify = minify

    def publish(self, manifest: SiteManifest) -> Path:
        """Write ``manifest`` to a staging directory and swap it in.

        Returns:
            The output directory.

        Raises:
            SiteIOError: staging or swap failed; the output directory is
                left as it was.
        """
        staging = self._make_sibling("staging")
        try:
            self.write_tree(manifest, staging)
        except BaseException:
            shutil.rmtree(staging, ignore_errors=True)
            raise
        self._swap(staging)
        logger.info("Published %d files to %s", len(manifest.paths), self.output_dir)
        return self.output_dir

    def write_tree(self, manifest: SiteManifest, target: Path) -> int:
        """Write every file of ``manifest`` under ``target``.

        Returns:
            Number of files written.
        """
        target = Path(target)
        count = 0
        try:
            target.mkdir(parents=True, exist_ok=True)
            for static in manifest.static_files:
                dest = self._destination(target, static.relative_path.as_posix())
                if self.minify and can_minify(dest.name):
                    try:
                        text = static.source.read_text(encoding="utf-8")
                    except UnicodeDecodeError as e:
                        raise SiteIOError(static.source, "cannot minify: not valid UTF-8") from e
                    dest.write_text(minify_for(dest.name, text), encoding="utf-8")
                else:
                    shutil.copyfile(static.source, dest)
                count += 1
            for page in manifest.pages:
                dest = self._destination(target, page.path)
                content = minify_for(page.path, page.content) if self.minify else page.content
                dest.write_text(content, encoding="utf-8")
                count += 1
        except OSError as e:
            raise SiteIOError(e.filename or target, f"cannot write output: {e.strerror or e}") from e
        logger.debug("Wrote %d files under %s", count, target)
        return count

    def _destination(self, root: Path, relative: str) -> Path:
        parts = PurePosixPath(relative).parts
        if not parts or PurePosixPath(relative).is_absolute() or ".." in parts:
            raise SiteIOError(relative, "output path escapes the output directory")
        dest = root.joinpath(*parts)
        dest.parent.mkdir(parents=True, exist_ok=True)
        return dest

    def _make_sibling(self, label: str) -> Path:
        parent = self.output_dir.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
            return Path(tempfile.mkdtemp(prefix=f".{self.output_dir.name}.{label}-", dir=parent))
        except OSError as e:
            raise SiteIOError(parent, f"cannot create {label} directory: {e.strerror or e}") from e

    def _swap(self, staging: Path) -> None:
        backup = None
        try:
            if self.output_dir.exists():
                backup = self._make_sibling("previous")
                backup.rmdir()
                os.rename(self.output_dir, backup)
            os.rename(staging, self.output_dir)
        except OSError as e:
            if backup is not None and backup.exists() and not self.output_dir.exists():
                os.rename(backup, self.output_dir)
                backup = None
            shutil.rmtree(staging, ignore_errors=True)
            raise SiteIOError(self.output_dir, f"cannot swap in new build: {e.strerror or e}") from e
        if backup is not None:
            shutil.rmtree(backup, ignore_errors=True)
