"""Full build pipeline — content tree to publish-ready output directory.

Orchestrates the complete flow:
Markdown sources → ContentLoader → SiteRenderer → OutputWriter

Usage:
    pipeline = BuildPipeline(settings)
    result = pipeline.run()
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

from src.common.config import SiteSettings
from src.common.exceptions import ConfigError, SiteIOError
from src.common.logging import setup_logging
from src.sitegen.content_loader import ContentLoader, StaticFile
from src.sitegen.template_engine import SiteRenderer, Theme

from .models import BuildMode, BuildResult, SiteManifest
from .writer import OutputWriter

logger = setup_logging(module_name="sitegen.pipeline")


class BuildPipeline:
    """End-to-end pipeline from a content directory to an output tree.

    Steps:
    1. Load ContentItems (drafts only in preview mode with drafts enabled)
    2. Render posts and listing pages with the theme
    3. Collect static assets (theme, site, content attachments)
    4. Write everything to a staging directory and swap it in
    """

    def __init__(
        self,
        settings: SiteSettings,
        mode: BuildMode = BuildMode.PRODUCTION,
        include_drafts: bool = False,
    ):
        self.settings = settings
        self.mode = mode
        self.include_drafts = include_drafts and mode is BuildMode.PREVIEW
        self._check_output_location()

    def collect(self) -> tuple[SiteManifest, ContentLoader]:
        """Run loader and renderer, returning the manifest without writing it."""
        loader = ContentLoader(
            self.settings.content_path,
            include_drafts=self.include_drafts,
            strict=self.settings.strict,
        )
        theme = Theme.load(self.settings.theme_path)
        renderer = SiteRenderer(self.settings, theme=theme)

        # Renderer failures abort before anything is written
        pages, index = renderer.render_site(loader.iter_items())
        static_files = self._collect_static(theme, loader)
        manifest = SiteManifest(pages=pages, static_files=static_files, post_count=len(index.posts))
        return manifest, loader

    def run(self, target: Optional[Path] = None) -> BuildResult:
        """Execute the full pipeline.

        Args:
            target: Write into this directory instead of swapping the
                configured output directory (used by preview generations).

        Returns:
            BuildResult describing the run.

        Raises:
            ParseError: strict mode and a source file is malformed.
            RenderError: a template is missing or failed.
            SiteIOError: a source could not be read or the output written.
        """
        started = time.monotonic()
        logger.info("Building %s (%s mode)", self.settings.root, self.mode.value)

        manifest, loader = self.collect()
        writer = OutputWriter(self.settings.output_path, minify=self.settings.minify)
        if target is None:
            output_dir = writer.publish(manifest)
        else:
            writer.write_tree(manifest, target)
            output_dir = Path(target)

        result = BuildResult(
            mode=self.mode,
            output_dir=output_dir,
            page_count=len(manifest.pages),
            static_count=len(manifest.static_files),
            post_count=manifest.post_count,
            skipped=list(loader.errors),
            duration_seconds=time.monotonic() - started,
        )
        if result.skipped:
            logger.warning("%d file(s) skipped because of front matter errors", len(result.skipped))
        logger.info(
            "Build complete: %d pages, %d static files in %.2fs",
            result.page_count, result.static_count, result.duration_seconds,
        )
        return result

    def _collect_static(self, theme: Theme, loader: ContentLoader) -> list[StaticFile]:
        """Theme assets, then site assets, then content attachments; later wins."""
        collected: dict[str, StaticFile] = {}
        for root in (theme.static_dir, self.settings.static_path):
            for static in _walk(root):
                collected[static.relative_path.as_posix()] = static
        for static in loader.iter_static_files():
            collected[static.relative_path.as_posix()] = static
        return list(collected.values())

    def _check_output_location(self) -> None:
        output = self.settings.output_path.resolve()
        protected = [
            self.settings.root.resolve(),
            self.settings.content_path.resolve(),
            self.settings.theme_path.resolve(),
        ]
        for path in protected:
            if output == path or output in path.parents:
                raise ConfigError(f"output_dir {output} would overwrite sources in {path}")

        # Output inside the content root must use a name the loader skips
        content = self.settings.content_path.resolve()
        if content in output.parents:
            top = output.relative_to(content).parts[0]
            if not top.startswith((".", "_")):
                raise ConfigError(
                    f"output_dir {output} is inside content_dir {content}; "
                    "name it with a leading '_' or '.' so it is not read back as content"
                )


def _walk(root: Path) -> list[StaticFile]:
    if not root.is_dir():
        return []
    try:
        return [
            StaticFile(source=path, relative_path=path.relative_to(root))
            for path in sorted(root.rglob("*"))
            if path.is_file() and not any(
                part.startswith(".") for part in path.relative_to(root).parts
            )
        ]
    except OSError as e:
        raise SiteIOError(root, f"cannot read static files: {e.strerror or e}") from e
