# Publisher — output tree writer + build pipeline
"""
Publisher module for writing the rendered site.

Handles minification, staged writes with an atomic swap into the output
directory, and the full Loader → Renderer → Publisher pipeline.
"""

from .minify import minify_css, minify_html, minify_js
from .models import BuildMode, BuildResult, SiteManifest
from .pipeline import BuildPipeline
from .writer import OutputWriter

__all__ = [
    "BuildMode",
    "BuildPipeline",
    "BuildResult",
    "OutputWriter",
    "SiteManifest",
    "minify_css",
    "minify_html",
    "minify_js",
]
