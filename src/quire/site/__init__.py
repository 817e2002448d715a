"""Static site layer: content documents, layouts, data tables and the build."""

from quire.site.builder import BuildFailure, BuildReport, SiteBuilder
from quire.site.composer import PageComposer, RenderedPage
from quire.site.config import SiteConfig, load_config
from quire.site.data import DataTables
from quire.site.document import ContentDocument
from quire.site.errors import (
    ConfigError,
    DuplicateRouteError,
    LayoutCycleError,
    MissingIncludeDataError,
    MissingLayoutError,
    ParseError,
    SiteError,
)
from quire.site.frontmatter import FrontMatterResult, parse_front_matter, split_front_matter
from quire.site.layouts import Layout, LayoutSet

__all__ = [
    "BuildFailure",
    "BuildReport",
    "ConfigError",
    "ContentDocument",
    "DataTables",
    "DuplicateRouteError",
    "FrontMatterResult",
    "Layout",
    "LayoutCycleError",
    "LayoutSet",
    "MissingIncludeDataError",
    "MissingLayoutError",
    "PageComposer",
    "ParseError",
    "RenderedPage",
    "SiteBuilder",
    "SiteConfig",
    "SiteError",
    "load_config",
    "parse_front_matter",
    "split_front_matter",
]
