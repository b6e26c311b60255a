"""Native document materialization."""

from .frontmatter import frontmatter_for, render_frontmatter, replace_frontmatter, split_frontmatter
from .links import rewrite_links
from .stage import MaterializedDocument, MaterializeStage, write_if_changed

__all__ = [
    "MaterializeStage",
    "MaterializedDocument",
    "frontmatter_for",
    "render_frontmatter",
    "replace_frontmatter",
    "rewrite_links",
    "split_frontmatter",
    "write_if_changed",
]
