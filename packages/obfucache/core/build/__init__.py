"""Bundler integration: cached transform hooks and output layout."""

from obfucache.core.build.layout import (
    FlattenReport,
    HtmlOutputPlugin,
    flatten_dist,
    flatten_html_name,
)
from obfucache.core.build.plugin import CachedTransformPlugin, Transform, build_store, json_store

__all__ = [
    "CachedTransformPlugin",
    "FlattenReport",
    "HtmlOutputPlugin",
    "Transform",
    "build_store",
    "flatten_dist",
    "flatten_html_name",
    "json_store",
]
