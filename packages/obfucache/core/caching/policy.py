"""Module inclusion policies for fingerprinting.

First-party modules always take part in chunk keys. Third-party modules
usually don't: vendored code is stable and hashing it is wasted work. Some
do matter though, e.g. a UI runtime whose version changes the emitted code,
so the set of tracked third-party packages is configurable.
"""

from __future__ import annotations

from collections.abc import Iterable
from fnmatch import fnmatchcase
import re
from typing import Protocol

_SEGMENT_SPLIT = re.compile(r"[\\/]")


class ModuleInclusionPolicy(Protocol):
    """Decides whether a module's content participates in chunk keys."""

    def should_track(self, module_id: str) -> bool:
        """Return True if the module should be fingerprinted."""
        ...


class TrackEverythingPolicy:
    """Fingerprint every module, first- or third-party."""

    def should_track(self, module_id: str) -> bool:
        return True


class ThirdPartyPatternPolicy:
    """
    Track all first-party modules and the third-party packages that match
    one of ``include_patterns``.

    A module is third-party when one of its path segments equals a marker
    (``node_modules`` by default). Its package name is the segment after the
    last marker, or ``@scope/name`` for scoped packages. Patterns are
    ``fnmatch`` globs matched case-sensitively against that name.

    Example:
        >>> policy = ThirdPartyPatternPolicy(include_patterns=["react", "react-*"])
        >>> policy.should_track("/app/src/main.tsx")
        True
        >>> policy.should_track("/app/node_modules/react-dom/index.js")
        True
        >>> policy.should_track("/app/node_modules/lodash/lodash.js")
        False
    """

    def __init__(
        self,
        include_patterns: Iterable[str] = (),
        markers: Iterable[str] = ("node_modules",),
    ) -> None:
        self.include_patterns = tuple(include_patterns)
        self.markers = frozenset(markers)

    def package_name(self, module_id: str) -> str | None:
        """Return the third-party package name, or None for first-party modules."""
        # Bundler virtual ids carry a "\0" prefix and query suffixes
        path = module_id.lstrip("\0").split("?", 1)[0]
        segments = [s for s in _SEGMENT_SPLIT.split(path) if s]

        marker_index = None
        for i, segment in enumerate(segments):
            if segment in self.markers:
                marker_index = i
        if marker_index is None:
            return None

        rest = segments[marker_index + 1 :]
        if not rest:
            return ""
        if rest[0].startswith("@") and len(rest) > 1:
            return f"{rest[0]}/{rest[1]}"
        return rest[0]

    def should_track(self, module_id: str) -> bool:
        package = self.package_name(module_id)
        if package is None:
            return True
        return any(fnmatchcase(package, pattern) for pattern in self.include_patterns)
