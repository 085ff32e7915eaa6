"""
Asset resolution.

Turns a release plus the caller's asset selection into the ordered list of
files to download: named assets matching the glob first (in release order),
then the source tarball, then the source zipball.
"""

import fnmatch
import re
from typing import List, Optional

from releasefetch.constants import TARBALL_EXTENSION, ZIPBALL_EXTENSION
from releasefetch.exceptions import AssetError
from releasefetch.log_utils import logger
from releasefetch.utils import sanitize_path_component

from .models import AssetSelectionCriteria, DownloadItem, Release

_NUMERIC_SEQUENCE = re.compile(r"^(-?\d+)\.\.(-?\d+)$")
_ALPHA_SEQUENCE = re.compile(r"^([A-Za-z])\.\.([A-Za-z])$")


def _matching_brace(pattern: str, start: int) -> int:
    depth = 0
    for index in range(start, len(pattern)):
        if pattern[index] == "{":
            depth += 1
        elif pattern[index] == "}":
            depth -= 1
            if depth == 0:
                return index
    return -1


def _split_alternatives(body: str) -> List[str]:
    """Split a brace body on commas that are not nested in inner braces."""
    parts: List[str] = []
    depth = 0
    current = ""
    for char in body:
        if char == "," and depth == 0:
            parts.append(current)
            current = ""
            continue
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        current += char
    parts.append(current)
    return parts


def _sequence(body: str) -> Optional[List[str]]:
    """Expand `1..3` or `a..c` brace bodies; None for anything else."""
    numeric = _NUMERIC_SEQUENCE.match(body)
    if numeric:
        first, last = int(numeric.group(1)), int(numeric.group(2))
        step = 1 if last >= first else -1
        return [str(value) for value in range(first, last + step, step)]
    alpha = _ALPHA_SEQUENCE.match(body)
    if alpha:
        first, last = ord(alpha.group(1)), ord(alpha.group(2))
        step = 1 if last >= first else -1
        return [chr(value) for value in range(first, last + step, step)]
    return None


def expand_braces(pattern: str) -> List[str]:
    """
    Expand shell-style braces in a glob pattern.

    `*.{deb,rpm}` becomes `["*.deb", "*.rpm"]` and `v{1..3}` becomes
    `["v1", "v2", "v3"]`. Nested braces are expanded recursively. Braces without
    a comma or a sequence, and unclosed braces, are kept literally.

    Returns:
        List[str]: The expanded patterns, in order and without duplicates.
    """
    start = pattern.find("{")
    while start != -1:
        end = _matching_brace(pattern, start)
        if end == -1:
            break
        body = pattern[start + 1 : end]
        alternatives = _split_alternatives(body)
        options = alternatives if len(alternatives) > 1 else _sequence(body)
        if options is not None:
            prefix, suffix = pattern[:start], pattern[end + 1 :]
            expanded: List[str] = []
            for option in options:
                for candidate in expand_braces(prefix + option + suffix):
                    if candidate not in expanded:
                        expanded.append(candidate)
            return expanded
        start = pattern.find("{", start + 1)
    return [pattern]


def matches(name: str, pattern: str) -> bool:
    """
    Case-sensitive glob match of an asset name.

    Supports `*`, `?`, `[...]` (negated with `!` or `^`) and brace alternatives
    such as `*.{deb,rpm}`. A name starting with a dot only matches a pattern
    that starts with an explicit dot, so `*.zip` does not match `.hidden.zip`.
    """
    for candidate in expand_braces(pattern):
        if name.startswith(".") and not candidate.startswith("."):
            continue
        if fnmatch.fnmatchcase(name, candidate.replace("[^", "[!")):
            return True
    return False


def _checked_file_name(file_name: str) -> str:
    safe_name = sanitize_path_component(file_name)
    if safe_name is None or safe_name != file_name:
        raise AssetError(f"Refusing to save asset with unsafe file name {file_name!r}")
    return safe_name


class AssetResolver:
    """Builds the download list for a resolved release."""

    def resolve(
        self, release: Release, criteria: AssetSelectionCriteria
    ) -> List[DownloadItem]:
        """
        Resolve the items to download from `release`.

        Parameters:
            release (Release): The selected release.
            criteria (AssetSelectionCriteria): Glob pattern and source archive flags.

        Returns:
            List[DownloadItem]: Named-asset matches, then the tarball, then the zipball.
                Empty when nothing was requested.

        Raises:
            AssetError: If a pattern was given and the release has no assets or none match,
                or if a resulting file name is not a plain file name.
        """
        downloads: List[DownloadItem] = []

        if criteria.file_pattern:
            if not release.assets:
                raise AssetError(
                    f"No assets found in release {release.name or release.tag_name}"
                )

            for asset in release.assets:
                if not matches(asset.name, criteria.file_pattern):
                    continue
                downloads.append(
                    DownloadItem(
                        file_name=_checked_file_name(asset.name),
                        url=asset.download_url,
                        is_archive=False,
                    )
                )

            if not downloads:
                raise AssetError(f"Asset with name {criteria.file_pattern} not found!")

            logger.debug(
                f"Matched {len(downloads)} asset(s) against {criteria.file_pattern!r}"
            )

        if criteria.tarball:
            downloads.append(
                DownloadItem(
                    file_name=_checked_file_name(
                        f"{criteria.repo_name}-{release.tag_name}{TARBALL_EXTENSION}"
                    ),
                    url=release.tarball_url,
                    is_archive=True,
                )
            )

        if criteria.zipball:
            downloads.append(
                DownloadItem(
                    file_name=_checked_file_name(
                        f"{criteria.repo_name}-{release.tag_name}{ZIPBALL_EXTENSION}"
                    ),
                    url=release.zipball_url,
                    is_archive=True,
                )
            )

        return downloads
