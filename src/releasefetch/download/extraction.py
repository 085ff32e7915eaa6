"""
Post-download extraction of archive assets.

Only files whose names carry a recognised zip or tar suffix are extracted;
everything else is left as downloaded. Members that would land outside the
extraction directory are skipped.
"""

import os
import shutil
import tarfile
import zipfile
from pathlib import Path
from typing import List, Sequence

from releasefetch.constants import TAR_ARCHIVE_SUFFIXES, ZIP_ARCHIVE_SUFFIXES
from releasefetch.exceptions import StorageError
from releasefetch.log_utils import logger
from releasefetch.utils import safe_extract_path

from .models import Pathish


def is_safe_archive_member(member_name: str) -> bool:
    """
    Determine whether an archive member name is safe to extract.

    Returns:
        `True` if the member name contains no absolute paths, parent-directory references, or null bytes, `False` otherwise.
    """
    if not member_name or member_name.startswith(("/", "\\")):
        return False
    if "\x00" in member_name:
        return False
    normalized = os.path.normpath(member_name)
    if os.path.isabs(normalized) or normalized == "..":
        return False
    if normalized.startswith(f"..{os.sep}"):
        return False
    if os.altsep and normalized.startswith(f"..{os.altsep}"):
        return False
    return True


def archive_kind(path: Pathish) -> str | None:
    """Return "zip", "tar" or None depending on the file name suffix."""
    name = Path(path).name.lower()
    if name.endswith(ZIP_ARCHIVE_SUFFIXES):
        return "zip"
    if name.endswith(TAR_ARCHIVE_SUFFIXES):
        return "tar"
    return None


def _extract_zip(archive: Path, extract_dir: Path) -> List[Path]:
    extracted: List[Path] = []
    with zipfile.ZipFile(archive, "r") as zip_ref:
        for info in zip_ref.infolist():
            if info.is_dir():
                continue
            if not is_safe_archive_member(info.filename):
                logger.warning(
                    f"Skipping unsafe archive member {info.filename} (possible traversal)"
                )
                continue
            try:
                target = safe_extract_path(str(extract_dir), info.filename)
            except ValueError as e:
                logger.warning(f"Skipping unsafe extraction path: {e}")
                continue
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with zip_ref.open(info) as source, open(target, "wb") as dest:
                shutil.copyfileobj(source, dest)
            extracted.append(Path(target))
    return extracted


def _extract_tar(archive: Path, extract_dir: Path) -> List[Path]:
    extracted: List[Path] = []
    with tarfile.open(archive, "r:*") as tar_ref:
        for member in tar_ref.getmembers():
            # Links and device nodes are skipped; only regular files are written
            if not member.isfile():
                continue
            if not is_safe_archive_member(member.name):
                logger.warning(
                    f"Skipping unsafe archive member {member.name} (possible traversal)"
                )
                continue
            try:
                target = safe_extract_path(str(extract_dir), member.name)
            except ValueError as e:
                logger.warning(f"Skipping unsafe extraction path: {e}")
                continue
            source = tar_ref.extractfile(member)
            if source is None:
                continue
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with source, open(target, "wb") as dest:
                shutil.copyfileobj(source, dest)
            extracted.append(Path(target))
    return extracted


def extract_archive(archive: Pathish, extract_dir: Pathish) -> List[Path]:
    """
    Extract one zip or tar archive into `extract_dir`.

    Parameters:
        archive (Pathish): Path to the archive.
        extract_dir (Pathish): Destination directory.

    Returns:
        List[Path]: Paths of the extracted regular files; empty for non-archives.

    Raises:
        StorageError: If the archive is corrupt or the files cannot be written.
    """
    archive_path = Path(archive)
    destination = Path(extract_dir)
    kind = archive_kind(archive_path)
    if kind is None:
        return []

    try:
        if kind == "zip":
            extracted = _extract_zip(archive_path, destination)
        else:
            extracted = _extract_tar(archive_path, destination)
    except (zipfile.BadZipFile, tarfile.TarError, OSError) as e:
        logger.error(f"Error extracting archive {archive_path}: {e}")
        raise StorageError(
            f"Failed to extract {archive_path.name}",
            path=str(archive_path),
            details=str(e),
        ) from e

    logger.info(f"Extracted {len(extracted)} file(s) from {archive_path.name}")
    return extracted


def extract_archives(files: Sequence[Pathish], extract_dir: Pathish) -> List[Path]:
    """Extract every archive among `files` into `extract_dir`, in order."""
    extracted: List[Path] = []
    for file_path in files:
        extracted.extend(extract_archive(file_path, extract_dir))
    return extracted
