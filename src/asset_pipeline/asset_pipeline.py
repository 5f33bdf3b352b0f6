"""Content-addressed staging of static assets.

Assets (stylesheets, scripts, images) are copied into a flat output
directory under a name derived from the sha1 of their bytes plus their
original extension. Identical content always maps to the same name, so a
staged file never changes once written and can be cached by browsers
indefinitely.

A destination that already exists is never overwritten: the first writer
wins. Copies go to a temp file in the destination directory first and are
then linked into place, so a concurrent reader never sees a partial file.
"""

import errno
import hashlib
import logging
import os
import shutil
import tempfile
from typing import Callable, Dict, Iterable, List, Optional

from .errors import CopyError
from .models import Asset, StagedAsset

logger = logging.getLogger(__name__)

ExcludePredicate = Callable[[str], bool]

# Alternate-resolution variants, e.g. cover@2x.png
VARIANT_MARKERS = ('@2x', '@3x')

_CHUNK_SIZE = 64 * 1024

# errno values for filesystems without hard link support
_NO_LINK_ERRNOS = {errno.EPERM, errno.ENOTSUP, errno.EOPNOTSUPP, errno.EXDEV}


def is_variant_asset(path: str) -> bool:
    """True for alternate-resolution duplicates that must not be staged."""
    name = os.path.basename(path)
    return any(marker in name for marker in VARIANT_MARKERS)


def exclude_substrings(patterns: Iterable[str]) -> ExcludePredicate:
    """Build a predicate excluding paths whose file name contains any pattern."""
    patterns = tuple(patterns)

    def _exclude(path: str) -> bool:
        name = os.path.basename(path)
        return any(pattern in name for pattern in patterns)

    return _exclude


def fingerprint_file(path: str) -> str:
    """Return the sha1 hex digest of a file's bytes.

    Raises:
        CopyError: If the file cannot be read
    """
    digest = hashlib.sha1()
    try:
        with open(path, 'rb') as f:
            for chunk in iter(lambda: f.read(_CHUNK_SIZE), b''):
                digest.update(chunk)
    except OSError as e:
        raise CopyError(path, 'fingerprint', str(e))
    return digest.hexdigest()


def staged_name(fingerprint: str, source_path: str) -> str:
    """Content-addressed file name: fingerprint plus the lowercased extension.

    Example:
        >>> staged_name("0beec7b5ea3f0fdbc95d0dd47f3c5bc275da8a33", "css/Main.CSS")
        '0beec7b5ea3f0fdbc95d0dd47f3c5bc275da8a33.css'
    """
    _, ext = os.path.splitext(source_path)
    return f"{fingerprint}{ext.lower()}"


def atomic_copy(src: str, dst: str) -> bool:
    """Copy src to dst unless dst exists, without exposing a partial file.

    On filesystems without hard links the name is first reserved with an
    exclusive create and the finished temp file is then renamed over it.
    Only one writer can reserve a name, so the first writer still wins, but
    a reader may briefly see the empty reservation.

    Returns:
        True if this call created dst, False if dst already existed

    Raises:
        CopyError: If the copy fails
    """
    dst_dir = os.path.dirname(dst) or '.'
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(dir=dst_dir, prefix='.', suffix='.tmp')
        os.close(fd)
        shutil.copyfile(src, tmp_path)
        try:
            os.link(tmp_path, dst)
        except FileExistsError:
            return False
        except OSError as e:
            if e.errno not in _NO_LINK_ERRNOS:
                raise
            if not _reserve(dst):
                return False
            try:
                os.replace(tmp_path, dst)
            except OSError:
                os.remove(dst)
                raise
            tmp_path = None
        return True
    except OSError as e:
        raise CopyError(src, 'copy', f"to {dst}: {e}")
    finally:
        if tmp_path is not None and os.path.exists(tmp_path):
            os.remove(tmp_path)


def _reserve(path: str) -> bool:
    """Create path as an empty file; False if it already exists."""
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
    except FileExistsError:
        return False
    os.close(fd)
    return True


class AssetPipeline:
    """Stages assets into an output directory under content-addressed names.

    Attributes:
        output_dir: Flat directory receiving staged assets
        exclude: Predicate on source paths; excluded files are never staged

    Example:
        >>> pipeline = AssetPipeline("www/s")
        >>> pipeline.stage("main.css")
        'www/s/0beec7b5ea3f0fdbc95d0dd47f3c5bc275da8a33.css'
    """

    def __init__(self, output_dir: str, exclude: Optional[ExcludePredicate] = is_variant_asset):
        self.output_dir = output_dir
        self.exclude = exclude
        self._staged: Dict[str, StagedAsset] = {}

    @property
    def staged(self) -> List[StagedAsset]:
        return list(self._staged.values())

    @property
    def manifest(self) -> Dict[str, str]:
        """Source path to staged output path, for the site assembler."""
        return {src: staged.output_path for src, staged in self._staged.items()}

    def is_excluded(self, path: str) -> bool:
        return self.exclude is not None and self.exclude(path)

    def stage(self, src_path: str) -> Optional[str]:
        """Stage one file and return its output path.

        Staging the same file again in this run returns the same path
        without touching the filesystem. Excluded files are not staged and
        return None.

        Raises:
            CopyError: If the file cannot be read or copied
        """
        if self.is_excluded(src_path):
            logger.debug(f"Excluded from staging: {src_path}")
            return None

        cached = self._staged.get(src_path)
        if cached is not None:
            return cached.output_path

        asset = Asset(source_path=src_path, fingerprint=fingerprint_file(src_path))
        output_path = os.path.join(self.output_dir, staged_name(asset.fingerprint, src_path))

        self._make_dirs(self.output_dir)
        copied = False
        if not os.path.exists(output_path):
            copied = atomic_copy(src_path, output_path)

        if copied:
            logger.info(f"Staged {src_path} as {output_path}")
        else:
            logger.debug(f"Already staged: {src_path} as {output_path}")

        self._staged[src_path] = StagedAsset(asset=asset, output_path=output_path, copied=copied)
        return output_path

    def stage_all(self, src_paths: Iterable[str]) -> Dict[str, str]:
        """Stage every non-excluded file; returns source to output path."""
        result = {}
        for src_path in src_paths:
            output_path = self.stage(src_path)
            if output_path is not None:
                result[src_path] = output_path
        return result

    def copy_tree(self, src_dir: str, dst_dir: str) -> List[str]:
        """Recursively copy src_dir into dst_dir, keeping file names.

        Directories are created before their files are copied. Excluded
        files are skipped, and existing destination files are left alone.

        Returns:
            Destination paths of the files copied by this call

        Raises:
            CopyError: If a directory cannot be listed or created, or a copy fails
        """
        self._make_dirs(dst_dir)
        try:
            entries = sorted(os.scandir(src_dir), key=lambda entry: entry.name)
        except OSError as e:
            raise CopyError(src_dir, 'list', str(e))

        copied = []
        for entry in entries:
            src = os.path.join(src_dir, entry.name)
            dst = os.path.join(dst_dir, entry.name)
            if entry.is_dir():
                copied.extend(self.copy_tree(src, dst))
                continue

            if self.is_excluded(src):
                logger.debug(f"Excluded from copy: {src}")
                continue
            if os.path.exists(dst):
                continue
            if atomic_copy(src, dst):
                copied.append(dst)

        if copied:
            logger.debug(f"Copied {len(copied)} files from {src_dir} to {dst_dir}")
        return copied

    @staticmethod
    def _make_dirs(path: str) -> None:
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise CopyError(path, 'create_directory', str(e))
