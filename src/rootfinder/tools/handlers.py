"""
File and directory handlers for rootfinder.

Handlers are thin value objects around a path. Callers construct and own
them; there is no process-wide registry of handlers. Best-effort mutations
(delete, rename, chmod, ...) log failures and report ``False``; metadata
getters report ``None`` when the path cannot be stat'ed.

The Finder and TreeLister hand out either raw path strings or handlers,
chosen once per call through a PathMaterializer.
"""

import os
import re
import stat
import shutil
import logging
import mimetypes
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, Union
from urllib.parse import unquote
try:
    import fcntl
except ImportError:
    # Windows has no fcntl; advisory locks are unavailable there
    fcntl = None

from ..errors import FinderError, LockFailed, MissingPath, UnreadablePath
from ..models.entries import EntryKind


logger = logging.getLogger(__name__)


class Handler:
    """
    Base handler wrapping a filesystem path.

    Args:
        path: Path to wrap; may be None, in which case every operation
            that needs a path raises MissingPath
    """

    def __init__(self, path: Optional[str] = None):
        self.path = os.fspath(path) if path is not None else None
        self._handle: Optional[int] = None
        self._locked: Optional[bool] = None

    def _require_path(self) -> str:
        if self.path is None:
            raise MissingPath("The required path is not set")
        return self.path

    def _attempt(self, action: str, func: Callable, *args) -> bool:
        """Run a best-effort OS call, logging instead of raising on OSError."""
        try:
            func(*args)
            return True
        except OSError as e:
            logger.warning(f"Failed to {action} {self.path}: {e}")
            return False

    def _stat_value(self, func: Callable[[str], Any]) -> Any:
        try:
            return func(self._require_path())
        except OSError:
            return None

    def exists(self) -> bool:
        return os.path.exists(self._require_path())

    def is_readable(self) -> bool:
        return os.access(self._require_path(), os.R_OK)

    def is_writable(self) -> bool:
        return os.access(self._require_path(), os.W_OK)

    def get_type(self) -> Optional[str]:
        """Return ``file``, ``dir``, ``link`` or ``unknown``; None if missing."""
        mode = self._stat_value(lambda p: os.lstat(p).st_mode)
        if mode is None:
            return None
        if stat.S_ISLNK(mode):
            return 'link'
        if stat.S_ISDIR(mode):
            return 'dir'
        if stat.S_ISREG(mode):
            return 'file'
        return 'unknown'

    def get_modified_time(self) -> Optional[float]:
        return self._stat_value(os.path.getmtime)

    def get_access_time(self) -> Optional[float]:
        return self._stat_value(os.path.getatime)

    def get_created_time(self) -> Optional[float]:
        return self._stat_value(os.path.getctime)

    def get_permissions(self) -> Optional[int]:
        """Return the permission bits (e.g. ``0o644``)."""
        return self._stat_value(lambda p: stat.S_IMODE(os.stat(p).st_mode))

    def set_permissions(self, permissions: Union[int, str]) -> bool:
        """
        Change the permission bits.

        Args:
            permissions: Integer mode or octal string such as ``"644"`` or ``"0755"``
        """
        path = self._require_path()
        if isinstance(permissions, str):
            permissions = int(permissions.lstrip('0') or '0', 8)
        return self._attempt('chmod', os.chmod, path, permissions)

    def delete(self) -> bool:
        return self._attempt('delete', os.unlink, self._require_path())

    def rename_to(self, name: str) -> bool:
        """
        Rename the entry.

        A bare name is taken relative to the current directory of the entry,
        and the current extension is kept when ``name`` has none.
        """
        path = self._require_path()
        if not os.path.isabs(name):
            name = os.path.join(os.path.dirname(path), name)

        extension = os.path.splitext(path)[1]
        if extension and not os.path.splitext(name)[1]:
            name += extension

        if not self._attempt('rename', os.rename, path, name):
            return False
        self.path = os.path.realpath(name)
        return True

    def move_to(self, destination: str) -> bool:
        return self.rename_to(destination)

    def symlink_to(self, destination: str) -> bool:
        return self._attempt('symlink', os.symlink, self._require_path(), destination)

    def touch(self, time: Optional[float] = None, atime: Optional[float] = None) -> bool:
        """Create the file if needed and set its access/modification times."""
        path = self._require_path()
        try:
            with open(path, 'a'):
                pass
            if time is None:
                os.utime(path, None)
            else:
                os.utime(path, (atime if atime is not None else time, time))
            return True
        except OSError as e:
            logger.warning(f"Failed to touch {path}: {e}")
            return False

    def match_extended(self, pattern: str) -> bool:
        """
        Match the path against an extended wildcard pattern.

        ``?`` matches one character and ``*`` any run within a path segment,
        ``/**`` matches any number of trailing segments, ``#`` matches digits
        and ``{a,b}`` matches alternatives.
        """
        path = self._require_path()
        regex = re.escape(pattern)
        for escaped, replacement in (
            (r'/\*\*', '(?:/.*)?'),
            (r'\?', '[^/]'),
            (r'\*', '[^/]*'),
            (r'\#', r'\d+'),
            (r'\[', '['),
            (r'\]', ']'),
            (r'\-', '-'),
            (r'\{', '{'),
            (r'\}', '}'),
        ):
            regex = regex.replace(escaped, replacement)

        regex = re.sub(r'\{[^}]+\}', lambda m: '(?:' + m.group(0)[1:-1].replace(',', '|') + ')', regex)
        return re.fullmatch(unquote(regex), path) is not None

    def short_name(self, length_first: int = 50, length_last: int = 20) -> str:
        """Shorten long paths by replacing the middle with ``...``."""
        path = self._require_path()
        return re.sub(rf'(?<=.{{{length_first}}})(.+)(?=.{{{length_last}}})', '...', path, count=1)

    def lock(self, block: bool = True) -> bool:
        """
        Take an exclusive advisory lock; call ``unlock`` when done.

        Args:
            block: Wait for the lock; False returns immediately

        Returns:
            False only when a non-blocking attempt finds the lock held elsewhere

        Raises:
            LockFailed: If the file cannot be opened, locking is unsupported
                or the lock call itself fails
        """
        path = self._require_path()
        if fcntl is None:
            raise LockFailed("Advisory locks are not supported on this platform", path)

        if self._handle is None:
            try:
                self._handle = os.open(path, os.O_RDWR | os.O_CREAT, 0o666)
            except OSError as e:
                raise LockFailed(f"Opening file for writing failed: {e}", path) from e

        flags = fcntl.LOCK_EX if block else fcntl.LOCK_EX | fcntl.LOCK_NB
        try:
            fcntl.flock(self._handle, flags)
            self._locked = True
        except BlockingIOError:
            self._locked = False
        except OSError as e:
            self._locked = False
            os.close(self._handle)
            self._handle = None
            raise LockFailed(f"Locking failed: {e}", path) from e

        return self._locked

    def locked(self) -> Optional[bool]:
        """True if locked, False if the last attempt failed, None if never locked."""
        return self._locked

    def unlock(self) -> bool:
        if self._handle is None:
            return False

        if self._locked:
            fcntl.flock(self._handle, fcntl.LOCK_UN)
            self._locked = False
        os.close(self._handle)
        self._handle = None
        return True

    @contextmanager
    def hold_lock(self, block: bool = False) -> Iterator['Handler']:
        """
        Hold the exclusive lock for the duration of a ``with`` block.

        Raises:
            LockFailed: If the lock could not be acquired
        """
        if not self.lock(block):
            self.unlock()
            raise LockFailed(f"Lock is held elsewhere: {self.path}", self.path)
        try:
            yield self
        finally:
            self.unlock()

    def free(self) -> None:
        """Release any lock and forget the path."""
        if self._handle is not None:
            self.unlock()
        self.path = None

    def __fspath__(self) -> str:
        return self._require_path()

    def __str__(self) -> str:
        return self.path or ''

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.path!r})"

    def __eq__(self, other) -> bool:
        return type(self) is type(other) and self.path == other.path

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.path))


class FileHandler(Handler):
    """Handler for a regular file."""

    def get_contents(self, lock: bool = False, encoding: Optional[str] = 'utf-8') -> Union[str, bytes]:
        """
        Read the whole file.

        Args:
            lock: Hold a shared advisory lock while reading
            encoding: Text encoding, or None to return bytes
        """
        path = self._require_path()
        with open(path, 'rb') as f:
            if lock and fcntl is not None:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                try:
                    data = f.read()
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
            else:
                data = f.read()
        return data.decode(encoding) if encoding else data

    def _write(self, data: Union[str, bytes], mode: str) -> bool:
        path = self._require_path()
        if isinstance(data, str):
            data = data.encode('utf-8')
        try:
            with open(path, mode) as f:
                if fcntl is not None:
                    fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                f.write(data)
            return True
        except OSError as e:
            logger.warning(f"Failed to write {path}: {e}")
            return False

    def update(self, data: Union[str, bytes]) -> bool:
        """Replace the file contents under an exclusive lock."""
        return self._write(data, 'wb')

    def append(self, data: Union[str, bytes]) -> bool:
        """Append to the file under an exclusive lock."""
        return self._write(data, 'ab')

    def copy_to(self, destination: str) -> bool:
        """
        Copy the file to ``destination``.

        Raises:
            UnreadablePath: If the source cannot be opened for reading
        """
        path = self._require_path()
        if not self.is_readable():
            raise UnreadablePath(
                f"Failed to copy {path} to {destination} because the source could not be opened for reading",
                path
            )
        return self._attempt('copy', shutil.copy2, path, destination)

    def get_size(self) -> Optional[int]:
        return self._stat_value(os.path.getsize)

    def get_mime_type(self) -> Optional[str]:
        mime_type, _ = mimetypes.guess_type(self._require_path())
        return mime_type


class DirectoryHandler(Handler):
    """Handler for a directory, with listing helpers backed by TreeLister."""

    def list_contents(self, depth: Union[int, bool] = 0, filter=None,
                      entry_kind: Union[EntryKind, str] = EntryKind.ALL, as_handlers: bool = False) -> List:
        """List the directory; see ``TreeLister.list_contents``."""
        from .tree_lister import TreeLister
        return TreeLister().list_contents(self.path, filter=filter, depth=depth,
                                          entry_kind=entry_kind, as_handlers=as_handlers)

    def list_files(self, depth: Union[int, bool] = 0, filter=None, as_handlers: bool = False) -> List:
        return self.list_contents(depth, filter, EntryKind.FILE, as_handlers)

    def list_file_handlers(self, depth: Union[int, bool] = 0, filter=None) -> List:
        return self.list_contents(depth, filter, EntryKind.FILE, True)

    def list_dirs(self, depth: Union[int, bool] = 0, filter=None, as_handlers: bool = False) -> List:
        return self.list_contents(depth, filter, EntryKind.DIR, as_handlers)

    def list_dir_handlers(self, depth: Union[int, bool] = 0, filter=None) -> List:
        return self.list_contents(depth, filter, EntryKind.DIR, True)

    def count(self, extension: str = '') -> int:
        """Count the entries whose name ends in ``extension`` (all entries if empty)."""
        from .tree_lister import glob_entries
        return len(glob_entries(self._require_path(), f"*{extension}"))

    def delete(self, recursive: bool = False) -> bool:
        """
        Delete the directory.

        Args:
            recursive: Delete the contents first; symlinked directories are
                unlinked, never descended into
        """
        path = self._require_path()
        if os.path.islink(path):
            return self._attempt('unlink', os.unlink, path)

        if recursive:
            for entry in self.list_contents(as_handlers=True):
                handler = entry.value
                if isinstance(handler, DirectoryHandler):
                    ok = handler.delete(recursive=True)
                else:
                    ok = handler.delete()
                if not ok:
                    return False

        return self._attempt('remove directory', os.rmdir, path)

    def delete_recursive(self) -> bool:
        return self.delete(recursive=True)

    def make_dir(self, mode: int = 0o777) -> bool:
        """Create the directory and any missing parents."""
        path = self._require_path()
        if os.path.isdir(path):
            return True
        try:
            os.makedirs(path, mode)
            return True
        except FileExistsError:
            return os.path.isdir(path)
        except OSError as e:
            logger.warning(f"Failed to create directory {path}: {e}")
            return False

    def remove_dir(self, traverse_symlinks: bool = False) -> bool:
        """
        Remove the directory tree, raising on failure.

        Returns:
            True, including when the directory does not exist

        Raises:
            FinderError: If the path is not a directory
            OSError: If any entry cannot be removed
        """
        path = self._require_path()
        if not os.path.lexists(path):
            return True
        if not os.path.isdir(path):
            raise FinderError(f"Given path is not a directory: {path}", path)

        if os.path.islink(path):
            if traverse_symlinks:
                shutil.rmtree(os.path.realpath(path))
            os.unlink(path)
        else:
            shutil.rmtree(path)
        return True


class PathMaterializer(ABC):
    """Turns resolved paths into the values handed back to callers."""

    wraps = False

    @abstractmethod
    def file(self, path: str) -> Any:
        pass

    @abstractmethod
    def directory(self, path: str) -> Any:
        pass

    def __call__(self, path: str, is_dir: bool) -> Any:
        return self.directory(path) if is_dir else self.file(path)


class RawPath(PathMaterializer):
    """Hands back plain path strings."""

    def file(self, path: str) -> str:
        return path

    def directory(self, path: str) -> str:
        return path


class HandlerPath(PathMaterializer):
    """Hands back FileHandler and DirectoryHandler objects."""

    wraps = True

    def file(self, path: str) -> FileHandler:
        return FileHandler(path)

    def directory(self, path: str) -> DirectoryHandler:
        return DirectoryHandler(path)


RAW_PATH = RawPath()
HANDLER_PATH = HandlerPath()


def materializer_for(as_handlers: bool) -> PathMaterializer:
    """Pick the materializer for one call."""
    return HANDLER_PATH if as_handlers else RAW_PATH
