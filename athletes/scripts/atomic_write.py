#!/usr/bin/env python3
"""
Atomic file operations for plan and notes documents.

Ensures files are written completely or not at all, and serialises
read-modify-write cycles on the same document with an advisory lock.
"""

import fcntl
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path


@contextmanager
def atomic_write(target_path: Path, mode: str = 'w', encoding: str = 'utf-8'):
    """
    Context manager for atomic file writes.

    Writes to a temp file first, then atomically moves to target.
    If an exception occurs, the temp file is cleaned up and target is unchanged.

    Usage:
        with atomic_write(Path('plan.md')) as f:
            f.write(text)
    """
    target_path = Path(target_path)
    target_dir = target_path.parent

    target_dir.mkdir(parents=True, exist_ok=True)

    # Temp file must live in the same directory for the rename to be atomic
    fd, temp_path = tempfile.mkstemp(
        dir=target_dir,
        prefix=f'.{target_path.name}.',
        suffix='.tmp'
    )

    try:
        if 'b' in mode:
            with os.fdopen(fd, mode) as f:
                yield f
        else:
            # newline='' keeps line endings byte-for-byte
            with os.fdopen(fd, mode, encoding=encoding, newline='') as f:
                yield f

        os.replace(temp_path, target_path)

    except BaseException:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise


def lock_path_for(target_path: Path) -> Path:
    """Sidecar lock file used to serialise writers of target_path."""
    target_path = Path(target_path)
    return target_path.parent / f'.{target_path.name}.lock'


@contextmanager
def locked(target_path: Path):
    """
    Hold an exclusive advisory lock for target_path.

    The lock lives on a sidecar file so the target itself can be replaced
    by atomic_write while the lock is held.
    """
    lock_file = lock_path_for(target_path)
    lock_file.parent.mkdir(parents=True, exist_ok=True)

    with open(lock_file, 'a') as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def safe_write_text(path: Path, text: str):
    """Safely write text atomically."""
    with atomic_write(path) as f:
        f.write(text)
