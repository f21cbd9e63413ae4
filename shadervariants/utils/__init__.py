"""
Utility functions for shadervariants.

.. currentmodule:: shadervariants.utils

.. autosummary::
    :toctree: utils/

    enums
    logger
    atomic_copy

"""

import os
import shutil
import logging
import tempfile

from . import enums  # noqa: F401


logger = logging.getLogger("shadervariants")


def _set_log_level():
    # Set default level
    logger.setLevel(logging.WARN)
    # Set user-specified level
    level = os.getenv("SHADERVARIANTS_LOG_LEVEL", "")
    if level:
        try:
            if level.isnumeric():
                logger.setLevel(int(level))
            else:
                logger.setLevel(level.upper())
        except Exception:
            logger.warning(f"Invalid shadervariants log level: {level}")


_set_log_level()


def atomic_copy(src, dst):
    """Copy the file ``src`` to ``dst`` byte for byte.

    The data is first written to a temporary file next to ``dst``, which is
    then renamed into place. A failed copy therefore never leaves a partial
    file at ``dst``.
    """
    dst = os.fspath(dst)
    dst_dir = os.path.dirname(dst) or "."
    os.makedirs(dst_dir, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp-", dir=dst_dir)
    try:
        with os.fdopen(fd, "wb") as fout, open(src, "rb") as fin:
            shutil.copyfileobj(fin, fout)
        shutil.copymode(src, tmp)
        os.replace(tmp, dst)
    except BaseException:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise


def is_newer(path1, path2):
    """Get whether ``path1`` exists and was modified after ``path2``.

    A missing ``path2`` counts as infinitely old.
    """
    try:
        mtime1 = os.stat(path1).st_mtime_ns
    except OSError:
        return False
    try:
        mtime2 = os.stat(path2).st_mtime_ns
    except OSError:
        return True
    return mtime1 > mtime2
