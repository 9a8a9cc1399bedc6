"""
Disk helpers shared by ingestion, unlock, deletion, the reaper and the QR cache.
"""

import os
import logging
import tempfile
from pathlib import Path
from typing import List, Union

from xigra.core.errors import ValidationError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def safe_segment(name: str, field: str = "filename") -> str:
    """
    Validate an untrusted value used as a single path component.

    Rejects empty names, ``.``/``..``, path separators, control characters
    (NUL, CR, LF included) and double quotes.
    Returns the name unchanged so it can be used inline.
    """
    if not name or not name.strip():
        raise ValidationError(f"{field} required")
    if name in (".", "..") or "/" in name or "\\" in name:
        raise ValidationError(f"Invalid {field}: {name!r}")
    if any(ord(c) < 32 or ord(c) == 127 or c == '"' for c in name):
        raise ValidationError(f"Invalid {field}: {name!r}")
    return name


def atomic_write_bytes(path: PathLike, data: bytes) -> Path:
    """
    Write ``data`` to ``path`` via a temp file in the same directory and rename.

    Readers see either the previous content or the complete new content.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    return target


def decrypted_path(shop_upload_dir: PathLike, shop_id: str, original_name: str) -> Path:
    """Location of the unlocked copy of a file."""
    return (
        Path(shop_upload_dir)
        / safe_segment(shop_id, "shopId")
        / safe_segment(original_name, "originalName")
    )


def remove_artifacts(record, shop_upload_dir: PathLike) -> List[OSError]:
    """
    Delete the encrypted and decrypted artifacts of a file record.

    Every candidate is attempted. A missing file is not an error; any other
    OS error is collected and returned so the caller decides what to do with
    the record (delete drops it anyway, the reaper keeps it for a retry).
    """
    candidates = [Path(record.encrypted_path)]
    try:
        candidates.append(decrypted_path(shop_upload_dir, record.shop_id, record.original_name))
    except ValidationError:
        # Unsafe names never produced a decrypted artifact.
        logger.warning(f"Skipping decrypted artifact for file {record.id}: unsafe name")

    errors = []
    for path in candidates:
        try:
            path.unlink()
            logger.debug(f"Removed {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove {path} for file {record.id}: {e}")
            errors.append(e)
    return errors
