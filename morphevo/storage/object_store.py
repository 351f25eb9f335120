"""
Object store for populations, genomes and networks.

Objects are persisted as pickles. Reading type-checks the loaded object;
writing is atomic and never replaces a file that already exists.
"""

import logging
import os
import pickle
import tempfile
from pathlib import Path
from typing import Any, Optional, Tuple, Type, Union

from ..errors import DeserializationError


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_object(path: PathLike,
                expected_type: Optional[Union[Type, Tuple[Type, ...]]] = None) -> Any:
    """
    Load a pickled object from disk.

    Args:
        path: File to read
        expected_type: Class (or tuple of classes) the object must be an instance of

    Returns:
        The deserialized object

    Raises:
        DeserializationError: If the file is missing, unreadable, cannot be
            unpickled, or holds an object of the wrong type
    """
    path = Path(path)
    if not path.is_file():
        raise DeserializationError(f"File not found: {path}")

    try:
        with open(path, 'rb') as f:
            obj = pickle.load(f)
    except Exception as e:
        # Unpickling malformed data can raise almost anything
        raise DeserializationError(f"Could not deserialize {path}: {e}") from e

    if expected_type is not None and not isinstance(obj, expected_type):
        raise DeserializationError(
            f"{path} holds a {type(obj).__name__}, expected {_type_names(expected_type)}"
        )

    logger.debug(f"Loaded {type(obj).__name__} from {path}")
    return obj


def write_object(obj: Any, path: PathLike) -> Path:
    """
    Pickle an object to a new file.

    Args:
        obj: Object to persist
        path: Destination; parent directories are created as needed

    Returns:
        The path written

    Raises:
        FileExistsError: If the destination already exists
    """
    path = Path(path)
    if path.exists():
        raise FileExistsError(f"Refusing to overwrite existing file: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(mode='wb', dir=path.parent, suffix='.tmp',
                                     delete=False) as f:
        pickle.dump(obj, f, protocol=pickle.HIGHEST_PROTOCOL)
        temp_path = f.name

    try:
        os.replace(temp_path, path)
    finally:
        if os.path.exists(temp_path):
            os.unlink(temp_path)

    logger.debug(f"Wrote {type(obj).__name__} to {path}")
    return path


def _type_names(expected_type) -> str:
    if isinstance(expected_type, tuple):
        return " or ".join(t.__name__ for t in expected_type)
    return expected_type.__name__
