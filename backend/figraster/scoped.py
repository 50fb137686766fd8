"""
Scoped resources: temporary files and temporary property overrides.

Both guarantee their cleanup on every exit path, before any exception
leaves the ``with`` block.
"""

import contextlib
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterator, Protocol, Sequence


logger = logging.getLogger(__name__)


class GraphicsObject(Protocol):
    def get(self, name: str) -> Any: ...

    def set(self, name: str, value: Any) -> None: ...


@contextlib.contextmanager
def temporary_file(suffix: str) -> Iterator[Path]:
    """Yield a fresh path in the temp dir; the file is removed afterwards."""
    fd, name = tempfile.mkstemp(suffix=suffix)
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        path.unlink(missing_ok=True)
        logger.debug("Removed temporary file %s", path)


@contextlib.contextmanager
def override_property(obj: GraphicsObject, name: str, value: Any) -> Iterator[Any]:
    """Set ``obj.name`` to *value* for the block, yielding the previous value."""
    old = obj.get(name)
    obj.set(name, value)
    try:
        yield old
    finally:
        obj.set(name, old)


@contextlib.contextmanager
def override_each(objects: Sequence[GraphicsObject], name: str, value: Any) -> Iterator[list]:
    """Like :func:`override_property`, over several objects at once."""
    with contextlib.ExitStack() as stack:
        yield [stack.enter_context(override_property(o, name, value)) for o in objects]
