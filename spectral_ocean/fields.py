import logging
from dataclasses import dataclass

import numpy as np

from spectral_ocean.errors import FieldAccessError, ResourceExhaustedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageBinding:
    """
    Fields a stage touches. `reads` are borrowed read-only, `writes` are
    overwritten, `read_writes` are read and updated in place (ping-pong
    partners, state carried between frames).
    """

    stage: str
    reads: tuple = ()
    writes: tuple = ()
    read_writes: tuple = ()

    def declared(self):
        return set(self.reads) | set(self.writes) | set(self.read_writes)


class FieldArena:
    """
    Named field buffers owned by one surface.

    Stages never hold arrays directly: they bind to the arena with a
    StageBinding, which is checked when the stage is constructed, and get
    back a FieldView restricted to the declared fields.
    """

    def __init__(self, owner):
        self.owner = owner
        self._fields = {}

    def allocate(self, name, shape, dtype=np.float64, fill=0.0):
        if name in self._fields:
            raise FieldAccessError(f"{self.owner}: field '{name}' already exists")
        try:
            array = np.full(shape, fill, dtype=dtype)
        except (MemoryError, ValueError) as exc:
            # numpy reports oversized requests as either of these.
            raise ResourceExhaustedError(self.owner, name, shape) from exc
        self._fields[name] = array
        logger.debug(
            "%s: allocated %s %s %s", self.owner, name, array.shape, array.dtype
        )
        return array

    def __contains__(self, name):
        return name in self._fields

    def names(self):
        return list(self._fields)

    def get(self, name):
        """Read-only view for consumers outside the pipeline."""
        return _read_only(self._lookup(name))

    def bind(self, binding):
        missing = [n for n in binding.declared() if n not in self._fields]
        if missing:
            raise FieldAccessError(
                f"{self.owner}: stage '{binding.stage}' declares unknown "
                f"fields {sorted(missing)}"
            )
        reads, writes, read_writes = (
            set(binding.reads),
            set(binding.writes),
            set(binding.read_writes),
        )
        overlap = (reads & writes) | (reads & read_writes) | (writes & read_writes)
        if overlap:
            raise FieldAccessError(
                f"{self.owner}: stage '{binding.stage}' lists {sorted(overlap)} "
                "in more than one access group"
            )
        return FieldView(self, binding)

    def _lookup(self, name):
        try:
            return self._fields[name]
        except KeyError:
            raise FieldAccessError(
                f"{self.owner}: no field named '{name}'"
            ) from None


class FieldView:

    def __init__(self, arena, binding):
        self._arena = arena
        self.binding = binding

    def read(self, name):
        if name in self.binding.reads:
            return _read_only(self._arena._lookup(name))
        if name in self.binding.read_writes:
            return self._arena._lookup(name)
        raise FieldAccessError(
            f"stage '{self.binding.stage}' may not read '{name}'"
        )

    def write(self, name):
        if name in self.binding.writes or name in self.binding.read_writes:
            return self._arena._lookup(name)
        raise FieldAccessError(
            f"stage '{self.binding.stage}' may not write '{name}'"
        )


def _read_only(array):
    view = array.view()
    view.flags.writeable = False
    return view
