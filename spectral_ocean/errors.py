class OceanError(Exception):
    """Base class for errors raised by the ocean pipeline."""


class ConfigurationError(OceanError, ValueError):
    """Invalid parameter set, rejected before any kernel runs."""


class ResourceExhaustedError(OceanError, MemoryError):
    """A field of the requested size could not be allocated."""

    def __init__(self, owner, field, shape):
        self.owner = owner
        self.field = field
        self.shape = tuple(shape)
        super().__init__(
            f"{owner}: cannot allocate field '{field}' of shape {self.shape}"
        )


class SurfaceStateError(OceanError, RuntimeError):
    """Operation not allowed in the current surface state."""


class FieldAccessError(OceanError, KeyError):
    """A stage touched a field outside its declared binding."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""
