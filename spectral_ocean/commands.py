import logging

logger = logging.getLogger(__name__)


class CommandEncoder:
    """
    Ordered list of recorded passes.

    Surfaces record their stages here during `dispatch`; nothing runs until
    `submit`, which executes the passes in record order. A stage therefore
    never sees the half-written output of the stage recorded after it.
    """

    def __init__(self, label="frame"):
        self.label = label
        self._passes = []
        self.submitted = False

    def record(self, label, kernel, *args):
        if self.submitted:
            raise RuntimeError(f"encoder '{self.label}' was already submitted")
        self._passes.append((label, kernel, args))

    def labels(self):
        return [label for label, _, _ in self._passes]

    def __len__(self):
        return len(self._passes)

    def submit(self):
        if self.submitted:
            raise RuntimeError(f"encoder '{self.label}' was already submitted")
        self.submitted = True
        logger.debug("%s: submitting %d passes", self.label, len(self._passes))
        for label, kernel, args in self._passes:
            logger.debug("%s: %s", self.label, label)
            kernel(*args)
