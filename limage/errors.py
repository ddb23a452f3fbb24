"""Exception hierarchy for the buffer composition engine.

Every precondition violation is reported before the result buffer is
allocated. Messages start with the name of the operation that rejected its
input, e.g. ``"hstack: inconsistent heights (image 2 has height 3, expected 4)"``.
"""

from __future__ import annotations


class ImageOpsError(Exception):
    """Base class for engine errors.

    Parameters
    ----------
    op : str
        Name of the operation that failed (e.g. "vstack").
    message : str
        Description of the violated invariant.
    """

    def __init__(self, op: str, message: str) -> None:
        self.op = op
        self.message = message
        super().__init__(f"{op}: {message}")


class InconsistentShapeError(ImageOpsError):
    """Inputs disagree on a dimension that must match."""

    pass


class InvalidChannelCountError(ImageOpsError):
    """An input has a channel count the operation does not accept."""

    pass


class EmptyInputError(ImageOpsError):
    """A multi-image operation received no images."""

    pass


class OutOfRangeError(ImageOpsError):
    """Region bounds fall outside the source extent or describe an empty region."""

    pass


class GoldenMismatchError(ImageOpsError):
    """A candidate image differs from its stored reference.

    Attributes
    ----------
    name : str
        Reference file name.
    comparison : Comparison
        Tagged result of the failed compare (shape or content mismatch).
    """

    def __init__(self, name: str, comparison, message: str) -> None:
        self.name = name
        self.comparison = comparison
        super().__init__("update_or_compare", message)
