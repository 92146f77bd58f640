"""Exception types raised by wiregraph."""


class WireGraphError(Exception):
    """Base class for wiregraph errors."""


class GeometryPolicyError(WireGraphError, ValueError):
    """A geometry policy was constructed with invalid parameters."""


class TransactionError(WireGraphError):
    """
    A transaction failed and the graph was rolled back.

    Only raised by engines running in strict mode; the interactive
    engine logs the failure and reports an empty delta instead.
    """

    def __init__(self, description: str, cause: BaseException):
        super().__init__(f"Transaction '{description}' failed: {cause}")
        self.description = description
        self.cause = cause


class GraphIntegrityError(WireGraphError):
    """A strict engine found the graph structurally broken after a transaction."""

    def __init__(self, errors):
        super().__init__("; ".join(errors))
        self.errors = list(errors)
