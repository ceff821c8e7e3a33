"""
Error taxonomy for the gate log data layer.

Every failure is caught at the operation boundary closest to its cause
(see services/gate_service.py) and turned into an operator-visible message.
Nothing here is retried automatically.
"""


class GateLogError(Exception):
    """Base class for all data-layer errors."""


class ValidationError(GateLogError):
    """A required field is missing or a value is outside its enumeration.

    Raised before anything is written.
    """


class StorageError(GateLogError):
    """The relational engine or the durable slot failed to read or write."""


class QuotaExceededError(StorageError):
    """The durable slot rejected a write because it is full.

    The mutation that preceded the save already happened in memory, so the
    operator must be told the last change may be lost on reload.
    """


class BlobIOError(GateLogError):
    """Evidence could not be written to or read from the blob store."""
