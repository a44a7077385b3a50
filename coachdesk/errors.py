# coachdesk/errors.py


class StorageError(Exception):
    """Base class for failures raised by a storage backend."""


class BackendUnavailableError(StorageError):
    """The active backend could not be reached (or timed out).

    Distinct from "not found", which is always reported as ``None``.
    """


class ReferenceNotFoundError(LookupError):
    """A foreign-key lookup pointed at a record that does not exist."""

    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id
