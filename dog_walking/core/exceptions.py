"""
Error taxonomy for the dog walking service.

Everything raised by the entity model and the persistence gateway derives
from DogWalkingError, so the HTTP layer can map each kind to a status code.
"""

class DogWalkingError(Exception):
    """Base class for all service errors."""
    pass


class ConfigurationError(DogWalkingError):
    """Startup configuration is missing or still holds a placeholder."""
    pass


class ValidationError(DogWalkingError):
    """Input could not be turned into a stored entity."""
    pass


class InvalidReference(ValidationError):
    """An identity string is not a well-formed id."""

    def __init__(self, field: str, value: str):
        self.field = field
        self.value = value
        super().__init__(f"'{field}' must be a valid id, got {value!r}")


class DanglingReference(DogWalkingError):
    """A stored reference points at a record that does not exist."""

    def __init__(self, entity: str, field: str, target_id):
        self.entity = entity
        self.field = field
        self.target_id = target_id
        super().__init__(f"{entity}.{field} references missing record {target_id}")


class NotFound(DogWalkingError):
    """A lookup by id matched nothing."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class StorageError(DogWalkingError):
    """The storage backend failed (connectivity, driver error or timeout)."""

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"Storage failure during {operation}: {cause}")
