"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class DuplicateEntityError(Exception):
    """Raised when a write would break a uniqueness constraint.

    Both the application pre-check and the store's unique index raise this,
    so callers see a single conflict kind regardless of which layer caught it.
    """

    def __init__(self, entity_type: str, field: str, value: str):
        self.entity_type = entity_type
        self.field = field
        self.value = value
        super().__init__(f"{entity_type} with {field}='{value}' already exists")


class InvalidEntityError(Exception):
    """Raised when input is malformed or a required field is missing."""

    def __init__(self, entity_type: str, message: str):
        self.entity_type = entity_type
        self.message = message
        super().__init__(f"Invalid {entity_type}: {message}")
