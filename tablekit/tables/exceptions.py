# File: /tablekit/tables/exceptions.py | Version: 1.0 | Title: Table engine error taxonomy
from __future__ import annotations


class TableError(Exception):
    """Root of every error raised by the table engine."""


# --- Configuration errors (developer-facing, fatal) ---
class ConfigurationError(TableError):
    pass


class UnsupportedClause(ConfigurationError):
    def __init__(self, clause) -> None:
        value = getattr(clause, "value", clause)
        super().__init__(f"Unsupported clause: {value}")
        self.clause = clause


class UnsupportedRelationType(ConfigurationError):
    def __init__(self, relation: str, kind: str) -> None:
        super().__init__(
            f"Relation '{relation}' of kind '{kind}' cannot be queried on another connection."
        )


class UnsupportedNestedRelation(ConfigurationError):
    def __init__(self, relation: str) -> None:
        super().__init__(
            f"Nested relation '{relation}' cannot be queried on another connection."
        )


class UnresolvableRelation(ConfigurationError):
    def __init__(self, model, relation: str) -> None:
        name = getattr(model, "__name__", str(model))
        super().__init__(f"Relation '{relation}' does not exist on model {name}.")


class MissingResource(ConfigurationError):
    def __init__(self) -> None:
        super().__init__("The Table resource is not set.")


class UnsortableRelation(ConfigurationError):
    pass


class MissingExportDestination(ConfigurationError):
    pass


class AnonymousTable(ConfigurationError):
    def __init__(self) -> None:
        super().__init__(
            "Tables defined inside functions cannot be resolved from a URL; "
            "declare the Table subclass at module level."
        )


# --- Invalid client state (treated as not found / forbidden) ---
class InvalidClientState(TableError):
    pass


class InvalidState(InvalidClientState):
    def __init__(self, message: str = "The table state is invalid.") -> None:
        super().__init__(message)


class InvalidTableClass(InvalidClientState):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown table class: {name}")


class InvalidSignature(InvalidClientState):
    def __init__(self, message: str = "Invalid signature.") -> None:
        super().__init__(message)


# --- Runtime misuse ---
class Unauthorized(TableError):
    def __init__(self, message: str = "This action is unauthorized.") -> None:
        super().__init__(message)


class NoBulkAction(TableError):
    def __init__(self, label: str) -> None:
        super().__init__(f"The action '{label}' cannot be applied to multiple rows.")
