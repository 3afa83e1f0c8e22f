from pathlib import Path


class RouteqlError(Exception):
    """Base class for errors raised while transforming routes."""


class DocumentParseError(RouteqlError):
    def __init__(self, filename: str, message: str) -> None:
        super().__init__(f"could not parse document in {filename}: {message}")
        self.filename = filename


class DuplicateDocumentError(RouteqlError):
    def __init__(self, name: str, filename: str, previous: str) -> None:
        super().__init__(f"document {name!r} in {filename} is already defined in {previous}")
        self.name = name


class CompositionError(RouteqlError):
    """Raised when an operation cannot be turned into a self-contained document."""


class MissingFragmentError(CompositionError):
    def __init__(self, fragment: str, referenced_by: str) -> None:
        super().__init__(f"fragment {fragment!r} referenced by {referenced_by!r} is not defined")
        self.fragment = fragment
        self.referenced_by = referenced_by


class FragmentCycleError(CompositionError):
    def __init__(self, cycle: list[str]) -> None:
        super().__init__("fragment cycle detected: " + " -> ".join(cycle))
        self.cycle = cycle


class RouteValidationError(RouteqlError):
    """Raised when a route's declarations are structurally invalid."""


class IntrospectionError(RouteqlError):
    def __init__(self, path: Path, message: str, *, not_found: bool = False) -> None:
        super().__init__(f"could not introspect {path}: {message}")
        self.path = path
        self.not_found = not_found
