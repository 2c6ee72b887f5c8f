"""Exceptions raised while deriving, decoding, or applying patches."""

from typing import Any, Optional


class SchemaError(Exception):
    """Raised when a patch type cannot be derived for a class.

    This is a design-time failure. It is raised by the schema builder when a
    class has a shape that record patching does not support:
    - Classes that are not dataclasses
    - Positional records (tuple and namedtuple subclasses)
    - Sum types (enum.Enum subclasses)
    - Frozen dataclasses, which cannot be mutated in place
    - Nested field declarations that do not name a patch type

    Attributes:
        message: Description of the failure
        cls: The class being derived (optional)
        field: Name of the offending field (optional)
    """

    def __init__(
        self, message: str, cls: Optional[type] = None, field: Optional[str] = None
    ) -> None:
        """Initialize SchemaError exception.

        Args:
            message: Error message describing the failure
            cls: The class being derived (optional)
            field: Name of the offending field (optional)
        """
        super().__init__(message)
        self.cls = cls
        self.field = field


class PatchApplyError(Exception):
    """Raised when a patch does not fit the target it is applied to.

    Well-typed applications never raise. This exception is the dynamic
    counterpart of a type error:
    - The patch object is not one of the supported shapes
    - A record patch is applied to an instance of another class
    - A field patch does not match its declared shape (strict mode)

    Attributes:
        message: Description of the failure
        patch: The patch being applied (optional)
        target: The target being patched (optional)
        field: Name of the offending field (optional)
    """

    def __init__(
        self,
        message: str,
        patch: Optional[Any] = None,
        target: Optional[Any] = None,
        field: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.patch = patch
        self.target = target
        self.field = field


class PatchDecodeError(ValueError):
    """Raised when plain data cannot be decoded into a record patch.

    Attributes:
        message: Description of the failure
        path: Keys leading to the offending value
    """

    def __init__(self, message: str, path: Optional[tuple] = None) -> None:
        super().__init__(message)
        self.path = path or ()
