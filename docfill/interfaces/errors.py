"""Error taxonomy shared by the builder and its collaborators.

Classification and matching never raise; every error below originates at a
collaborator boundary (markup conversion, scalar rendering) or in
configuration validation. File I/O failures propagate as built-in
``OSError`` subclasses.
"""


class DocfillError(Exception):
    """Base class for all docfill errors."""

    pass


class ArgumentError(DocfillError, ValueError):
    """Raised for invalid configuration before any I/O takes place."""

    pass


class ConversionError(DocfillError):
    """Raised when markup cannot be converted into document blocks."""

    def __init__(self, message: str, key: str | None = None) -> None:
        super().__init__(message)
        self.key = key


class TemplateRenderError(DocfillError):
    """Raised when the scalar template engine fails to render."""

    pass


class TemplateSyntaxError(TemplateRenderError):
    """Raised when the scalar template engine cannot parse placeholder syntax."""

    def __init__(self, message: str, lineno: int | None = None) -> None:
        super().__init__(message)
        self.lineno = lineno
