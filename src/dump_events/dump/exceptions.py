"""
Custom exceptions for the dump parsing module.

Provides specialized exception classes for the error conditions that can
abort a dump parse: malformed coordinates, malformed value lists, stream
read failures, and failures raised by the bundled handlers.
"""


class DumpError(Exception):
    """
    Base exception for all dump-parsing errors.

    All other dump exceptions inherit from this class,
    allowing for broad exception catching when needed.
    """

    pass


class ParseError(DumpError):
    """
    Raised when a dump line cannot be parsed.

    Attributes:
        line_number: The line number where parsing failed (optional)
        line_content: The content of the problematic line (optional)
        message: Detailed error message
    """

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        line_content: str | None = None,
    ):
        self.line_number = line_number
        self.line_content = line_content
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with line context."""
        if self.line_number is not None and self.line_content:
            # Dump lines can be megabytes long
            content = (
                self.line_content[:100] + "..."
                if len(self.line_content) > 100
                else self.line_content
            )
            return f"{self.message} (line {self.line_number}: {content!r})"
        elif self.line_number is not None:
            return f"{self.message} (line {self.line_number})"
        return self.message


class MalformedPositionError(ParseError):
    """
    Raised when a binlog offset does not fit an unsigned 64-bit integer.

    Attributes:
        value: The raw digit string captured from the coordinate line
    """

    def __init__(
        self,
        value: str,
        line_number: int | None = None,
        line_content: str | None = None,
    ):
        self.value = value
        super().__init__(
            f"Binlog position out of range for unsigned 64-bit integer: {value}",
            line_number=line_number,
            line_content=line_content,
        )


class MalformedValuesError(ParseError):
    """
    Raised when a VALUES list contains an unterminated quoted field.

    Attributes:
        offset: Position of the opening quote inside the value list
    """

    def __init__(
        self,
        message: str,
        offset: int | None = None,
        line_number: int | None = None,
        line_content: str | None = None,
    ):
        self.offset = offset
        super().__init__(message, line_number=line_number, line_content=line_content)


class StreamReadError(DumpError):
    """
    Raised when reading or decoding the input stream fails.

    Clean end-of-stream is never an error. The underlying exception is
    chained as ``__cause__``.

    Attributes:
        line_number: Number of the line that was being read
    """

    def __init__(self, message: str, line_number: int | None = None):
        self.line_number = line_number
        self.message = message
        if line_number is not None:
            message = f"{message} (while reading line {line_number})"
        super().__init__(message)


class HandlerError(DumpError):
    """
    Raised by the bundled handlers when applying an event fails.

    Attributes:
        event: Short description of the event being applied (optional)
        message: Detailed error message
    """

    def __init__(self, message: str, event: str | None = None):
        self.event = event
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with event context."""
        if self.event:
            return f"{self.message} (event: {self.event})"
        return self.message
