"""
Tokenizer for the VALUES list of a single-row INSERT statement.

Splits the text between ``VALUES (`` and ``);`` into raw literal fields:

    'a,b',123,'c\\'d',NULL  ->  ["a,b", "123", "c\\'d", "NULL"]

Quoted fields lose their surrounding quotes; everything else (numbers,
NULL, hex literals, escape sequences) is returned exactly as written.
"""

from .exceptions import MalformedValuesError

QUOTE = "'"
SEPARATOR = ","
ESCAPE = "\\"


def parse_values(text: str) -> list[str]:
    """
    Split a comma-separated list of SQL literals into raw fields.

    A quote preceded by a backslash does not close a quoted field. Only the
    single preceding character is checked, so a value whose last character
    is a backslash cannot be told apart from an escaped quote.

    Args:
        text: Interior of a parenthesized value list

    Returns:
        List of raw field strings in source order

    Raises:
        MalformedValuesError: If a quoted field is never closed
    """
    values = []
    length = len(text)
    i = 0

    while i < length:
        if text[i] != QUOTE:
            # Unquoted, runs to the next comma
            j = text.find(SEPARATOR, i + 1)
            if j == -1:
                j = length
            values.append(text[i:j])
            i = j + 1
        else:
            j = text.find(QUOTE, i + 1)
            while j != -1 and text[j - 1] == ESCAPE:
                j = text.find(QUOTE, j + 1)
            if j == -1:
                raise MalformedValuesError(
                    f"Unterminated quoted value starting at offset {i}",
                    offset=i,
                )
            values.append(text[i + 1 : j])
            # Skip the closing quote and the comma after it
            i = j + 2

    return values
