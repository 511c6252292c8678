"""
csv_parser.py: quoted-CSV tokenizer for sheet exports

Dialect: comma separator, double-quote quoting with "" as the escape for a
literal quote, CR, LF or CRLF row terminators. Line breaks inside quotes are
kept as field content. Rows whose fields are all blank are dropped after the
whole text has been tokenized.
"""

from __future__ import annotations

QUOTE = '"'
SEPARATOR = ","
TERMINATORS = {"\r", "\n"}


def tokenize(text: str) -> list[list[str]]:
    """Split text into raw rows without dropping blank ones."""
    rows: list[list[str]] = []
    row: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    length = len(text)

    while i < length:
        char = text[i]
        nxt = text[i + 1] if i + 1 < length else ""

        if char == QUOTE:
            if in_quotes and nxt == QUOTE:
                current.append(QUOTE)
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == SEPARATOR and not in_quotes:
            row.append("".join(current))
            current = []
        elif char in TERMINATORS and not in_quotes:
            if char == "\r" and nxt == "\n":
                i += 1
            row.append("".join(current))
            rows.append(row)
            row = []
            current = []
        else:
            current.append(char)
        i += 1

    row.append("".join(current))
    rows.append(row)
    return rows


def is_blank_row(row: list[str]) -> bool:
    return all(not cell.strip() for cell in row)


def parse_csv(text: str) -> list[list[str]]:
    return [row for row in tokenize(text) if not is_blank_row(row)]
