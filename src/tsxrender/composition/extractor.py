"""Static extraction of the composition config from a TSX source file.

The source file is never imported or executed. Instead the extractor finds
the exported declaration::

    export const compositionConfig = {
      id: 'MyVideo',
      durationInSeconds: 5,
      fps: 30,
      width: 1080,
      height: 1920,
    };

and parses the object literal with a small tokenizer that understands just
enough TypeScript surface syntax: comments, string and template literals,
numbers, identifiers and punctuation. Tokens are produced lazily from the
end of the export keyword, so JSX further down the file is never scanned.

Anything that is not a plain literal (identifiers, calls, arithmetic,
spreads, computed keys, template substitutions) is rejected.
"""

import re
import logging
from pathlib import Path
from typing import Any, Iterator, List, NamedTuple, Optional, Union

from pydantic import ValidationError as SchemaValidationError

from tsxrender.composition.descriptor import CompositionDescriptor, REQUIRED_FIELDS
from tsxrender.contracts import ConfigExtractionError, assert_renderable

__all__ = [
    'extract_composition_config',
    'parse_config_literal',
    'find_config_export',
    'Token',
]

logger = logging.getLogger(__name__)


class Token(NamedTuple):
    kind: str
    value: str
    pos: int


_TOKEN_SPEC = [
    ("WS", r"\s+"),
    ("LINE_COMMENT", r"//[^\n]*"),
    ("BLOCK_COMMENT", r"/\*.*?\*/"),
    ("STRING", r"'(?:[^'\\\n]|\\.)*'|\"(?:[^\"\\\n]|\\.)*\""),
    ("TEMPLATE", r"`(?:[^`\\]|\\.)*`"),
    ("NUMBER", r"0[xX][0-9a-fA-F_]+|(?:\d[\d_]*(?:\.[\d_]*)?|\.\d[\d_]*)(?:[eE][+-]?\d+)?"),
    ("IDENT", r"[A-Za-z_$][\w$]*"),
    ("SPREAD", r"\.\.\."),
    ("PUNCT", r"[{}\[\]():,;=<>+\-*/?!&|.@#%^~]"),
]
_TOKEN_RE = re.compile(
    "|".join(f"(?P<{name}>{pattern})" for name, pattern in _TOKEN_SPEC),
    re.DOTALL,
)
_SKIP = {"WS", "LINE_COMMENT", "BLOCK_COMMENT"}

_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v",
    "0": "\0", "\\": "\\", "'": "'", '"': '"', "`": "`", "\n": "",
}
_ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|.)", re.DOTALL)

_KEYWORD_VALUES = {"true": True, "false": False, "null": None}

_EXPORT_PATTERN = r"^[ \t]*export\s+(?:const|let|var)\s+{name}\b"


def _tokenize(source: str, start: int = 0) -> Iterator[Token]:
    """Yield significant tokens from ``start`` onwards."""
    pos = start
    length = len(source)
    while pos < length:
        match = _TOKEN_RE.match(source, pos)
        if match is None:
            raise ConfigExtractionError(
                f"Unexpected character {source[pos]!r} at offset {pos}"
            )
        kind = match.lastgroup
        if kind not in _SKIP:
            yield Token(kind, match.group(), pos)
        pos = match.end()
    yield Token("EOF", "", length)


def _decode_string(raw: str) -> str:
    """Decode a quoted string token, handling JS escape sequences."""
    body = raw[1:-1]

    def replace(match):
        esc = match.group(1)
        if esc.startswith("u{"):
            return chr(int(esc[2:-1], 16))
        if esc.startswith("u") and len(esc) == 5:
            return chr(int(esc[1:], 16))
        if esc.startswith("x") and len(esc) == 3:
            return chr(int(esc[1:], 16))
        return _ESCAPES.get(esc, esc)

    return _ESCAPE_RE.sub(replace, body)


def _parse_number(text: str) -> Union[int, float]:
    cleaned = text.replace("_", "")
    if cleaned[:2].lower() == "0x":
        return int(cleaned, 16)
    if any(c in cleaned for c in ".eE"):
        value = float(cleaned)
        return int(value) if value.is_integer() and "." not in cleaned else value
    return int(cleaned)


class _LiteralParser:
    """Recursive-descent parser over a lazy token stream."""

    def __init__(self, tokens: Iterator[Token], export_name: str):
        self._tokens = tokens
        self._export_name = export_name
        self._current = next(tokens)

    @property
    def current(self) -> Token:
        return self._current

    def advance(self) -> Token:
        token = self._current
        self._current = next(self._tokens)
        return token

    def at(self, kind: str, value: Optional[str] = None) -> bool:
        return self._current.kind == kind and (value is None or self._current.value == value)

    def expect(self, kind: str, value: Optional[str] = None, context: str = "") -> Token:
        if not self.at(kind, value):
            wanted = value or kind.lower()
            found = self._current.value or "end of file"
            raise ConfigExtractionError(
                f"Expected '{wanted}' {context} in {self._export_name}, found '{found}'"
            )
        return self.advance()

    def not_literal(self, path: str) -> ConfigExtractionError:
        found = self._current.value or "end of file"
        if not path:
            return ConfigExtractionError(
                f"{self._export_name} is not a plain literal (found '{found}')"
            )
        return ConfigExtractionError(
            f"field '{path}' in {self._export_name} is not a plain literal (found '{found}')",
            field=path.split(".")[0].split("[")[0],
        )

    def skip_type_annotation(self) -> None:
        """Skip ``: SomeType<...>`` up to the ``=`` at bracket depth zero."""
        depth = 0
        while not (depth == 0 and self.at("PUNCT", "=")):
            token = self.advance()
            if token.kind == "EOF" or (depth == 0 and token.value == ";"):
                raise ConfigExtractionError(
                    f"{self._export_name} is declared without an initializer"
                )
            if token.value in "{[(<" and token.kind == "PUNCT":
                depth += 1
            elif token.value in "}])>" and token.kind == "PUNCT":
                depth -= 1

    def parse_value(self, path: str) -> Any:
        token = self.current
        if token.kind == "PUNCT" and token.value == "{":
            return self.parse_object(path)
        if token.kind == "PUNCT" and token.value == "[":
            return self.parse_array(path)
        if token.kind == "STRING":
            self.advance()
            return _decode_string(token.value)
        if token.kind == "TEMPLATE":
            if "${" in token.value:
                raise self.not_literal(path)
            self.advance()
            return _decode_string(token.value)
        if token.kind == "NUMBER":
            self.advance()
            return _parse_number(token.value)
        if token.kind == "PUNCT" and token.value in "+-":
            sign = -1 if token.value == "-" else 1
            self.advance()
            if not self.at("NUMBER"):
                raise self.not_literal(path)
            return sign * _parse_number(self.advance().value)
        if token.kind == "IDENT" and token.value in _KEYWORD_VALUES:
            self.advance()
            return _KEYWORD_VALUES[token.value]
        raise self.not_literal(path)

    def parse_object(self, path: str) -> dict:
        self.expect("PUNCT", "{", "to open object")
        result = {}
        while not self.at("PUNCT", "}"):
            key_token = self.current
            if key_token.kind in ("IDENT", "NUMBER"):
                key = key_token.value
            elif key_token.kind == "STRING":
                key = _decode_string(key_token.value)
            else:
                # Spread elements and computed keys
                raise self.not_literal(path)
            self.advance()
            child = f"{path}.{key}" if path else key
            if not self.at("PUNCT", ":"):
                # Shorthand property refers to a variable
                raise ConfigExtractionError(
                    f"field '{child}' in {self._export_name} is not a plain literal "
                    f"(shorthand property)",
                    field=child.split(".")[0],
                )
            self.advance()
            result[key] = self.parse_value(child)
            self.end_of_element(child, "}")
        self.advance()
        return result

    def parse_array(self, path: str) -> list:
        self.expect("PUNCT", "[", "to open array")
        items: List[Any] = []
        while not self.at("PUNCT", "]"):
            child = f"{path}[{len(items)}]"
            items.append(self.parse_value(child))
            self.end_of_element(child, "]")
        self.advance()
        return items

    def end_of_element(self, path: str, closer: str) -> None:
        """Consume the separator after a value or stop before the closer."""
        if self.at("PUNCT", ","):
            self.advance()
        elif not self.at("PUNCT", closer):
            # Trailing operators, calls, member access...
            raise self.not_literal(path)


def find_config_export(source: str, export_name: str = "compositionConfig") -> Optional[int]:
    """Offset just past ``export const <name>`` in ``source``, or None."""
    pattern = re.compile(_EXPORT_PATTERN.format(name=re.escape(export_name)), re.MULTILINE)
    match = pattern.search(source)
    return match.end() if match else None


def parse_config_literal(source: str, export_name: str = "compositionConfig") -> dict:
    """Parse the exported configuration object literal into a dict.

    Parameters
    ----------
    source : str
        Full text of the source file.
    export_name : str
        Name of the exported constant.

    Returns
    -------
    dict
        Literal key/value pairs, nested objects and arrays included.

    Raises
    ------
    ConfigExtractionError
        If the export is missing or is not a plain object literal.
    """
    offset = find_config_export(source, export_name)
    if offset is None:
        raise ConfigExtractionError(f"No exported '{export_name}' object found")

    parser = _LiteralParser(_tokenize(source, offset), export_name)
    if parser.at("PUNCT", ":"):
        parser.skip_type_annotation()
    parser.expect("PUNCT", "=", f"after 'export const {export_name}'")

    if not parser.at("PUNCT", "{"):
        raise ConfigExtractionError(
            f"{export_name} must be a plain object literal "
            f"(found '{parser.current.value or 'end of file'}')"
        )
    config = parser.parse_object("")

    # Allow `as const` / `satisfies Type` after the literal, nothing else
    if parser.at("IDENT", "as") or parser.at("IDENT", "satisfies"):
        parser.advance()
        parser.expect("IDENT", context="after type assertion")
    # A following statement is fine; an operator continuing the expression is not
    if parser.current.kind in ("PUNCT", "SPREAD") and parser.current.value != ";":
        raise ConfigExtractionError(
            f"{export_name} must be a plain object literal "
            f"(unexpected '{parser.current.value}' after it)"
        )
    return config


def _check_field_types(config: dict, export_name: str) -> None:
    for field in REQUIRED_FIELDS:
        if field not in config:
            raise ConfigExtractionError(
                f"Missing required field '{field}' in {export_name}", field=field
            )
        value = config[field]
        if field == "id":
            if not isinstance(value, str):
                raise ConfigExtractionError(
                    f"Field 'id' in {export_name} must be a string, "
                    f"got {type(value).__name__}",
                    field=field,
                )
        elif isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigExtractionError(
                f"Field '{field}' in {export_name} must be a number, "
                f"got {type(value).__name__}",
                field=field,
            )


def extract_composition_config(
    path: Union[str, Path],
    export_name: str = "compositionConfig",
) -> CompositionDescriptor:
    """Recover the composition descriptor from a source file without running it.

    Parameters
    ----------
    path : str or Path
        Source file, already checked by ``validate_source_file``.
    export_name : str
        Name of the exported configuration constant.

    Returns
    -------
    CompositionDescriptor
        Validated, immutable descriptor.

    Raises
    ------
    ConfigExtractionError
        If the export is missing, not a plain literal, or any required field
        is missing or invalid. ``field`` names the offending field when known.
    """
    path = Path(path)
    try:
        source = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigExtractionError(f"Cannot read {path}: {e}") from e

    config = parse_config_literal(source, export_name)
    logger.debug("Parsed %s from %s: %s", export_name, path, config)

    _check_field_types(config, export_name)

    try:
        descriptor = CompositionDescriptor.model_validate(
            {field: config[field] for field in REQUIRED_FIELDS}
        )
    except SchemaValidationError as e:
        error = e.errors()[0]
        # Model-level errors (empty loc) come from the frame-count rule
        field = str(error["loc"][0]) if error["loc"] else "durationInSeconds"
        raise ConfigExtractionError(
            f"Invalid field '{field}' in {export_name}: {error['msg']}", field=field
        ) from e

    assert_renderable(descriptor)
    return descriptor
