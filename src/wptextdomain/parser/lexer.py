"""
PHP Lexer (Tokenizer)

Converts PHP source files into a stream of tokens.
Handles: inline HTML, open/close tags, whitespace, comments, variables,
identifiers, numbers, strings, heredoc/nowdoc, parentheses, commas, operators.

The token stream is lossless: joining the text of every token gives back
the original source, which is how fixes are written out.
"""

import codecs
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Optional, Tuple


class TokenKind(Enum):
    """Kinds of tokens in PHP source."""
    INLINE_HTML = auto()          # text outside <?php ... ?>
    OPEN_TAG = auto()             # <?php, <?=, <?
    CLOSE_TAG = auto()            # ?> (plus one trailing newline)
    WHITESPACE = auto()           # spaces, tabs, newlines
    COMMENT = auto()              # // ..., # ..., /* ... */, /** ... */
    VARIABLE = auto()             # $count
    IDENTIFIER = auto()           # __, esc_html_e, function, Foo\Bar
    NUMBER = auto()               # 42, 0x1F, 1.5
    STRING = auto()               # 'text', "text" without interpolation
    INTERPOLATED_STRING = auto()  # "Hello $name", `ls`
    HEREDOC = auto()              # <<<EOT ... EOT, <<<'EOT' ... EOT
    OPEN_PAREN = auto()           # (
    CLOSE_PAREN = auto()          # )
    COMMA = auto()                # ,
    OPERATOR = auto()             # ; . = -> [ ] { } and the rest
    EOF = auto()                  # End of file


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""
    kind: TokenKind
    text: str
    line: int
    column: int

    def __repr__(self):
        return f"Token({self.kind.name}, {self.text!r}, L{self.line}:{self.column})"


class LexerError(Exception):
    """Error during lexical analysis."""
    def __init__(self, message: str, line: int, column: int):
        self.line = line
        self.column = column
        super().__init__(f"Lexer error at line {line}, column {column}: {message}")


# Opening line of a heredoc or nowdoc: <<<ID, <<<"ID" or <<<'ID'
HEREDOC_START = re.compile(r'<<<[ \t]*(["\']?)([A-Za-z_\x80-\uffff][A-Za-z0-9_\x80-\uffff]*)\1\r?\n')

WHITESPACE_CHARS = set(" \t\r\n\f\v")

SINGLE_CHAR_KINDS = {
    '(': TokenKind.OPEN_PAREN,
    ')': TokenKind.CLOSE_PAREN,
    ',': TokenKind.COMMA,
}


class Lexer:
    """
    Tokenizer for PHP source files.

    Usage:
        lexer = Lexer(source_text)
        tokens = list(lexer.tokenize())
    """

    @staticmethod
    def _is_ident_start(ch: Optional[str]) -> bool:
        """Check if character can start an identifier."""
        return ch is not None and (ch == '_' or ch.isalpha() or ord(ch) >= 0x80)

    @staticmethod
    def _is_ident_cont(ch: Optional[str]) -> bool:
        """Check if character can continue an identifier."""
        return ch is not None and (ch == '_' or ch.isalnum() or ord(ch) >= 0x80)

    def __init__(self, source: str, filename: str = "<unknown>"):
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = 1
        self.column = 1
        self.length = len(source)
        self.in_php = False

    def _current(self) -> Optional[str]:
        """Get current character or None if at end."""
        if self.pos >= self.length:
            return None
        return self.source[self.pos]

    def _peek(self, offset: int = 1) -> Optional[str]:
        """Peek ahead by offset characters."""
        pos = self.pos + offset
        if pos >= self.length:
            return None
        return self.source[pos]

    def _startswith(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def _advance(self, count: int = 1) -> str:
        """Advance count characters and return the consumed text."""
        chunk = self.source[self.pos:self.pos + count]
        for ch in chunk:
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += len(chunk)
        return chunk

    def _advance_to(self, end: int) -> str:
        return self._advance(end - self.pos)

    def _open_tag_length(self, pos: int) -> int:
        """Length of the open tag at pos, or 0 when the <? there opens no tag."""
        if self.source.startswith('<?=', pos):
            return 3
        after = self.source[pos + 2:pos + 3]
        if after == '' or after in WHITESPACE_CHARS:
            return 2
        if self.source[pos + 2:pos + 5].lower() == 'php':
            after = self.source[pos + 5:pos + 6]
            if after == '' or after in WHITESPACE_CHARS:
                return 5
        # <?xml and friends stay HTML
        return 0

    def _find_open_tag(self) -> int:
        """Offset of the next <?php, <?= or <? tag, or the end of the source."""
        pos = self.pos
        while True:
            pos = self.source.find('<?', pos)
            if pos == -1:
                return self.length
            if self._open_tag_length(pos):
                return pos
            pos += 2

    def _read_open_tag(self) -> str:
        return self._advance(self._open_tag_length(self.pos))

    def _read_close_tag(self) -> str:
        """Read ?> and the single newline PHP swallows after it."""
        end = self.pos + 2
        if self.source.startswith('\r\n', end):
            end += 2
        elif self.source.startswith('\n', end):
            end += 1
        return self._advance_to(end)

    def _read_whitespace(self) -> str:
        end = self.pos
        while end < self.length and self.source[end] in WHITESPACE_CHARS:
            end += 1
        return self._advance_to(end)

    def _read_line_comment(self) -> str:
        """Read a // or # comment. It ends before the newline or a close tag."""
        end = self.pos
        while end < self.length:
            if self.source[end] == '\n' or self.source.startswith('?>', end):
                break
            end += 1
        return self._advance_to(end)

    def _read_block_comment(self) -> str:
        end = self.source.find('*/', self.pos + 2)
        if end == -1:
            raise LexerError("Unterminated comment", self.line, self.column)
        return self._advance_to(end + 2)

    def _read_quoted(self, quote_char: str) -> Tuple[str, bool]:
        """
        Read a quoted string, keeping the quotes and escapes as written.

        Returns the raw text and whether it interpolates variables. Single
        quoted strings never interpolate.
        """
        start_line = self.line
        start_col = self.column
        interpolated = False

        end = self.pos + 1
        while True:
            if end >= self.length:
                raise LexerError("Unterminated string", start_line, start_col)
            ch = self.source[end]
            if ch == '\\':
                end += 2
                continue
            if ch == quote_char:
                break
            if quote_char != "'":
                nxt = self.source[end + 1:end + 2]
                if ch == '$' and (nxt == '{' or self._is_ident_start(nxt or None)):
                    interpolated = True
                elif ch == '{' and nxt == '$':
                    interpolated = True
            end += 1

        return self._advance_to(end + 1), interpolated

    def _read_heredoc(self, match) -> str:
        """Read a heredoc or nowdoc through its closing identifier."""
        label = re.escape(match.group(2))
        closing = re.compile(r'^[ \t]*' + label + r'(?![A-Za-z0-9_\x80-\uffff])', re.MULTILINE)
        end = closing.search(self.source, match.end())
        if end is None:
            raise LexerError(f"Unterminated heredoc {match.group(2)}", self.line, self.column)
        return self._advance_to(end.end())

    def _read_number(self) -> str:
        """Read a number literal (decimal, hex, octal, binary, float)."""
        end = self.pos
        while end < self.length and (self.source[end].isalnum() or self.source[end] in '._'):
            end += 1
        return self._advance_to(end)

    def _read_identifier(self) -> str:
        """Read an identifier, including namespaced names like Foo\\Bar."""
        end = self.pos
        while end < self.length:
            ch = self.source[end]
            if self._is_ident_cont(ch):
                end += 1
            elif ch == '\\' and self._is_ident_start(self.source[end + 1:end + 2] or None):
                end += 1
            else:
                break
        return self._advance_to(end)

    def _read_variable(self) -> str:
        self._advance()
        return '$' + self._read_identifier()

    def tokenize(self, include_trivia: bool = True) -> Iterator[Token]:
        """
        Generate tokens from the source.

        Args:
            include_trivia: If True, emit WHITESPACE and COMMENT tokens.
                Leaving them out breaks the lossless property.
        """
        while True:
            ch = self._current()
            start_line = self.line
            start_col = self.column

            if ch is None:
                yield Token(TokenKind.EOF, '', start_line, start_col)
                break

            if not self.in_php:
                tag = self._find_open_tag()
                if tag > self.pos:
                    yield Token(TokenKind.INLINE_HTML, self._advance_to(tag), start_line, start_col)
                    continue
                self.in_php = True
                yield Token(TokenKind.OPEN_TAG, self._read_open_tag(), start_line, start_col)
                continue

            if ch in WHITESPACE_CHARS:
                text = self._read_whitespace()
                if include_trivia:
                    yield Token(TokenKind.WHITESPACE, text, start_line, start_col)
                continue

            if self._startswith('?>'):
                self.in_php = False
                yield Token(TokenKind.CLOSE_TAG, self._read_close_tag(), start_line, start_col)
                continue

            # Comments (#[ starts an attribute, not a comment)
            if self._startswith('//') or (ch == '#' and self._peek() != '['):
                text = self._read_line_comment()
                if include_trivia:
                    yield Token(TokenKind.COMMENT, text, start_line, start_col)
                continue

            if self._startswith('/*'):
                text = self._read_block_comment()
                if include_trivia:
                    yield Token(TokenKind.COMMENT, text, start_line, start_col)
                continue

            # Strings
            if ch == "'":
                text, _ = self._read_quoted("'")
                yield Token(TokenKind.STRING, text, start_line, start_col)
                continue

            if ch == '"':
                text, interpolated = self._read_quoted('"')
                kind = TokenKind.INTERPOLATED_STRING if interpolated else TokenKind.STRING
                yield Token(kind, text, start_line, start_col)
                continue

            if ch == '`':
                text, _ = self._read_quoted('`')
                yield Token(TokenKind.INTERPOLATED_STRING, text, start_line, start_col)
                continue

            if ch == '<' and self._startswith('<<<'):
                match = HEREDOC_START.match(self.source, self.pos)
                if match:
                    yield Token(TokenKind.HEREDOC, self._read_heredoc(match), start_line, start_col)
                    continue

            if ch == '$' and self._is_ident_start(self._peek()):
                yield Token(TokenKind.VARIABLE, self._read_variable(), start_line, start_col)
                continue

            if ch.isdigit() or (ch == '.' and (self._peek() or '').isdigit()):
                yield Token(TokenKind.NUMBER, self._read_number(), start_line, start_col)
                continue

            if self._is_ident_start(ch) or (ch == '\\' and self._is_ident_start(self._peek())):
                yield Token(TokenKind.IDENTIFIER, self._read_identifier(), start_line, start_col)
                continue

            kind = SINGLE_CHAR_KINDS.get(ch, TokenKind.OPERATOR)
            yield Token(kind, self._advance(), start_line, start_col)

    def tokenize_all(self, include_trivia: bool = True) -> List[Token]:
        """Convenience method to get all tokens as a list."""
        return list(self.tokenize(include_trivia))


def read_source(filepath: str) -> Tuple[str, str]:
    """
    Read a source file, returning (text, encoding). Handles encoding fallback.

    The encoding is returned so a fixed file can be written back the same way.
    """
    with open(filepath, 'rb') as f:
        data = f.read()

    encoding = 'utf-8-sig' if data.startswith(codecs.BOM_UTF8) else 'utf-8'
    try:
        return data.decode(encoding), encoding
    except UnicodeDecodeError:
        # latin-1 always succeeds
        return data.decode('latin-1'), 'latin-1'


def tokenize_file(filepath: str, **kwargs) -> List[Token]:
    """Tokenize a file and return all tokens."""
    source, _ = read_source(filepath)
    lexer = Lexer(source, filename=filepath)
    return lexer.tokenize_all(**kwargs)
