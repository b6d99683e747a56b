"""
wptextdomain.parser - PHP Tokenizer

Lexer for PHP source files. Produces the lossless token stream the lint
rules scan; there is no AST.
"""

from wptextdomain.parser.lexer import (
    Lexer,
    Token,
    TokenKind,
    LexerError,
    read_source,
    tokenize_file,
)

__all__ = [
    "Lexer",
    "Token",
    "TokenKind",
    "LexerError",
    "read_source",
    "tokenize_file",
]
