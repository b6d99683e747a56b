"""
Text Domain Rule

Finds WordPress translation calls whose text domain is the configured
original domain and rewrites it to the target domain:

    __( 'Hello', 'old-domain' )   ->   __( 'Hello', 'new-domain' )

Works on the token stream alone. The text domain is always the last
argument of a translation function, so the rule splits the call's
arguments at top-level commas and checks the first string literal of the
last one. Domains held in variables, constants or concatenations are
never reported.
"""

from typing import List, Optional, Sequence

from ..config import TextDomainConfig
from ..parser import Token, TokenKind
from .lint import LintRule, SourceFile

# WordPress translation functions that take the text domain last
TRANSLATION_FUNCTIONS = frozenset({
    '__',
    '_e',
    '_x',
    '_n',
    '_nx',
    'esc_html__',
    'esc_html_e',
    'esc_html_x',
    'esc_attr__',
    'esc_attr_e',
    'esc_attr_x',
})

QUOTE_CHARS = "'\""

REPLACE_DOMAIN = "ReplaceDomain"


def is_translation_function(name: str) -> bool:
    """Check if the given function name is a translation function."""
    return name in TRANSLATION_FUNCTIONS


def find_string_token(tokens: Sequence[Token], start: int, end: int) -> Optional[int]:
    """Position of the first constant string literal in [start, end), or None."""
    for i in range(start, end):
        if tokens[i].kind == TokenKind.STRING:
            return i
    return None


def get_function_arguments(tokens: Sequence[Token], open_parenthesis: int) -> List[int]:
    """
    Split a call's arguments, starting from its opening parenthesis.

    Returns, in argument order, the position of the first string literal of
    each top-level argument. Arguments without a string literal are left
    out, so the result can be shorter than the argument list. Parentheses
    are counted to skip over nested calls; the scan stops at the call's
    own closing parenthesis.
    """
    arguments = []
    level = 1
    current_arg_start = open_parenthesis + 1

    for i in range(open_parenthesis + 1, len(tokens)):
        kind = tokens[i].kind
        if kind == TokenKind.OPEN_PAREN:
            level += 1
        elif kind == TokenKind.CLOSE_PAREN:
            level -= 1
            if level == 0:
                last_arg = find_string_token(tokens, current_arg_start, i)
                if last_arg is not None:
                    arguments.append(last_arg)
                break
        elif kind == TokenKind.COMMA and level == 1:
            string_token = find_string_token(tokens, current_arg_start, i)
            if string_token is not None:
                arguments.append(string_token)
            current_arg_start = i + 1

    return arguments


def last_argument(arguments: Sequence[int]) -> Optional[int]:
    """The text domain candidate: the last argument's literal, if any."""
    if not arguments:
        return None
    return arguments[-1]


def strip_quotes(text: str) -> str:
    """Remove one enclosing quote character from each end. Escapes are kept."""
    if text[:1] and text[:1] in QUOTE_CHARS:
        text = text[1:]
    if text[-1:] and text[-1:] in QUOTE_CHARS:
        text = text[:-1]
    return text


class TextDomainRule(LintRule):
    """Replace the original text domain with the target one in translation calls."""

    name = "TextDomain"

    def __init__(self, config: TextDomainConfig):
        self.config = config

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def register(self) -> List[TokenKind]:
        return [TokenKind.IDENTIFIER]

    def process(self, source_file: SourceFile, position: int) -> None:
        tokens = source_file.tokens
        function_name = tokens[position].text

        if not is_translation_function(function_name):
            return

        open_parenthesis = source_file.find_next(TokenKind.OPEN_PAREN, position)
        if open_parenthesis is None:
            return

        text_domain_ptr = last_argument(get_function_arguments(tokens, open_parenthesis))
        if text_domain_ptr is None or not self.is_text_domain_match(tokens[text_domain_ptr]):
            return

        self._add_fixable_error(source_file, text_domain_ptr, function_name)

    def is_text_domain_match(self, token: Token) -> bool:
        return strip_quotes(token.text) == self.config.original_text_domain

    def _add_fixable_error(self, source_file: SourceFile, text_domain_ptr: int,
                           function_name: str) -> None:
        error = (
            f'Text domain "{self.config.original_text_domain}" in function '
            f'{function_name}() should be replaced with "{self.config.target_text_domain}".'
        )

        fix = source_file.add_fixable_error(error, text_domain_ptr, REPLACE_DOMAIN)
        if fix:
            source_file.fixer.replace_token(text_domain_ptr, f"'{self.config.target_text_domain}'")
