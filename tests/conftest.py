"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Import wptextdomain modules
from wptextdomain.config import TextDomainConfig
from wptextdomain.parser import Lexer, TokenKind
from wptextdomain.tools.lint import Linter
from wptextdomain.tools.text_domain import TextDomainRule


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def fixtures_dir():
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def plugin_php(fixtures_dir):
    """A plugin file with four translation calls using old-domain."""
    return fixtures_dir / "plugin.php"


@pytest.fixture
def template_php(fixtures_dir):
    """A template mixing inline HTML and PHP."""
    return fixtures_dir / "template.php"


# =============================================================================
# RULE FIXTURES
# =============================================================================

@pytest.fixture
def config():
    """Rewrite old-domain to new-domain."""
    return TextDomainConfig(original_text_domain="old-domain",
                            target_text_domain="new-domain")


@pytest.fixture
def rule(config):
    return TextDomainRule(config)


@pytest.fixture
def linter(rule):
    return Linter([rule])


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def php(code: str) -> str:
    """Wrap a code snippet in a PHP open tag."""
    return "<?php " + code


def tokenize(code: str) -> list:
    """Tokenize a PHP snippet (open tag added)."""
    return Lexer(php(code)).tokenize_all()


def first_open_paren(tokens: list) -> int:
    """Position of the first ( in a token list."""
    for position, token in enumerate(tokens):
        if token.kind == TokenKind.OPEN_PAREN:
            return position
    raise AssertionError("no opening parenthesis")
