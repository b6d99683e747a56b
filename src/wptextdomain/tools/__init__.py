"""
wptextdomain.tools - Lint Engine and Rules

- lint: token linter engine, SourceFile host and fixer loop
- text_domain: the translation text domain rewrite rule
"""

# Linter
from .lint import (
    Linter,
    LintIssue,
    LintRule,
    Severity,
    SourceFile,
    FixResult,
    MAX_FIX_PASSES,
    lint_file,
    lint_directory,
)

# Text domain rule
from .text_domain import TextDomainRule, TRANSLATION_FUNCTIONS

__all__ = [
    # Lint
    "Linter",
    "LintIssue",
    "LintRule",
    "Severity",
    "SourceFile",
    "FixResult",
    "MAX_FIX_PASSES",
    "lint_file",
    "lint_directory",
    # Text domain
    "TextDomainRule",
    "TRANSLATION_FUNCTIONS",
]
