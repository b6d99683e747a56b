"""
PHP Token Linter

Runs token-based lint rules over PHP files and applies their fixes.

Rules never see an AST. Each rule registers the token kinds it wants, and
for every matching token its process() method gets the SourceFile and the
token's position. A rule reports problems through
SourceFile.add_fixable_error() and, when that returns True, proposes the
replacement through SourceFile.fixer.replace_token().

Fixing repeats lint passes until a pass makes no replacements, like
phpcbf does, giving up after MAX_FIX_PASSES.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Union

from ..parser import Lexer, LexerError, Token, TokenKind, read_source

logger = logging.getLogger(__name__)

# Upper bound on fix passes per file; a rule whose fix re-triggers itself
# would otherwise loop forever.
MAX_FIX_PASSES = 50

# Code of the issue reported for a file that could not be read or tokenized
PARSE_ERROR = "E000"


class Severity(Enum):
    """Lint issue severity levels."""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class LintIssue:
    """A single lint issue found in the code."""
    severity: Severity
    code: str               # e.g. "ReplaceDomain", "E000"
    message: str
    file: str
    line: int
    column: int = 0
    fixable: bool = False
    context: str = ""       # Text of the offending token

    def __str__(self):
        prefix = {
            Severity.ERROR: "[ERROR]",
            Severity.WARNING: "[WARNING]",
        }[self.severity]

        loc = f"{self.file}:{self.line}"
        if self.column:
            loc += f":{self.column}"

        msg = f"{prefix} {self.code} {loc}: {self.message}"
        if self.fixable:
            msg += " (fixable)"
        if self.context:
            msg += f"\n    {self.context}"
        return msg

    def to_dict(self) -> Dict[str, object]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "fixable": self.fixable,
            "context": self.context,
        }


def parse_error_issue(error: Exception, filename: str) -> LintIssue:
    """Issue reported for a file that could not be read or tokenized."""
    return LintIssue(
        severity=Severity.ERROR,
        code=PARSE_ERROR,
        message=f"Parse error: {error}",
        file=filename,
        line=getattr(error, "line", 0),
        column=getattr(error, "column", 0),
    )


# ============================================================================
# SOURCE FILE
# ============================================================================

class Fixer:
    """Collects token replacements for one SourceFile."""

    def __init__(self, source_file: "SourceFile"):
        self._source_file = source_file
        self._replacements: Dict[int, str] = {}

    @property
    def fix_count(self) -> int:
        return len(self._replacements)

    def replace_token(self, position: int, text: str) -> bool:
        """Replace the text of the token at position. Only works in fix mode."""
        if not self._source_file.fix_mode:
            return False
        self._replacements[position] = text
        return True

    def get_contents(self) -> str:
        """Render the source with all replacements applied."""
        return "".join(
            self._replacements.get(position, token.text)
            for position, token in enumerate(self._source_file.tokens)
        )


class SourceFile:
    """
    One PHP file as seen by the rules: its token stream plus the
    primitives to search it and report issues against it.

    Raises LexerError if the content cannot be tokenized.
    """

    def __init__(self, path: str, content: str, fix_mode: bool = False):
        self.path = path
        self.content = content
        self.fix_mode = fix_mode
        self.tokens: List[Token] = Lexer(content, path).tokenize_all()
        self.issues: List[LintIssue] = []
        self.fixer = Fixer(self)

    def find_next(self, kinds: Union[TokenKind, Iterable[TokenKind]], start: int,
                  end: Optional[int] = None) -> Optional[int]:
        """Position of the first token of one of kinds in [start, end), or None."""
        if isinstance(kinds, TokenKind):
            kinds = (kinds,)
        wanted = set(kinds)
        stop = len(self.tokens) if end is None else min(end, len(self.tokens))
        for position in range(max(start, 0), stop):
            if self.tokens[position].kind in wanted:
                return position
        return None

    def add_fixable_error(self, message: str, position: int, code: str) -> bool:
        """
        Record a fixable error at the token position.

        Returns True when the caller should apply its fix, which is
        whenever the file is being fixed.
        """
        token = self.tokens[position]
        self.issues.append(LintIssue(
            severity=Severity.ERROR,
            code=code,
            message=message,
            file=self.path,
            line=token.line,
            column=token.column,
            fixable=True,
            context=token.text,
        ))
        return self.fix_mode


# ============================================================================
# RULES
# ============================================================================

class LintRule:
    """Base class for token lint rules."""

    name: str = "X000"

    @property
    def enabled(self) -> bool:
        """Checked once per file; disabled rules see no tokens at all."""
        return True

    def register(self) -> List[TokenKind]:
        """Token kinds this rule wants to process."""
        raise NotImplementedError

    def process(self, source_file: SourceFile, position: int) -> None:
        """Check the token at position and report any issues."""
        raise NotImplementedError


# ============================================================================
# LINTER ENGINE
# ============================================================================

@dataclass
class FixResult:
    """Outcome of fixing one file."""
    path: str
    original: str
    content: str
    passes: int = 0
    fixes: int = 0
    converged: bool = True
    issues: List[LintIssue] = field(default_factory=list)  # Left after fixing

    @property
    def changed(self) -> bool:
        return self.content != self.original


class Linter:
    """
    Main linter class that runs rules against PHP files.
    """

    def __init__(self, rules: Optional[List[LintRule]] = None):
        if rules is None:
            from ..config import TextDomainConfig
            from .text_domain import TextDomainRule
            rules = [TextDomainRule(TextDomainConfig.from_env())]
        self.rules = rules

    def process(self, source_file: SourceFile) -> None:
        """Dispatch every token of the file to the rules registered for its kind."""
        listeners: Dict[TokenKind, List[LintRule]] = defaultdict(list)
        for rule in self.rules:
            if not rule.enabled:
                logger.debug(f"{rule.name} disabled, skipping {source_file.path}")
                continue
            for kind in rule.register():
                listeners[kind].append(rule)

        if not listeners:
            return

        for position, token in enumerate(source_file.tokens):
            for rule in listeners.get(token.kind, ()):
                rule.process(source_file, position)

    def lint_source(self, content: str, filename: str = "<string>") -> List[LintIssue]:
        """Lint a string of PHP source and return all issues."""
        try:
            source_file = SourceFile(filename, content)
        except LexerError as e:
            return [parse_error_issue(e, filename)]

        self.process(source_file)
        return sorted(source_file.issues, key=lambda i: (i.line, i.column))

    def lint_file(self, file_path: Path) -> List[LintIssue]:
        """Lint a file and return all issues."""
        logger.debug(f"Linting {file_path}")
        try:
            content, _ = read_source(str(file_path))
        except OSError as e:
            logger.warning(f"Cannot read {file_path}: {e}")
            return [parse_error_issue(e, str(file_path))]
        return self.lint_source(content, str(file_path))

    def fix_source(self, content: str, filename: str = "<string>") -> FixResult:
        """Apply fixes to PHP source until it is stable."""
        result = FixResult(path=filename, original=content, content=content)
        converged = False

        while result.passes < MAX_FIX_PASSES:
            try:
                source_file = SourceFile(filename, result.content, fix_mode=True)
            except LexerError as e:
                if result.passes:
                    # The last pass broke the file; keep the content before it
                    logger.warning(f"{filename}: fix pass {result.passes} produced "
                                   f"untokenizable source, keeping the previous pass")
                    result.content = last_content
                    result.passes -= 1
                    result.fixes -= last_fixes
                    result.converged = False
                result.issues = [parse_error_issue(e, filename)]
                return result

            self.process(source_file)
            if source_file.fixer.fix_count == 0:
                converged = True
                break
            last_content = result.content
            last_fixes = source_file.fixer.fix_count
            result.passes += 1
            result.fixes += last_fixes
            result.content = source_file.fixer.get_contents()

        result.converged = converged
        if not converged:
            logger.warning(f"{filename}: fixes did not converge after {MAX_FIX_PASSES} passes")

        result.issues = self.lint_source(result.content, filename)
        return result

    def fix_file(self, file_path: Path, write: bool = True) -> FixResult:
        """Fix a file, writing it back (same encoding) unless write is False."""
        logger.debug(f"Fixing {file_path}")
        try:
            content, encoding = read_source(str(file_path))
        except OSError as e:
            logger.warning(f"Cannot read {file_path}: {e}")
            return FixResult(path=str(file_path), original="", content="",
                             issues=[parse_error_issue(e, str(file_path))])

        result = self.fix_source(content, str(file_path))
        if any(issue.code == PARSE_ERROR for issue in result.issues):
            logger.warning(f"Not writing {file_path}: {result.issues[0].message}")
        elif write and result.changed:
            with open(file_path, 'w', encoding=encoding, newline='') as f:
                f.write(result.content)
            logger.info(f"Fixed {file_path}: {result.fixes} replacements")
        return result


def iter_source_files(paths: Iterable[Path], pattern: str = "*.php",
                      recursive: bool = True) -> Iterator[Path]:
    """Expand files and directories into the files to lint, in sorted order."""
    for path in paths:
        if path.is_file():
            yield path
        elif path.is_dir():
            glob_method = path.rglob if recursive else path.glob
            for file_path in sorted(glob_method(pattern)):
                if file_path.is_file():
                    yield file_path


def lint_file(file_path: Path, rules: Optional[List[LintRule]] = None) -> List[LintIssue]:
    """Convenience function to lint a file."""
    linter = Linter(rules)
    return linter.lint_file(file_path)


def lint_directory(dir_path: Path, pattern: str = "*.php", recursive: bool = True,
                   rules: Optional[List[LintRule]] = None) -> Dict[str, List[LintIssue]]:
    """Lint all matching files in a directory."""
    linter = Linter(rules)
    results = {}

    for file_path in iter_source_files([dir_path], pattern, recursive):
        issues = linter.lint_file(file_path)
        if issues:
            results[str(file_path)] = issues

    logger.info(f"Linted {dir_path}: {sum(len(i) for i in results.values())} issues "
                f"in {len(results)} files")
    return results
