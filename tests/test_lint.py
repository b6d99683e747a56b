"""
Tests for the linter engine, SourceFile host and fixer loop.
"""

import codecs
from pathlib import Path

import pytest
from wptextdomain.parser import LexerError, TokenKind
from wptextdomain.tools.lint import (
    Linter,
    LintIssue,
    LintRule,
    Severity,
    SourceFile,
    iter_source_files,
    lint_directory,
    lint_file,
)

from conftest import php


class Rewriter(LintRule):
    """Replaces whole string literals according to a mapping."""

    name = "Rewrite"

    def __init__(self, mapping):
        self.mapping = mapping

    def register(self):
        return [TokenKind.STRING]

    def process(self, source_file, position):
        text = source_file.tokens[position].text
        if text in self.mapping and source_file.add_fixable_error("rewrite", position, "Rewrite"):
            source_file.fixer.replace_token(position, self.mapping[text])


# Second pass turns 'b' into a literal that no longer tokenizes
BREAKS_ON_SECOND_PASS = {"'a'": "'b'", "'b'": "'it's'"}


class TestSourceFile:
    """Primitives the rules rely on."""

    def test_find_next(self):
        source_file = SourceFile("<test>", php("foo( 'a' )"))
        assert source_file.find_next(TokenKind.OPEN_PAREN, 0) == 3
        assert source_file.find_next([TokenKind.STRING, TokenKind.COMMA], 0) == 5

    def test_find_next_includes_start(self):
        source_file = SourceFile("<test>", php("foo( 'a' )"))
        assert source_file.find_next(TokenKind.OPEN_PAREN, 3) == 3

    def test_find_next_not_found(self):
        source_file = SourceFile("<test>", php("foo( 'a' )"))
        assert source_file.find_next(TokenKind.COMMA, 0) is None
        assert source_file.find_next(TokenKind.STRING, 0, end=4) is None

    def test_add_fixable_error_records_issue(self):
        source_file = SourceFile("a.php", php("foo( 'a' )"))
        assert source_file.add_fixable_error("msg", 5, "Code") is False
        issue = source_file.issues[0]
        assert issue.severity == Severity.ERROR
        assert (issue.file, issue.line, issue.column) == ("a.php", 1, 12)
        assert issue.context == "'a'"
        assert issue.fixable

    def test_add_fixable_error_in_fix_mode(self):
        source_file = SourceFile("a.php", php("foo( 'a' )"), fix_mode=True)
        assert source_file.add_fixable_error("msg", 5, "Code") is True

    def test_fixer_needs_fix_mode(self):
        source_file = SourceFile("a.php", php("foo( 'a' )"))
        assert source_file.fixer.replace_token(5, "'b'") is False
        assert source_file.fixer.get_contents() == php("foo( 'a' )")

    def test_fixer_replaces_tokens(self):
        source_file = SourceFile("a.php", php("foo( 'a' )"), fix_mode=True)
        source_file.fixer.replace_token(2, "bar")
        source_file.fixer.replace_token(5, "'b'")
        assert source_file.fixer.fix_count == 2
        assert source_file.fixer.get_contents() == php("bar( 'b' )")

    def test_tokenize_error_propagates(self):
        with pytest.raises(LexerError):
            SourceFile("a.php", php("'open"))


class TestLintIssue:
    """Issue rendering."""

    def test_str(self):
        issue = LintIssue(Severity.ERROR, "ReplaceDomain", "Replace it", "a.php", 3, 7,
                          fixable=True, context="'old'")
        assert str(issue) == "[ERROR] ReplaceDomain a.php:3:7: Replace it (fixable)\n    'old'"

    def test_to_dict(self):
        issue = LintIssue(Severity.WARNING, "X", "m", "a.php", 1)
        assert issue.to_dict() == {
            "severity": "warning", "code": "X", "message": "m", "file": "a.php",
            "line": 1, "column": 0, "fixable": False, "context": "",
        }


class TestLinter:
    """Running rules over sources and files."""

    def test_parse_error_becomes_issue(self, linter, fixtures_dir):
        issues = linter.lint_file(fixtures_dir / "broken.php")
        assert len(issues) == 1
        assert issues[0].code == "E000"
        assert issues[0].line == 2
        assert "Unterminated string" in issues[0].message

    def test_missing_file_becomes_issue(self, linter, tmp_path):
        issues = linter.lint_file(tmp_path / "missing.php")
        assert [i.code for i in issues] == ["E000"]

    def test_clean_file(self, linter, fixtures_dir):
        assert linter.lint_file(fixtures_dir / "clean.php") == []

    def test_fix_parse_error(self, linter):
        source = php("'open")
        result = linter.fix_source(source)
        assert result.content == source
        assert [i.code for i in result.issues] == ["E000"]

    def test_fix_that_breaks_tokenizing_is_rolled_back(self):
        linter = Linter([Rewriter(BREAKS_ON_SECOND_PASS)])
        result = linter.fix_source(php("__( 'x', 'a' );"))
        assert result.content == php("__( 'x', 'b' );")
        assert result.passes == 1
        assert result.fixes == 1
        assert not result.converged
        assert [i.code for i in result.issues] == ["E000"]

    def test_default_rules_from_environment(self, monkeypatch):
        monkeypatch.setenv("WPTEXTDOMAIN_ORIGINAL", "old-domain")
        monkeypatch.setenv("WPTEXTDOMAIN_TARGET", "new-domain")
        linter = Linter()
        assert len(linter.lint_source(php("__( 'x', 'old-domain' );"))) == 1

    def test_lint_file_function(self, rule, plugin_php):
        assert len(lint_file(plugin_php, rules=[rule])) == 4


class TestFixFile:
    """Writing fixes back to disk."""

    def test_fix_file_writes(self, linter, plugin_php, tmp_path):
        path = tmp_path / "plugin.php"
        path.write_bytes(plugin_php.read_bytes())
        result = linter.fix_file(path)
        assert result.changed
        assert result.fixes == 4
        assert result.passes == 1
        assert result.converged
        assert result.issues == []
        assert path.read_text(encoding="utf-8") == result.content
        assert "old-domain'" not in result.content

    def test_dry_run_leaves_file(self, linter, plugin_php, tmp_path):
        path = tmp_path / "plugin.php"
        path.write_bytes(plugin_php.read_bytes())
        result = linter.fix_file(path, write=False)
        assert result.fixes == 4
        assert path.read_bytes() == plugin_php.read_bytes()

    def test_encoding_and_newlines_kept(self, linter, tmp_path):
        path = tmp_path / "bom.php"
        path.write_bytes(codecs.BOM_UTF8 + b"<?php\r\n__( 'x', 'old-domain' );\r\n")
        linter.fix_file(path)
        assert path.read_bytes() == codecs.BOM_UTF8 + b"<?php\r\n__( 'x', 'new-domain' );\r\n"

    def test_unchanged_file_not_rewritten(self, linter, fixtures_dir):
        result = linter.fix_file(fixtures_dir / "clean.php")
        assert not result.changed
        assert result.passes == 0

    def test_broken_fix_not_written(self, tmp_path):
        path = tmp_path / "quote.php"
        path.write_text(php("__( 'x', 'a' );"), encoding="utf-8")
        result = Linter([Rewriter(BREAKS_ON_SECOND_PASS)]).fix_file(path)
        assert not result.converged
        assert [i.code for i in result.issues] == ["E000"]
        assert path.read_text(encoding="utf-8") == php("__( 'x', 'a' );")


class TestDirectories:
    """Directory expansion."""

    def test_lint_directory(self, rule, fixtures_dir):
        results = lint_directory(fixtures_dir, rules=[rule])
        counts = {Path(name).name: len(issues) for name, issues in results.items()}
        assert counts == {"broken.php": 1, "plugin.php": 4, "template.php": 2}

    def test_iter_source_files(self, tmp_path):
        (tmp_path / "b.php").write_text("<?php", encoding="utf-8")
        (tmp_path / "a.php").write_text("<?php", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "c.php").write_text("<?php", encoding="utf-8")

        flat = [p.name for p in iter_source_files([tmp_path], recursive=False)]
        assert flat == ["a.php", "b.php"]

        deep = [p.name for p in iter_source_files([tmp_path])]
        assert deep == ["a.php", "b.php", "c.php"]

    def test_iter_source_files_keeps_explicit_files(self, tmp_path):
        path = tmp_path / "theme.inc"
        path.write_text("<?php", encoding="utf-8")
        assert list(iter_source_files([path])) == [path]
