"""
CLI entry point for wptextdomain.

Usage:
    wptextdomain lint <path>... --from OLD --to NEW     Report translation calls using OLD
    wptextdomain fix <path>... --from OLD --to NEW      Rewrite OLD to NEW in place
    wptextdomain tokens <file>                          Dump the token stream of a file

--from/--to default to $WPTEXTDOMAIN_ORIGINAL / $WPTEXTDOMAIN_TARGET.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _build_linter(args):
    """Linter for the --from/--to domains, or None if they are not usable."""
    from .config import ConfigError, TextDomainConfig
    from .tools.lint import Linter
    from .tools.text_domain import TextDomainRule

    try:
        config = TextDomainConfig.from_env().with_overrides(args.original, args.target)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None
    if not config.enabled:
        print("Warning: no target text domain set, nothing to do", file=sys.stderr)
    return Linter([TextDomainRule(config)])


def _collect_files(args):
    """Resolve the path arguments, or None if any of them is missing."""
    from .tools.lint import iter_source_files

    missing = [p for p in args.paths if not p.exists()]
    for path in missing:
        print(f"Error: {path} not found", file=sys.stderr)
    if missing:
        return None
    return list(iter_source_files(args.paths, args.pattern, args.recursive))


def cmd_lint(args):
    """Lint files for text domains to replace."""
    linter = _build_linter(args)
    files = _collect_files(args)
    if linter is None or files is None:
        return 1

    all_issues = []
    for file_path in files:
        all_issues.extend(linter.lint_file(file_path))

    if args.json:
        print(json.dumps([i.to_dict() for i in all_issues], indent=2))
    else:
        for issue in all_issues:
            print(issue)
        if all_issues:
            print(f"\n{len(all_issues)} issues found in {len(files)} files")
        else:
            print("No issues found")

    return 1 if all_issues else 0


def cmd_fix(args):
    """Rewrite text domains in place."""
    from .tools.lint import PARSE_ERROR

    linter = _build_linter(args)
    files = _collect_files(args)
    if linter is None or files is None:
        return 1

    failed = False
    total_fixes = 0
    for file_path in files:
        result = linter.fix_file(file_path, write=not args.dry_run)
        broken = any(issue.code == PARSE_ERROR for issue in result.issues)
        if result.changed and not broken:
            total_fixes += result.fixes
            verb = "Would fix" if args.dry_run else "Fixed"
            print(f"{verb}: {file_path} ({result.fixes} replacements)")
        if not result.converged:
            print(f"Error: {file_path}: fixes did not converge", file=sys.stderr)
            failed = True
        for issue in result.issues:
            print(issue, file=sys.stderr)
            failed = True

    print(f"{total_fixes} replacements in {len(files)} files")
    return 1 if failed else 0


def cmd_tokens(args):
    """Dump the token stream of a PHP file."""
    from .parser import LexerError, tokenize_file

    try:
        tokens = tokenize_file(str(args.file), include_trivia=not args.no_trivia)
    except LexerError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for position, token in enumerate(tokens):
        print(f"{position:6d}  {token!r}")
    return 0


def _add_domain_args(sub):
    sub.add_argument('paths', nargs='+', type=Path, help='Files or directories')
    sub.add_argument('--from', dest='original', help='Text domain to replace')
    sub.add_argument('--to', dest='target', help='Replacement text domain')
    sub.add_argument('-p', '--pattern', default='*.php',
                     help='File pattern inside directories (default: *.php)')
    sub.add_argument('-r', '--recursive', action='store_true',
                     help='Recurse into subdirectories')


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Rewrite WordPress translation text domains",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    wptextdomain lint my-plugin/ -r --from old-domain --to new-domain
    wptextdomain fix my-plugin/includes/class-admin.php --from old-domain --to new-domain
    wptextdomain tokens my-plugin/my-plugin.php
"""
    )
    parser.add_argument('--version', action='version', version=f'wptextdomain {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # lint
    lint_p = subparsers.add_parser('lint', help='Report text domains to replace')
    _add_domain_args(lint_p)
    lint_p.add_argument('--json', action='store_true', help='Output as JSON')
    lint_p.set_defaults(func=cmd_lint)

    # fix
    fix_p = subparsers.add_parser('fix', help='Replace text domains in place')
    _add_domain_args(fix_p)
    fix_p.add_argument('-n', '--dry-run', action='store_true',
                       help='Report what would change without writing')
    fix_p.set_defaults(func=cmd_fix)

    # tokens
    tokens_p = subparsers.add_parser('tokens', help='Dump the token stream of a file')
    tokens_p.add_argument('file', type=Path, help='PHP file')
    tokens_p.add_argument('--no-trivia', action='store_true',
                          help='Leave out whitespace and comments')
    tokens_p.set_defaults(func=cmd_tokens)

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
