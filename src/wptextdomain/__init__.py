"""
wptextdomain - WordPress Text Domain Rewriter

A PHP lint rule that finds translation calls (__(), _e(), esc_html__(), ...)
whose text domain is a configured source value and rewrites it to a target
value.
"""

__version__ = "0.1.0"
__author__ = "wptextdomain contributors"

from wptextdomain.config import TextDomainConfig
from wptextdomain.tools.lint import Linter, LintIssue
from wptextdomain.tools.text_domain import TextDomainRule
