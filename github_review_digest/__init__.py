"""
GitHub Review Digest

Command line tools and a small API that condense recent pull request review
comments for coding assistants and assemble release contributor lists.
"""

__version__ = "1.0.0"
__author__ = "Development Team"
__email__ = "dev@example.com"
