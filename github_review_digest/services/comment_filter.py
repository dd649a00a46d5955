"""Reduce bot-generated review comments to their actionable text.

Review bots wrap each finding in collapsible HTML sections, severity badges,
fingerprint comments and review metadata. The functions here strip that
boilerplate so only the finding itself (and any proposed fix) is left.
"""

import html
import re

from github_review_digest.utils import get_logger

logger = get_logger(__name__)

PRIORITY_NORMAL = "normal"

# Checked in order; a later match overrides an earlier one.
_PRIORITY_MARKERS = (
    ("_⚠️", "high"),
    ("_🧹", "low"),
    ("_🔵", "trivial"),
    ("_♻️", "duplicate"),
)

_ADDRESSED = re.compile(r"Addressed in commit|✅ Addressed", re.IGNORECASE)
_CONFIRMATION = re.compile(
    r"LGTM|All.*issues.*addressed|comments not posted|no issues found",
    re.IGNORECASE,
)
_OUTSIDE_DIFF_MARKER = re.compile(r"Outside diff range", re.IGNORECASE)

# **path/to/file.ext:12-18**: **Title** followed by the finding text
_OUTSIDE_DIFF_HEADER = r"\*\*[^:*\n]+:\d+(?:-\d+)?\*\*:"
_OUTSIDE_DIFF_ITEM = re.compile(
    r"\*\*(?P<file>[^:*\n]+):(?P<lines>\d+(?:-\d+)?)\*\*:\s*\*\*(?P<title>.+?)\*\*\s*\n"
    r"(?P<content>.*?)(?=" + _OUTSIDE_DIFF_HEADER + r"|\Z)",
    re.DOTALL,
)

_HTML_TAG = re.compile(r"<[^>]+>")
_QUOTE_MARKER = re.compile(r"^>[ \t]?", re.MULTILINE)
_EXCESS_NEWLINES = re.compile(r"\n{3,}")

# (pattern, replacement, count) applied in order; count 0 means all matches
_BODY_RULES = (
    # Analysis chain blocks hold the scripts the bot ran
    (re.compile(r"<details>\s*<summary>🧩 Analysis chain</summary>.*?</details>", re.DOTALL), "", 0),
    (re.compile(r"<details>\s*<summary>🤖 Prompt for AI Agents</summary>.*?</details>", re.DOTALL), "", 0),
    # Review details run to the end of the body
    (re.compile(r"<details>\s*<summary>📜 Review details</summary>.*", re.DOTALL), "", 0),
    # Outside diff findings live in the CAUTION blockquote and are extracted separately
    (re.compile(r">\s*\[!CAUTION\].*?>\s*</blockquote></details>\s*\n*", re.DOTALL), "", 0),
    # Leading badge of any emoji, e.g. "_🧹 Nitpick_ | _🔵 Trivial_" or "_♻️ Duplicate comment_ | ..."
    (re.compile(r"\A_[^\w\s_][^_]*_\s*\|\s*_[^_]+_\s*\n+"), "", 1),
    (re.compile(r"<!--.*?-->", re.DOTALL), "", 0),
    # Keep proposed fixes, dropping only the collapsible wrapper
    (re.compile(r"<details>\s*<summary>(🔎[^<]*)</summary>\s*"), r"\1\n", 0),
    (re.compile(r"</details>"), "", 0),
    (re.compile(r"</?(?:blockquote|summary)>"), "", 0),
    (re.compile(r"<details>"), "", 0),
    (re.compile(r"^\*\*Actionable comments posted: \d+\*\*\s*\n*", re.MULTILINE), "", 1),
    (re.compile(r"^>[ \t]*$", re.MULTILINE), "", 0),
    (re.compile(r"^>[ \t]+", re.MULTILINE), "", 0),
    (_EXCESS_NEWLINES, "\n\n", 0),
)

_METADATA_LINE = re.compile(
    r"^\*\*(?:Configuration|Review profile|Plan|Knowledge base|Context|Commits|Files|Additional comments)",
)


def is_addressed(body: str) -> bool:
    """Whether the comment says it was resolved by a later commit."""
    return bool(_ADDRESSED.search(body))


def is_confirmation(body: str) -> bool:
    """Whether the comment is an approval or an "all clear" notice."""
    return bool(_CONFIRMATION.search(body))


def should_skip(body: str) -> bool:
    """Whether the comment carries nothing left to act on."""
    return is_addressed(body) or is_confirmation(body)


def detect_priority(body: str) -> str:
    """Map the severity badge that opens a line of the comment to a priority."""
    priority = PRIORITY_NORMAL
    lines = body.splitlines()
    for marker, label in _PRIORITY_MARKERS:
        if any(line.startswith(marker) for line in lines):
            priority = label
    return priority


def _clean_fragment(text: str) -> str:
    text = _HTML_TAG.sub("", text)
    text = _QUOTE_MARKER.sub("", text)
    text = text.replace("&nbsp;", " ")
    text = html.unescape(text)
    text = _EXCESS_NEWLINES.sub("\n\n", text)
    return text.strip()


def extract_outside_diff(body: str) -> str:
    """Pull findings posted outside the diff range out of a review body.

    Args:
    ----
        body: Raw review body

    Returns:
    -------
        "Outside diff comments:" followed by one ``file:lines``/title/text
        block per finding, or an empty string when there are none

    """
    if not _OUTSIDE_DIFF_MARKER.search(body):
        return ""

    blocks = []
    for match in _OUTSIDE_DIFF_ITEM.finditer(body):
        content = _clean_fragment(match.group("content"))
        blocks.append(f"{match.group('file').strip()}:{match.group('lines')}\n{match.group('title')}\n{content}")

    if not blocks:
        return ""

    return "Outside diff comments:\n" + "\n\n".join(blocks)


def strip_boilerplate(body: str) -> str:
    """Apply the boilerplate rules and drop review metadata lines."""
    text = body
    for pattern, replacement, count in _BODY_RULES:
        text = pattern.sub(replacement, text, count=count)
    text = text.strip()

    lines = [line for line in text.split("\n") if not _METADATA_LINE.match(line)]
    return "\n".join(lines).strip()


def filter_body(body: str) -> str:
    """Reduce a comment body to its actionable text.

    Findings outside the diff range are appended after the remaining text, or
    returned alone when nothing else survives the filtering.
    """
    outside_content = extract_outside_diff(body)
    filtered = strip_boilerplate(body)

    if not filtered.strip():
        return outside_content

    if outside_content:
        return f"{filtered}\n\n{outside_content}"

    return filtered


def truncate_body(text: str, max_lines: int = 30, max_chars: int = 2500) -> str:
    """Cap a filtered body at ``max_lines`` lines and ``max_chars`` characters.

    An ellipsis is appended when the character cap is reached.
    """
    text = "\n".join(text.split("\n")[:max_lines])
    if len(text) >= max_chars:
        text = text[:max_chars] + "..."
    return text.strip()


def clean_comment(body: str | None, max_lines: int = 30, max_chars: int = 2500) -> str | None:
    """Filter a comment body, returning None when nothing actionable remains."""
    if not body:
        return None

    if should_skip(body):
        logger.debug("Skipping addressed or confirmation comment")
        return None

    cleaned = truncate_body(filter_body(body), max_lines, max_chars)
    return cleaned or None
