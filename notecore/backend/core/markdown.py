"""
Markdown Utilities.

Pure text transformations applied to note content:

    sanitize_content  - neutralises unsafe link targets ([label](javascript:...))
    derive_summary    - plain-text preview stored alongside every note

Both functions are total: any string goes in, a string (or None) comes out.
The summary pipeline is order-sensitive; each rule assumes the ones above it
have already run.
"""

import re

MAX_SUMMARY_LENGTH = 200

SAFE_LINK_TARGET = "#"

# "[label](", where the label may hold one level of brackets ("[[x]](...)").
# The target runs to the matching close paren, so targets such as
# javascript:alert(eval(1)) are captured whole.
_LINK_OPEN_RE = re.compile(r"\[(?:[^\[\]]|\[[^\[\]]*\])*\]\(")

# The destination may be wrapped in angle brackets: [x](<javascript:...>).
_UNSAFE_TARGET_RE = re.compile(
    r"^\s*<?\s*(?:javascript\s*:|vbscript\s*:|data\s*:\s*text/html)",
    re.IGNORECASE,
)

# Link target with one level of nested parens: "(a(b))".
_TARGET = r"\((?:[^()]|\([^()]*\))*\)"

_SUMMARY_RULES: list[tuple[re.Pattern[str], str]] = [
    # fenced code blocks
    (re.compile(r"```[\s\S]*?```"), ""),
    # headings
    (re.compile(r"^#{1,6}\s+", re.MULTILINE), ""),
    # horizontal rules
    (re.compile(r"^[ \t]*([-*_])(?:[ \t]*\1){2,}[ \t]*$", re.MULTILINE), ""),
    # bold, italic, inline code
    (re.compile(r"\*\*(.+?)\*\*"), r"\1"),
    (re.compile(r"\*(.+?)\*"), r"\1"),
    (re.compile(r"`(.+?)`"), r"\1"),
    # images go before links, otherwise ![alt](src) leaves "!alt" behind
    (re.compile(r"!\[[^\]]*\]" + _TARGET), ""),
    (re.compile(r"\[([^\]]*)\]" + _TARGET), r"\1"),
    # blockquotes
    (re.compile(r"^[ \t]*>+[ \t]?", re.MULTILINE), ""),
    # bullet and numbered list markers
    (re.compile(r"^[ \t]*[-*+][ \t]+", re.MULTILINE), ""),
    (re.compile(r"^[ \t]*\d+\.[ \t]+", re.MULTILINE), ""),
    # blank line runs
    (re.compile(r"\n(?:[ \t]*\n)+"), "\n"),
]


def is_unsafe_link_target(target: str) -> bool:
    """Return True if a link target uses a denylisted scheme."""
    return _UNSAFE_TARGET_RE.match(target) is not None


def sanitize_content(markdown: str) -> str:
    """
    Replace unsafe markdown link targets with "#".

    The label is preserved exactly. javascript:, vbscript: and
    data:text/html targets are rewritten; data:image/..., http(s),
    mailto, tel and relative targets pass through untouched.

    Idempotent: the replacement target is itself safe.

    Every "[label](" is examined, including links nested inside another
    link's label or target, since a renderer may make the inner one live.

    Args:
        markdown: Raw markdown text

    Returns:
        Markdown with every unsafe link target neutralised
    """
    if not markdown:
        return markdown

    unsafe: list[tuple[int, int]] = []
    search_from = 0
    while True:
        match = _LINK_OPEN_RE.search(markdown, search_from)
        if match is None:
            break
        search_from = match.start() + 1
        target_start = match.end()
        target_end = _find_target_end(markdown, target_start)
        if target_end is None:
            continue
        if is_unsafe_link_target(markdown[target_start:target_end]):
            unsafe.append((target_start, target_end))

    pieces: list[str] = []
    position = 0
    for target_start, target_end in sorted(unsafe):
        if target_start < position:
            # Inside a target that is already replaced.
            continue
        pieces.append(markdown[position:target_start])
        pieces.append(SAFE_LINK_TARGET)
        position = target_end

    pieces.append(markdown[position:])
    return "".join(pieces)


def _find_target_end(text: str, start: int) -> int | None:
    """Index of the paren closing a link target that starts at `start`."""
    depth = 1
    for index in range(start, len(text)):
        char = text[index]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return index
    return None


def derive_summary(
    content: str | None,
    max_length: int = MAX_SUMMARY_LENGTH,
) -> str | None:
    """
    Derive a plain-text summary from markdown content.

    Args:
        content: Markdown content (may be None)
        max_length: Maximum summary length in characters

    Returns:
        Plain text truncated to max_length, or None when nothing
        readable is left after stripping markup
    """
    if not content or not content.strip():
        return None

    plain = content
    for pattern, replacement in _SUMMARY_RULES:
        plain = pattern.sub(replacement, plain)
    plain = plain.strip()

    if not plain:
        return None
    return plain[:max_length]
