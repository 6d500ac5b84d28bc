"""
Comment syntax helpers shared by the parser and the status rewriter.

Both sides must agree on what a "line" is, so splitting is done here: lines
keep their terminators and only "\\n" starts a new line ("\\r\\n" is kept
intact as a terminator).
"""

from datetime import datetime
from pathlib import PurePosixPath

ANNOTATION_TIME_FORMAT = "%Y-%m-%d %H:%M"

HTML_OPEN = "<!--"
HTML_CLOSE = "-->"

_PREFIX_BY_EXTENSION = {
    **dict.fromkeys(
        [".go", ".js", ".ts", ".java", ".c", ".cpp", ".cs", ".swift", ".jsx", ".tsx", ".rs", ".kt",
         ".scala"],
        "//",
    ),
    **dict.fromkeys([".py", ".sh", ".rb", ".yml", ".yaml"], "#"),
    ".sql": "--",
    **dict.fromkeys([".html", ".xml", ".vue"], HTML_OPEN),
}


def comment_prefix_for(filename: str) -> str:
    """Comment prefix for a file, by extension. Unknown extensions get '//'."""
    return _PREFIX_BY_EXTENSION.get(PurePosixPath(filename).suffix.lower(), "//")


def is_comment_line(line: str, prefix: str) -> bool:
    """True when `line` is a comment in the syntax of `prefix`."""
    line = line.strip()
    if not line:
        return False
    if prefix == HTML_OPEN:
        return HTML_OPEN in line
    return line.startswith(prefix)


def split_lines(text: str) -> list[str]:
    """Split text into lines, keeping terminators. A trailing newline adds no empty line."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def line_body(line: str) -> str:
    """The line without its terminator."""
    return line.rstrip("\r\n")


def line_ending(line: str) -> str:
    return line[len(line_body(line)):]


def strip_html_close(text: str) -> str:
    text = text.strip()
    if text.endswith(HTML_CLOSE):
        text = text[: -len(HTML_CLOSE)].rstrip()
    return text


def format_status_annotation(prefix: str, column_name: str, when: datetime, user: str) -> str:
    """
    Build a status annotation line (without terminator).

    Example:
        >>> format_status_annotation("#", "DONE", datetime(2024, 1, 2, 9, 0), "alice")
        '# DONE 2024-01-02 09:00 by alice'
    """
    body = f"{column_name} {when.strftime(ANNOTATION_TIME_FORMAT)} by {user}"
    if prefix == HTML_OPEN:
        return f"{HTML_OPEN} {body} {HTML_CLOSE}"
    return f"{prefix} {body}"
