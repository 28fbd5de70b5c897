"""Recognised languages — the extension table the analysis scripts share."""

from __future__ import annotations

# extension -> (label, counts lines)
EXTENSIONS: dict[str, tuple[str, bool]] = {
    "js": ("JavaScript", True),
    "ts": ("TypeScript", True),
    "tsx": ("TypeScript/React", True),
    "jsx": ("JavaScript/React", True),
    "py": ("Python", True),
    "java": ("Java", True),
    "cs": ("C#", True),
    "cpp": ("C++", True),
    "c": ("C", True),
    "h": ("C/C++ Header", True),
    "php": ("PHP", True),
    "rb": ("Ruby", True),
    "go": ("Go", True),
    "rs": ("Rust", True),
    "swift": ("Swift", True),
    "kt": ("Kotlin", True),
    "scala": ("Scala", True),
    "r": ("R", True),
    "pl": ("Perl", True),
    "sh": ("Shell", True),
    "bash": ("Bash", True),
    "sql": ("SQL", True),
    "html": ("HTML", False),
    "htm": ("HTML", False),
    "css": ("CSS", False),
    "scss": ("SCSS", False),
    "sass": ("Sass", False),
    "less": ("Less", False),
    "json": ("JSON", False),
    "xml": ("XML", False),
    "yaml": ("YAML", False),
    "yml": ("YAML", False),
    "toml": ("TOML", False),
    "md": ("Markdown", False),
    "tex": ("LaTeX", False),
    "vue": ("Vue", False),
    "lua": ("Lua", False),
    "dart": ("Dart", False),
    "groovy": ("Groovy", False),
    "m": ("Objective-C", False),
    "mm": ("Objective-C++", False),
    "clj": ("Clojure", False),
    "ex": ("Elixir", False),
    "erl": ("Erlang", False),
    "hx": ("Haxe", False),
    "zig": ("Zig", False),
    "vb": ("Visual Basic", False),
    "gradle": ("Gradle", False),
    "tf": ("Terraform", False),
}

LABELS: frozenset[str] = frozenset(label for label, _ in EXTENSIONS.values())

LINE_COUNTED_LABELS: frozenset[str] = frozenset(
    label for label, counts_lines in EXTENSIONS.values() if counts_lines
)


def language_for(path: str) -> str | None:
    """Return the label for *path*'s extension, or ``None`` if unrecognised."""
    _, dot, ext = path.rpartition(".")
    if not dot:
        return None
    entry = EXTENSIONS.get(ext.lower())
    return entry[0] if entry else None


def counts_lines(label: str) -> bool:
    return label in LINE_COUNTED_LABELS
