"""Artifact kinds scanned by unslop."""

from enum import Enum


class ArtifactKind(Enum):
    """Content role of a scan target. Declaration order is partition order."""

    PROSE = "prose"
    CODE = "code"
    METADATA = "metadata"


PROSE_EXTENSIONS = {".md", ".mdx", ".rst", ".txt", ".adoc"}

# Comment markers per code extension; also defines which code files are scanned
COMMENT_MARKERS: dict[str, tuple[str, ...]] = {
    ".py": ("#",),
    ".rb": ("#",),
    ".sh": ("#",),
    ".yaml": ("#",),
    ".yml": ("#",),
    ".toml": ("#",),
    ".js": ("//", "/*", "*"),
    ".jsx": ("//", "/*", "*"),
    ".ts": ("//", "/*", "*"),
    ".tsx": ("//", "/*", "*"),
    ".java": ("//", "/*", "*"),
    ".go": ("//", "/*", "*"),
    ".rs": ("///", "//!", "//", "/*", "*"),
    ".c": ("//", "/*", "*"),
    ".h": ("//", "/*", "*"),
    ".cpp": ("//", "/*", "*"),
}
