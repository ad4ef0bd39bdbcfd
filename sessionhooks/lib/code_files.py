"""Recognized source-code file extensions."""

from pathlib import PurePath

CODE_EXTENSIONS = frozenset({
    # JavaScript / TypeScript
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    # Structured config
    ".json", ".yml", ".yaml", ".toml",
    # Web
    ".css", ".scss", ".sass", ".less", ".html", ".vue", ".svelte",
    # Systems
    ".go", ".rs", ".c", ".h", ".cpp", ".cc", ".cxx", ".hpp",
    # JVM / .NET / Apple
    ".java", ".kt", ".kts", ".scala", ".clj", ".cs", ".fs", ".swift", ".m", ".mm",
    # Scripting
    ".py", ".rb", ".php", ".lua", ".hs",
    # Shell
    ".sh", ".bash",
})


def has_code_extension(file_path: str) -> bool:
    """True if the path's extension (case-insensitive) is a code extension."""
    suffix = PurePath(file_path).suffix.lower()
    return bool(suffix) and suffix in CODE_EXTENSIONS
