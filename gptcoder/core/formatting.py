# gptcoder/core/formatting.py
from pathlib import PurePosixPath

# Extension -> editor language id (Monaco naming)
_LANGUAGE_BY_EXTENSION = {
    ".py": "python", ".pyi": "python",
    ".js": "javascript", ".jsx": "javascript", ".mjs": "javascript", ".cjs": "javascript",
    ".ts": "typescript", ".tsx": "typescript",
    ".json": "json",
    ".html": "html", ".htm": "html",
    ".css": "css", ".scss": "scss", ".less": "less",
    ".md": "markdown", ".markdown": "markdown",
    ".yml": "yaml", ".yaml": "yaml",
    ".xml": "xml", ".svg": "xml",
    ".java": "java", ".kt": "kotlin", ".scala": "scala",
    ".c": "c", ".h": "c",
    ".cpp": "cpp", ".cc": "cpp", ".cxx": "cpp", ".hpp": "cpp",
    ".cs": "csharp",
    ".go": "go",
    ".rs": "rust",
    ".rb": "ruby",
    ".php": "php",
    ".swift": "swift",
    ".sh": "shell", ".bash": "shell", ".zsh": "shell",
    ".ps1": "powershell",
    ".sql": "sql",
    ".lua": "lua",
    ".r": "r",
    ".dart": "dart",
    ".graphql": "graphql", ".gql": "graphql",
    ".ini": "ini", ".cfg": "ini", ".toml": "ini",
}

# Files recognised by their full name rather than extension
_LANGUAGE_BY_NAME = {
    "dockerfile": "dockerfile",
    "makefile": "makefile",
}


def language_from_filename(name: str) -> str:
    """Returns the syntax highlighting hint for a file name, 'plaintext' if unknown."""
    lowered = name.lower()
    if lowered in _LANGUAGE_BY_NAME:
        return _LANGUAGE_BY_NAME[lowered]
    return _LANGUAGE_BY_EXTENSION.get(PurePosixPath(lowered).suffix, "plaintext")


def number_with_commas(value: int) -> str:
    return f"{value:,}"
