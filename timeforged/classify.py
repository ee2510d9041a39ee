"""Path classification: ignore filter and language inference."""
from __future__ import annotations

import fnmatch
from pathlib import PurePath
from typing import Iterable, Optional

IGNORED_DIRS = frozenset({
    ".git",
    "node_modules",
    "target",
    "__pycache__",
    ".venv",
    "venv",
    ".idea",
    ".vscode",
    "dist",
    "build",
    ".next",
    ".nuxt",
})

IGNORED_EXTENSIONS = frozenset({
    "lock", "exe", "dll", "so", "dylib", "o", "a", "pyc", "pyo", "class", "wasm",
})

# Exact file names win over extensions (dotfiles, extensionless build files).
FILENAME_LANGUAGES = {
    ".gitignore": "Git Config",
    ".gitattributes": "Git Config",
    ".gitmodules": "Git Config",
    "Dockerfile": "Docker",
    "Containerfile": "Docker",
    "Makefile": "Makefile",
    "GNUmakefile": "Makefile",
    "Justfile": "Just",
    "justfile": "Just",
    ".env": "Env",
    ".env.local": "Env",
    ".env.production": "Env",
    "Cargo.toml": "TOML",
    "Cargo.lock": "TOML",
    "package.json": "JSON",
    "tsconfig.json": "JSON",
}

EXTENSION_LANGUAGES = {
    "rs": "Rust",
    "py": "Python",
    "js": "JavaScript",
    "jsx": "JavaScript",
    "ts": "TypeScript",
    "tsx": "TypeScript",
    "go": "Go",
    "java": "Java",
    "kt": "Kotlin",
    "rb": "Ruby",
    "c": "C",
    "h": "C",
    "cpp": "C++",
    "cc": "C++",
    "cxx": "C++",
    "hpp": "C++",
    "cs": "C#",
    "swift": "Swift",
    "php": "PHP",
    "lua": "Lua",
    "zig": "Zig",
    "vue": "Vue",
    "svelte": "Svelte",
    "html": "HTML",
    "htm": "HTML",
    "css": "CSS",
    "scss": "CSS",
    "sass": "CSS",
    "less": "CSS",
    "sql": "SQL",
    "sh": "Shell",
    "bash": "Shell",
    "zsh": "Shell",
    "toml": "TOML",
    "yaml": "YAML",
    "yml": "YAML",
    "json": "JSON",
    "jsonc": "JSON",
    "md": "Markdown",
    "markdown": "Markdown",
    "xml": "XML",
    "svg": "XML",
    "graphql": "GraphQL",
    "gql": "GraphQL",
    "proto": "Protobuf",
    "dockerfile": "Docker",
    "tf": "Terraform",
    "hcl": "Terraform",
    "r": "R",
    "dart": "Dart",
    "scala": "Scala",
    "ex": "Elixir",
    "exs": "Elixir",
    "hs": "Haskell",
    "ml": "OCaml",
    "mli": "OCaml",
    "nix": "Nix",
    "vim": "Vim Script",
    "el": "Emacs Lisp",
}


def _extension(name: str) -> str:
    suffix = PurePath(name).suffix
    return suffix[1:].lower() if suffix else ""


def is_ignored_path(path: str | PurePath, extra_patterns: Iterable[str] = ()) -> bool:
    """Return True for paths inside build/VCS/dependency dirs or binary/lock files."""
    parts = PurePath(path).parts
    patterns = tuple(extra_patterns)
    for part in parts:
        if part in IGNORED_DIRS:
            return True
        if patterns and any(fnmatch.fnmatchcase(part, pattern) for pattern in patterns):
            return True

    if parts and _extension(parts[-1]) in IGNORED_EXTENSIONS:
        return True
    return False


def infer_language_from_path(entity: str) -> Optional[str]:
    """Map a file path to a language label, or None when unrecognized."""
    name = PurePath(entity).name
    if not name:
        return None
    if name in FILENAME_LANGUAGES:
        return FILENAME_LANGUAGES[name]
    return EXTENSION_LANGUAGES.get(_extension(name))
