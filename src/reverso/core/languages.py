from pathlib import Path

_LANGUAGE_ALIASES = {
    "htm": "html",
    "html": "html",
    "javascript": "javascript",
    "js": "javascript",
    "jsx": "javascript",
    "tsx": "tsx",
    "typescriptreact": "tsx",
}

# JSX is part of the javascript grammar; plain .ts cannot contain markup.
_EXTENSION_LANGUAGE_MAP = {
    ".htm": "html",
    ".html": "html",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".tsx": "tsx",
}

_SUPPORTED_LANGUAGES = frozenset(_EXTENSION_LANGUAGE_MAP.values())

SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(_EXTENSION_LANGUAGE_MAP)


def normalize_language(language: str) -> str:
    normalized = language.strip().lower()
    resolved = _LANGUAGE_ALIASES.get(normalized, normalized)
    if resolved not in _SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language '{language}'. Supported: {sorted(_SUPPORTED_LANGUAGES)}")
    return resolved


def detect_language_from_path(file_path: Path) -> str:
    suffix = file_path.suffix.lower()
    if suffix in _EXTENSION_LANGUAGE_MAP:
        return _EXTENSION_LANGUAGE_MAP[suffix]
    raise ValueError(f"Unsupported file extension: {suffix}")


def resolve_language(language: str | None, file_path: Path | None) -> str:
    if language:
        return normalize_language(language)
    if file_path:
        return detect_language_from_path(file_path)
    raise ValueError("Language must be provided when no file path is available.")


def is_supported_file(path: Path) -> bool:
    return path.suffix.lower() in SUPPORTED_EXTENSIONS
