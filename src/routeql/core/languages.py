from pathlib import Path

_SCRIPT_LANGUAGE_ALIASES = {
    "javascript": "javascript",
    "js": "javascript",
    "jsx": "javascript",
    "mjs": "javascript",
    "ts": "typescript",
    "typescript": "typescript",
}

_EXTENSION_LANGUAGE_MAP = {
    ".cjs": "javascript",
    ".gql": "graphql",
    ".graphql": "graphql",
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".mts": "typescript",
    ".svelte": "svelte",
    ".ts": "typescript",
}

_SCRIPT_LANGUAGES = {"javascript", "typescript"}


def normalize_script_language(language: str | None) -> str:
    """Map a ``<script lang>`` value (or file language) to a parser language."""
    if not language:
        return "javascript"
    normalized = language.strip().lower()
    resolved = _SCRIPT_LANGUAGE_ALIASES.get(normalized, normalized)
    if resolved not in _SCRIPT_LANGUAGES:
        raise ValueError(f"Unsupported script language '{language}'. Supported: {sorted(_SCRIPT_LANGUAGES)}")
    return resolved


def detect_language_from_path(file_path: Path) -> str:
    suffix = file_path.suffix.lower()
    if suffix in _EXTENSION_LANGUAGE_MAP:
        return _EXTENSION_LANGUAGE_MAP[suffix]
    raise ValueError(f"Unsupported file extension: {suffix}")


def is_supported_path(file_path: Path) -> bool:
    return file_path.suffix.lower() in _EXTENSION_LANGUAGE_MAP
