SCHEMA_VERSION = "1.0.0"
SCHEMA_FILE_NAME = "schema.json"
TYPES_FILE_NAME = "types.d.ts"

MARKER_ATTRIBUTE = "data-reverso"
MARKER_PREFIX = "data-reverso-"

# Modifier names recognized after ``data-reverso-``; anything else is ignored.
MODIFIER_NAMES: frozenset[str] = frozenset(
    {
        "type",
        "label",
        "placeholder",
        "required",
        "validation",
        "options",
        "condition",
        "default",
        "help",
        "min",
        "max",
        "step",
        "accept",
        "multiple",
        "rows",
        "width",
        "readonly",
        "hidden",
    }
)

NUMERIC_MODIFIERS: frozenset[str] = frozenset({"min", "max", "step", "rows", "width"})
BOOLEAN_MODIFIERS: frozenset[str] = frozenset({"required", "multiple", "readonly", "hidden"})

REPEATER_PLACEHOLDER = "$"
PATH_SEPARATOR = "."

DEFAULT_FIELD_TYPE = "text"
DEFAULT_LOCALE = "default"

DEFAULT_SRC_DIR = "src"
DEFAULT_OUTPUT_DIR = ".reverso"
DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///.reverso/reverso.db"
DEFAULT_WATCH_DEBOUNCE_MS = 300

DEFAULT_INCLUDE_PATTERNS: tuple[str, ...] = ("**/*.tsx", "**/*.jsx", "**/*.html")
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "**/node_modules/**",
    "**/.next/**",
    "**/dist/**",
    "**/build/**",
    "**/.reverso/**",
    "**/*.test.tsx",
    "**/*.test.jsx",
    "**/*.spec.tsx",
    "**/*.spec.jsx",
    "**/*.stories.tsx",
    "**/*.stories.jsx",
)
