"""Configuration constants.

Values that are part of the identifier format or of Jest's own behaviour and
therefore must not be user-configurable. For configurable values, see models.py.
"""

# =============================================================================
# Test Identifiers
# =============================================================================
# A node id is the concatenation of its path segments joined by these tokens.
# None of them is a substring of another; names containing a token are not
# escaped and may decode ambiguously.

ROOT_ID = "root"
"""Id of the workspace root node and the "run everything" request."""

PROJECT_ID_SEPARATOR = "::project::"
"""Separates the project id from the file path."""

DESCRIBE_ID_SEPARATOR = "::describe::"
"""Precedes each describe block name."""

TEST_ID_SEPARATOR = "::test::"
"""Precedes the test name."""

# =============================================================================
# Jest Defaults
# =============================================================================

DEFAULT_TEST_MATCH: tuple[str, ...] = (
    "**/__tests__/**/*.[jt]s?(x)",
    "**/?(*.)+(spec|test).[jt]s?(x)",
)
"""Jest's built-in testMatch when a project sets neither testMatch nor testRegex."""

DEFAULT_TEST_PATH_IGNORE_PATTERNS: tuple[str, ...] = ("/node_modules/",)
"""Jest's built-in testPathIgnorePatterns."""

JEST_CONFIG_FILES: tuple[str, ...] = (
    "jest.config.js",
    "jest.config.ts",
    "jest.config.mjs",
    "jest.config.cjs",
    "jest.config.json",
)
"""Config files whose presence marks a standard Jest project."""

# =============================================================================
# Display
# =============================================================================

PARSE_ERROR_TOOLTIP = (
    "Error parsing test file.  This may not be an issue with your code, "
    "but check the extension logs for details."
)
"""Tooltip attached to suites projected from files that failed to parse."""
