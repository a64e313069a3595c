"""taskpack constants."""

# Roles accepted by role targets (subset of ARIA roles Playwright resolves).
ARIA_ROLES = (
    "button",
    "checkbox",
    "combobox",
    "dialog",
    "gridcell",
    "link",
    "listbox",
    "menuitem",
    "option",
    "radio",
    "searchbox",
    "slider",
    "switch",
    "tab",
    "tabpanel",
    "textbox",
    "treeitem",
    "article",
    "banner",
    "complementary",
    "contentinfo",
    "form",
    "main",
    "navigation",
    "region",
    "search",
    "alert",
    "log",
    "marquee",
    "status",
    "timer",
)

EXTRACTION_STEP_TYPES = frozenset({"extract_title", "extract_text", "extract_attribute"})

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_MAX_CONCURRENCY = 4

RESULT_KEY_LENGTH = 16

# Environment variable names
ENV_PREFIX = "TASKPACK_"
PROXY_USERNAME_ENV = "TASKPACK_PROXY_USERNAME"
PROXY_PASSWORD_ENV = "TASKPACK_PROXY_PASSWORD"
PROXY_PROVIDER_ENV = "TASKPACK_PROXY_PROVIDER"
