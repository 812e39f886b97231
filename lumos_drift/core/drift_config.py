"""Default configuration values for drift checks."""

DEFAULT_SCHEMA_GLOBS = ["**/*.lumos"]
DEFAULT_IGNORED_PATTERNS = ["**/node_modules/**", "**/target/**", "**/.git/**"]
DEFAULT_FAIL_ON_DRIFT = True
DEFAULT_PULL_REQUEST_ONLY = False
DEFAULT_STRICT_BRANCHES = ["main", "master"]
DEFAULT_OVERRIDE_LABELS = ["drift-override"]
DEFAULT_GENERATOR_COMMAND = ["lumos", "generate", "{schema}", "--output", "{output_dir}"]
DEFAULT_GENERATION_TIMEOUT_SECONDS = 120.0
DEFAULT_ARTIFACT_NAMES = {
    "rust": "generated.rs",
    "typescript": "generated.ts",
}
DEFAULT_COMMITTED_PATH_TEMPLATE = "{schema_dir}/{artifact}"
DEFAULT_MAX_WORKERS = 4
DEFAULT_DIFF_CONTEXT_LINES = 3
