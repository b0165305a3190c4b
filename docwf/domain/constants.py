# Configuration
CONFIG_DIRNAME = ".docwf"
CONFIG_FILENAME = "config.yml"
DOCUMENT_TEMP_SUFFIX = ".md.tmp"

# Potential-tasks marker block
POTENTIAL_TASKS_START = "<!-- AI: potential-tasks start -->"
POTENTIAL_TASKS_END = "<!-- AI: potential-tasks end -->"
POTENTIAL_TASKS_HEADING = "#### Potential tasks (AI-generated)"

# Section headings written by appliers
FUTURE_TASKS_HEADING = "## Potential Future Tasks"
COMPLETED_WORK_HEADING = "## Completed Work"
STANDALONE_ARCHIVE_HEADING = "### Completed Tasks"
VERTICAL_SLICES_HEADING = "## Vertical Slices"
NOW_HEADING = "## Now"
NEXT_HEADING = "## Next"
LATER_HEADING = "## Later"

# Log context recovery
CONTEXT_LOOKBACK_LINES = 50
LARGE_LOG_THRESHOLD = 15000

# Text matching windows used when locating tasks by their text
COMPLETION_MATCH_CHARS = 50
ALREADY_COMPLETED_MATCH_CHARS = 30
PROMOTION_MATCH_CHARS = 40

DEFAULT_COMMIT_LIMIT = 20
