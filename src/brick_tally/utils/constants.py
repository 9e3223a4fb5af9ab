"""Application-wide constants."""

APP_NAME = "Brick-Tally"
APP_VERSION = "1.0.0"
APP_ORGANIZATION = "Brick-Tally"

# Grouping modes (the active mode is also the sort mode)
GROUP_BY_COLOR = "color"
GROUP_BY_CATEGORY = "category"
GROUP_BY_STATUS = "status"
GROUP_MODES = [GROUP_BY_COLOR, GROUP_BY_CATEGORY, GROUP_BY_STATUS]

GROUP_MODE_LABELS = {
    GROUP_BY_COLOR: "Color",
    GROUP_BY_CATEGORY: "Category",
    GROUP_BY_STATUS: "Status",
}

# Filters
FILTER_ALL = "all"
FILTER_IN_PROGRESS = "in-progress"   # some found, not yet complete
FILTER_FOUND = "found"               # some found, complete included
FILTER_NOT_FOUND = "not-found"       # incomplete
FILTER_COMPLETE = "complete"
FILTER_MODES = [
    FILTER_ALL,
    FILTER_NOT_FOUND,
    FILTER_IN_PROGRESS,
    FILTER_FOUND,
    FILTER_COMPLETE,
]

FILTER_LABELS = {
    FILTER_ALL: "All",
    FILTER_NOT_FOUND: "Not Complete",
    FILTER_IN_PROGRESS: "In Progress",
    FILTER_FOUND: "Any Found",
    FILTER_COMPLETE: "Complete",
}

# Fallback bucket for parts without a catalog category
OTHER_CATEGORY = "Other"

# Status group keys/labels
STATUS_COMPLETE = "complete"
STATUS_INCOMPLETE = "incomplete"
STATUS_LABELS = {
    STATUS_COMPLETE: "Complete",
    STATUS_INCOMPLETE: "Incomplete",
}

# Collapse-state key for the spare parts section
SPARES_GROUP = "__spares__"
SPARES_LABEL = "Spare Parts"

# Window geometry
DEFAULT_WINDOW_WIDTH = 900
DEFAULT_WINDOW_HEIGHT = 760
MIN_WINDOW_WIDTH = 520
MIN_WINDOW_HEIGHT = 480
