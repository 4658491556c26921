"""
Event types written by builders and the synthesis guard.
"""

FACET_BUILT = "facet_built"
CLASS_REUSED = "class_reused"
DEPENDENCY_LOADED = "dependency_loaded"
CLASS_CREATED = "class_created"
CONFIG_STRIPPED = "config_stripped"
FRAMEWORK_ACTIVATED = "framework_activated"
CLASS_ROLLED_BACK = "class_rolled_back"
CONFIG_APPLIED = "config_applied"
SETUP_RUN = "setup_run"
SETUP_SKIPPED = "setup_skipped"
ERROR = "error"

ALL_EVENT_TYPES = (
    FACET_BUILT,
    CLASS_REUSED,
    DEPENDENCY_LOADED,
    CLASS_CREATED,
    CONFIG_STRIPPED,
    FRAMEWORK_ACTIVATED,
    CLASS_ROLLED_BACK,
    CONFIG_APPLIED,
    SETUP_RUN,
    SETUP_SKIPPED,
    ERROR,
)
