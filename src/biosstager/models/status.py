"""Status enums for a staging session."""

from enum import Enum


class SessionStage(str, Enum):
    """Staging session stages.

    State transitions:
    init → identify_board → read_current_version → query_catalog → compare_versions
                                                                        ↓
                          up_to_date ←──────────────────────────────────┤
                                                                        ↓
                                     resolve_media → acquire → stage → ready
    Every path passes through cleanup before ending in done or failed.
    """

    INIT = "init"
    IDENTIFY_BOARD = "identify_board"
    READ_CURRENT_VERSION = "read_current_version"
    QUERY_CATALOG = "query_catalog"
    COMPARE_VERSIONS = "compare_versions"
    UP_TO_DATE = "up_to_date"
    RESOLVE_MEDIA = "resolve_media"
    ACQUIRE = "acquire"
    STAGE = "stage"
    READY = "ready"
    CLEANUP = "cleanup"
    DONE = "done"
    FAILED = "failed"


class Outcome(str, Enum):
    """Terminal result of a successful session."""

    UP_TO_DATE = "up_to_date"
    STAGED = "staged"
