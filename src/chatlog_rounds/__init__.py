from chatlog_rounds.cleaning import (
    ASSISTANT_CLOSE,
    ASSISTANT_OPEN,
    USER_CLOSE,
    USER_OPEN,
    CleaningReport,
    TurnMarkers,
    assess_cleaning,
    normalize,
)
from chatlog_rounds.config import Settings, load_settings
from chatlog_rounds.errors import (
    ChatLogError,
    ChatLogNotFoundError,
    InvalidUploadError,
    MigrationChecksumError,
    MissingCleanedContentError,
    RoundNotFoundError,
)
from chatlog_rounds.models import Chapter, ChatLog, Round, WorkflowStep
from chatlog_rounds.rounds import TextRound, parse_rounds, scan_tagged_rounds, split_rounds_legacy
from chatlog_rounds.schemas import ChatLogUpload, RoundUpdate
from chatlog_rounds.validation import ValidationIssue, validate_chat_log_upload
from chatlog_rounds.workflow import ChatLogWorkflow, CleanResult, ParseRoundsResult

__all__ = [
    "__version__",
    "ASSISTANT_CLOSE",
    "ASSISTANT_OPEN",
    "Chapter",
    "ChatLog",
    "ChatLogError",
    "ChatLogNotFoundError",
    "ChatLogUpload",
    "ChatLogWorkflow",
    "CleanResult",
    "CleaningReport",
    "InvalidUploadError",
    "MigrationChecksumError",
    "MissingCleanedContentError",
    "ParseRoundsResult",
    "Round",
    "RoundNotFoundError",
    "RoundUpdate",
    "Settings",
    "TextRound",
    "TurnMarkers",
    "USER_CLOSE",
    "USER_OPEN",
    "ValidationIssue",
    "WorkflowStep",
    "assess_cleaning",
    "load_settings",
    "normalize",
    "parse_rounds",
    "scan_tagged_rounds",
    "split_rounds_legacy",
    "validate_chat_log_upload",
]

__version__ = "0.1.0"
