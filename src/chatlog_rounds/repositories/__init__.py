from chatlog_rounds.repositories.base import ChatLogStore, RoundStore
from chatlog_rounds.repositories.chat_logs import ChatLogRepository
from chatlog_rounds.repositories.memory import InMemoryStore
from chatlog_rounds.repositories.rounds import RoundRepository

__all__ = [
    "ChatLogRepository",
    "ChatLogStore",
    "InMemoryStore",
    "RoundRepository",
    "RoundStore",
]
