from .chatlog_store import ChatLogStore
from .conversation_slot import DEFAULT_SLOT_KEY, ConversationSlot
from .database import SQLiteHealthbotDB

__all__ = [
    "DEFAULT_SLOT_KEY",
    "ChatLogStore",
    "ConversationSlot",
    "SQLiteHealthbotDB",
]
