from .chat_client import ChatLogClient, ChatServiceClient
from .config import ClientSettings
from .context import ChatContext
from .errors import (
    ChatTimeoutError,
    ConsentError,
    LoggingError,
    RegistrationValidationError,
    TransportError,
    UpstreamDataError,
)
from .models import ConversationState, HealthcareContext, Message, PrivacyStyle, Sender, UserDetails
from .orchestrator import ConversationOrchestrator
from .session_identity import derive_session_id
from .transitions import (
    AddMessage,
    ClearError,
    InitializeSession,
    RegisterUser,
    SetError,
    SetLoading,
    SetWelcomeMessage,
    TogglePrivacyBox,
    transition,
)

__all__ = [
    "AddMessage",
    "ChatContext",
    "ChatLogClient",
    "ChatServiceClient",
    "ChatTimeoutError",
    "ClearError",
    "ClientSettings",
    "ConsentError",
    "ConversationOrchestrator",
    "ConversationState",
    "HealthcareContext",
    "InitializeSession",
    "LoggingError",
    "Message",
    "PrivacyStyle",
    "RegisterUser",
    "RegistrationValidationError",
    "Sender",
    "SetError",
    "SetLoading",
    "SetWelcomeMessage",
    "TogglePrivacyBox",
    "TransportError",
    "UpstreamDataError",
    "UserDetails",
    "derive_session_id",
    "transition",
]
