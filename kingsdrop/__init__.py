"""kingsdrop: page automation for Kinguin checkout, game and dashboard pages."""

from .browser.core import AutomationSession, create_session
from .config import AgentConfig, load_config
from .pages import PageDispatcher, PageType, detect_page_type
from .settings import PreferenceStore, Preferences

__all__ = [
    "AgentConfig",
    "AutomationSession",
    "PageDispatcher",
    "PageType",
    "PreferenceStore",
    "Preferences",
    "create_session",
    "detect_page_type",
    "load_config",
]
