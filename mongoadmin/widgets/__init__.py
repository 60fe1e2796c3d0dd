"""Widget library for the Textual UI."""

from __future__ import annotations

from .database_sidebar import DatabaseSidebar
from .provision_pane import ProvisionPane
from .status_bar import StatusBar

__all__ = ["DatabaseSidebar", "ProvisionPane", "StatusBar"]
