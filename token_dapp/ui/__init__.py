from .base_ui import BaseUI
from .console_ui import ConsoleUI

__all__ = ["BaseUI", "ConsoleUI"]
