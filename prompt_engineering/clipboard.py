from __future__ import annotations

import tkinter as tk
from abc import ABC, abstractmethod
from typing import Any


class ClipboardError(RuntimeError):
    pass


class ClipboardService(ABC):
    @abstractmethod
    def write(self, text: str) -> None:
        """Put `text` on the system clipboard or raise ClipboardError."""
        raise NotImplementedError


class TkClipboard(ClipboardService):
    """System clipboard through a Tk widget (usually the root window)."""

    def __init__(self, widget: Any):
        self.widget = widget

    def write(self, text: str) -> None:
        try:
            self.widget.clipboard_clear()
            self.widget.clipboard_append(text)
            self.widget.update_idletasks()
        except tk.TclError as e:
            raise ClipboardError(f"Could not write to the clipboard: {e}") from e
