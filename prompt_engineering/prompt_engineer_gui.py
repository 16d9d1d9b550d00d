from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

import tkinter as tk
from tkinter import messagebox, ttk
from tkinter.scrolledtext import ScrolledText

from dotenv import load_dotenv

from llm_completion.settings_service import SettingsService
from llm_completion.types import TargetModel
from prompt_engineering.clipboard import TkClipboard
from prompt_engineering.session import (
    PromptEngineerSession,
    Scheduler,
    SessionState,
)

logger = logging.getLogger(__name__)

INPUT_HINT = (
    "Describe what you want the AI to do in simple terms... "
    "e.g., 'a story about a robot who discovers music'"
)


class TkScheduler(Scheduler):
    """Runs completion calls on a daemon thread and resumes on the Tk main loop."""

    def __init__(self, master: tk.Misc):
        self.master = master

    def run_in_background(
        self,
        work: Callable[[], str],
        on_success: Callable[[str], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        def _run() -> None:
            try:
                result = work()
            except Exception as e:
                self._deliver(lambda err=e: on_error(err))
                return
            self._deliver(lambda: on_success(result))

        t = threading.Thread(target=_run, daemon=True)
        t.start()

    def _deliver(self, callback: Callable[[], None]) -> None:
        # Called from the worker thread; the window may be gone by now.
        try:
            self.master.after(0, callback)
        except (RuntimeError, tk.TclError) as e:
            logger.debug("Window closed before the request finished: %s", e)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        return self.master.after(delay_ms, callback)

    def cancel(self, handle: Any) -> None:
        self.master.after_cancel(handle)


class PromptEngineerGUI:
    def __init__(
        self,
        master: tk.Misc,
        session: Optional[PromptEngineerSession] = None,
        settings_service: Optional[SettingsService] = None,
    ):
        self.master = master

        if session is None:
            settings_service = settings_service or SettingsService()
            provider_def = settings_service.get_active_provider()
            logger.info("Using completion provider: %s", provider_def.display_name)
            session = PromptEngineerSession(
                provider=settings_service.build_provider(provider_def),
                scheduler=TkScheduler(master),
                clipboard=TkClipboard(master),
                copy_feedback_ms=settings_service.copy_feedback_ms(),
            )
        self.session = session

        # --- state ---
        self._target_var = tk.StringVar(value=session.state.target_model.value)

        # --- ui ---
        self._build_ui()
        self._unsubscribe = self.session.subscribe(self._render)
        self._render(self.session.state)

        self.master.protocol("WM_DELETE_WINDOW", self._on_close)

    # ---------------- UI ----------------

    def _build_ui(self) -> None:
        self.master.title("Prompt Engineer")
        self.master.geometry("760x640")
        self.master.grid_columnconfigure(0, weight=1)

        header = ttk.Frame(self.master)
        header.grid(row=0, column=0, sticky="ew", padx=10, pady=(10, 4))
        ttk.Label(header, text="Prompt Engineer", font=("TkDefaultFont", 16, "bold")).grid(
            row=0, column=0, sticky="w"
        )
        ttk.Label(
            header,
            text="Transform your simple ideas into powerful, effective prompts.",
            foreground="#444",
        ).grid(row=1, column=0, sticky="w")

        # Input panel
        panel = ttk.LabelFrame(self.master, text="Your idea")
        panel.grid(row=1, column=0, sticky="nsew", padx=10, pady=6)
        panel.grid_columnconfigure(0, weight=1)

        target_row = ttk.Frame(panel)
        target_row.grid(row=0, column=0, sticky="w", padx=10, pady=(8, 4))
        ttk.Label(target_row, text="Target AI:").grid(row=0, column=0, sticky="w", padx=(0, 8))

        self._target_radios: dict[TargetModel, ttk.Radiobutton] = {}
        for col, target in enumerate(TargetModel, start=1):
            radio = ttk.Radiobutton(
                target_row,
                text=target.display_name,
                value=target.value,
                variable=self._target_var,
                command=self._on_target_model_changed,
            )
            radio.grid(row=0, column=col, sticky="w", padx=(0, 12))
            self._target_radios[target] = radio

        ttk.Label(panel, text=INPUT_HINT, foreground="#666", wraplength=700).grid(
            row=1, column=0, sticky="w", padx=10
        )

        self._input_text = ScrolledText(panel, height=8, wrap="word")
        self._input_text.grid(row=2, column=0, sticky="nsew", padx=10, pady=(4, 8))
        # <<Modified>> covers typing, paste, cut, undo and drag-and-drop alike.
        self._input_text.bind("<<Modified>>", self._on_input_modified)
        for sequence in ("<<Paste>>", "<<Cut>>", "<<PasteSelection>>"):
            self._input_text.bind(
                sequence, lambda _e: self.master.after_idle(self._on_input_edited), add="+"
            )

        self._engineer_btn = ttk.Button(panel, text="Engineer Prompt", command=self._on_engineer_clicked)
        self._engineer_btn.grid(row=3, column=0, sticky="w", padx=10, pady=(0, 10))

        # Output panel (hidden until there is something to show)
        self._output_frame = ttk.LabelFrame(self.master, text="Engineered Prompt")
        self._output_frame.grid(row=2, column=0, sticky="nsew", padx=10, pady=6)
        self.master.grid_rowconfigure(2, weight=1)
        self._output_frame.grid_columnconfigure(0, weight=1)
        self._output_frame.grid_rowconfigure(0, weight=1)

        self._output_text = ScrolledText(self._output_frame, height=12, wrap="word", state="disabled")
        self._output_text.grid(row=0, column=0, sticky="nsew", padx=10, pady=(10, 4))

        self._copy_btn = ttk.Button(self._output_frame, text="Copy", command=self._on_copy_clicked)
        self._copy_btn.grid(row=1, column=0, sticky="e", padx=10, pady=(0, 10))

        self._error_var = tk.StringVar(value="")
        self._error_label = ttk.Label(self.master, textvariable=self._error_var, foreground="#b00020", wraplength=720)
        self._error_label.grid(row=3, column=0, sticky="w", padx=10, pady=(0, 10))

    # ---------------- Rendering ----------------

    def _render(self, state: SessionState) -> None:
        """Bring every widget in line with `state`."""
        loading = state.is_loading

        for radio in self._target_radios.values():
            radio.configure(state="disabled" if loading else "normal")
        if self._target_var.get() != state.target_model.value:
            self._target_var.set(state.target_model.value)

        self._input_text.configure(state="disabled" if loading else "normal")

        self._engineer_btn.configure(
            text="Engineering..." if loading else "Engineer Prompt",
            state="normal" if state.can_submit else "disabled",
        )

        if state.shows_output:
            self._output_frame.grid()
        else:
            self._output_frame.grid_remove()

        self._set_output_text("Generating..." if loading else (state.result_text or ""))

        if state.has_result and not loading:
            self._copy_btn.configure(text=state.copy_feedback.value or "Copy")
            self._copy_btn.grid()
        else:
            self._copy_btn.grid_remove()

        if state.last_error is not None:
            self._error_var.set(f"Error: {state.last_error}")
            self._error_label.grid()
        else:
            self._error_var.set("")
            self._error_label.grid_remove()

    def _set_output_text(self, text: str) -> None:
        self._output_text.configure(state="normal")
        self._output_text.delete("1.0", "end")
        self._output_text.insert("1.0", text)
        self._output_text.configure(state="disabled")

    # ---------------- UI events ----------------

    def _get_input_text(self) -> str:
        return self._input_text.get("1.0", "end-1c")

    def _on_input_modified(self, _event=None) -> None:
        # Resetting the flag fires <<Modified>> again; that second call is a no-op.
        if not self._input_text.edit_modified():
            return
        self._input_text.edit_modified(False)
        self._on_input_edited()

    def _on_input_edited(self, _event=None) -> None:
        self.session.edit_input(self._get_input_text())

    def _on_target_model_changed(self) -> None:
        self.session.select_target_model(TargetModel(self._target_var.get()))

    def _on_engineer_clicked(self) -> None:
        self.session.submit_request(
            self._get_input_text(),
            TargetModel(self._target_var.get()),
        )

    def _on_copy_clicked(self) -> None:
        self.session.copy_result()

    def _on_close(self) -> None:
        self._unsubscribe()
        self.master.destroy()


def main() -> None:
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    root = tk.Tk()
    try:
        PromptEngineerGUI(root)
    except (ValueError, OSError) as e:
        logger.error("Could not start the prompt engineer: %s", e)
        messagebox.showerror("Configuration error", str(e))
        root.destroy()
        return
    root.mainloop()


if __name__ == "__main__":
    main()
