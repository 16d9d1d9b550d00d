"""Prompt engineer session and UI package.

This package is intentionally kept outside `llm_completion` to keep boundaries
clear:
- `llm_completion`: target models, instruction template, providers, settings.
- `prompt_engineering`: request lifecycle state machine, clipboard feedback, UI.
"""
