"""Commands - all CLI command implementations."""

# Commands are typically run via CLI, not imported directly
# But we expose them for convenience

from veer_voice.commands import list_voices, run, set_setting, show_config

__all__ = [
    "run",
    "show_config",
    "set_setting",
    "list_voices",
]
