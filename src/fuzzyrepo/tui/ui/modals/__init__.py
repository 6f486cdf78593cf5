"""Modal screens for fuzzyrepo."""

from .command_palette import CommandPaletteModal, palette_commands
from .config_modal import ConfigModal

__all__ = ["CommandPaletteModal", "ConfigModal", "palette_commands"]
