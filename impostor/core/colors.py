"""
Impostor - Colors Module
========================

Color definitions for status embeds.
"""


# =============================================================================
# Status Embed Colors (Hex)
# =============================================================================

COLOR_LOADING = 0x36393F    # Dark gray - connecting to a lobby
COLOR_INFO = 0x0A96DE       # Blue - lobby open, free to join
COLOR_WARN = 0xED872D       # Orange - match in progress
COLOR_ERROR = 0xFD5C5C      # Red - session over or failed


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    "COLOR_LOADING",
    "COLOR_INFO",
    "COLOR_WARN",
    "COLOR_ERROR",
]
