"""
Impostor - Shared Constants
===========================

Centralized constants for the entire codebase.
Import from here instead of defining locally.
"""


# =============================================================================
# Lobby Codes
# =============================================================================

LOBBY_CODE_LENGTH = 6
LOBBY_CODE_ALPHABET = "QWXRTYLPESDFGHUJKZOCVBINMA"


# =============================================================================
# Channel Names
# =============================================================================

CATEGORY_NAME_TEMPLATE = "Among Us - {code}"
TALKING_CHANNEL_NAME = "Among Us - Discussion"
SILENCE_CHANNEL_NAME = "Among Us - Playing"
ADMIN_CHANNEL_NAME = "Among Us - Admin Playing Channel"

CHANNEL_DELETE_REASON = "Among Us: Session is over."


# =============================================================================
# Status Embeds
# =============================================================================

GAME_URL = "http://www.innersloth.com/gameAmongUs.php"
INVITE_URL_TEMPLATE = "https://discord.gg/{invite}"
LOADING_EMOJI = "<a:loading:572067799535452171>"
EMBED_TITLE_PREFIX = "🎲 Among Us"
FOOTER_TEXT = "Reminder: the bot takes up a player spot!"
FOOTER_ICON_URL = (
    "https://cdn.discordapp.com/icons/579772930607808537/"
    "2d2607a672f2529206edd929ef55173e.png?size=128"
)
