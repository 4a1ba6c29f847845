"""
Impostor - Command Parser
=========================

Parses `<prefix> <region> <code>` into a region and a normalized lobby code.
"""

from typing import Dict, Tuple

from impostor.core.constants import LOBBY_CODE_ALPHABET, LOBBY_CODE_LENGTH
from .models import LobbyRegion


REGION_ALIASES: Dict[str, LobbyRegion] = {
    "as": LobbyRegion.ASIA,
    "asia": LobbyRegion.ASIA,
    "eu": LobbyRegion.EUROPE,
    "europe": LobbyRegion.EUROPE,
    "na": LobbyRegion.NORTH_AMERICA,
    "us": LobbyRegion.NORTH_AMERICA,
    "usa": LobbyRegion.NORTH_AMERICA,
    "america": LobbyRegion.NORTH_AMERICA,
    "northamerica": LobbyRegion.NORTH_AMERICA,
    "north america": LobbyRegion.NORTH_AMERICA,
}


class CommandError(Exception):
    """A malformed command. The message is shown to the user as-is."""
    pass


def parse_region(args: str, prefix: str = "") -> Tuple[LobbyRegion, str]:
    """
    Split the region token off the front of the arguments.

    Two-word regions ("north america") are tried before single words.
    Returns the region and whatever follows it.
    """
    words = args.split(maxsplit=2)
    if len(words) >= 2:
        region = REGION_ALIASES.get(f"{words[0]} {words[1]}".lower())
        if region is not None:
            return region, words[2] if len(words) > 2 else ""

    words = args.split(maxsplit=1)
    if words:
        region = REGION_ALIASES.get(words[0].lower())
        if region is not None:
            return region, words[1] if len(words) > 1 else ""

    raise CommandError(
        "Could not determine the region of the lobby. "
        f"Try doing `{prefix}na ABCDEF` or `{prefix}europe GHIJKL`."
    )


def validate_lobby_code(code: str) -> str:
    """Return the upper-cased code, or raise CommandError if it is not a lobby code."""
    code = code.strip().upper()

    if len(code) != LOBBY_CODE_LENGTH:
        raise CommandError(
            f"Invalid lobby code. The lobby code must be exactly {LOBBY_CODE_LENGTH} letters."
        )

    if any(char not in LOBBY_CODE_ALPHABET for char in code):
        raise CommandError("Invalid lobby code. The lobby code contains invalid characters.")

    return code


def parse_command(content: str, prefix: str) -> Tuple[LobbyRegion, str]:
    """Parse a full command message, prefix included."""
    if not content.lower().startswith(prefix.lower()):
        raise CommandError(f"Commands must start with `{prefix.strip()}`.")

    region, rest = parse_region(content[len(prefix):], prefix)
    return region, validate_lobby_code(rest)
