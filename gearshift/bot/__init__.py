"""
Discord Bot Layer.

Connects the command dispatcher to Discord: the client, the entity resolver
used for typed arguments, and the bundled gears.
"""

from gearshift.bot.client import GearshiftBot
from gearshift.bot.resolver import DiscordResolver

__all__ = ["GearshiftBot", "DiscordResolver"]
