"""
DiceGear — the !roll command.

    !roll 2d6+3               roll once
    !roll d20 --times=3       roll three times
    !roll 4d6 --detail        show every die, not just the total

Supports NdM with an optional +K / -K modifier. Limits keep replies small.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass

import discord

from gearshift.commands import Context, Flags, Gear, Manifest, Param
from gearshift.config.logging import get_logger

logger = get_logger(__name__)

_DICE_RE = re.compile(r"^(\d*)d(\d+)([+-]\d+)?$", re.IGNORECASE)

MAX_DICE = 100
MAX_SIDES = 1000
MAX_TIMES = 10


class RollFlags(Flags):
    times: int = 1
    detail: bool = False


@dataclass(frozen=True)
class DiceRoll:
    """Outcome of rolling one dice expression once."""

    rolls: tuple[int, ...]
    modifier: int

    @property
    def total(self) -> int:
        return sum(self.rolls) + self.modifier

    def describe(self, detail: bool) -> str:
        if not detail:
            return f"**{self.total}**"
        modifier = f" {'+' if self.modifier >= 0 else '-'} {abs(self.modifier)}" if self.modifier else ""
        return f"{list(self.rolls)}{modifier} → **{self.total}**"


def parse_expression(expression: str) -> tuple[int, int, int]:
    """
    Parse NdM+K notation.

    Returns:
        Tuple of (count, sides, modifier)

    Raises:
        ValueError: If the expression is malformed or exceeds the limits
    """
    match = _DICE_RE.match(expression.strip())
    if match is None:
        raise ValueError(f"'{expression}' is not a dice expression (try 2d6+3)")

    count = int(match.group(1) or 1)
    sides = int(match.group(2))
    modifier = int(match.group(3) or 0)

    if not 1 <= count <= MAX_DICE:
        raise ValueError(f"Dice count must be between 1 and {MAX_DICE}")
    if not 2 <= sides <= MAX_SIDES:
        raise ValueError(f"Dice must have between 2 and {MAX_SIDES} sides")
    return count, sides, modifier


class DiceGear(Gear):
    """Provides !roll for dice expressions."""

    manifest = Manifest().command(
        "roll",
        "roll",
        params=[Param(Context), Param(str), Param(RollFlags)],
    )

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def roll_once(self, count: int, sides: int, modifier: int) -> DiceRoll:
        rolls = tuple(self._rng.randint(1, sides) for _ in range(count))
        return DiceRoll(rolls=rolls, modifier=modifier)

    async def roll(self, ctx: Context, expression: str, flags: RollFlags) -> None:
        """!roll <expression> [--times=N] [--detail]"""
        try:
            count, sides, modifier = parse_expression(expression)
        except ValueError as e:
            await ctx.send(f"Roll failed: {e}")
            return

        if not 1 <= flags.times <= MAX_TIMES:
            await ctx.send(f"Roll failed: --times must be between 1 and {MAX_TIMES}")
            return

        results = [self.roll_once(count, sides, modifier) for _ in range(flags.times)]
        logger.debug(f"{ctx.author} rolled {expression} x{flags.times}: {[r.total for r in results]}")

        embed = discord.Embed(
            title=f"🎲 {expression}",
            description="\n".join(r.describe(flags.detail) for r in results),
            color=discord.Color.green(),
        )
        embed.set_footer(text=f"Requested by {ctx.author.display_name}")
        await ctx.send(embed=embed)
