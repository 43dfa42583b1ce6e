"""Dice tool."""

import logging
import random
from typing import Any

from pydantic import BaseModel, Field

from streamchat.server.lowlevel import RequestContext, Server

logger = logging.getLogger(__name__)


class DiceArguments(BaseModel):
    sides: int = Field(default=6, ge=1, description="Number of sides of the die")


def register_dice_tool(server: Server, rng: random.Random | None = None) -> None:
    rng = rng or random.Random()

    @server.tool(
        "dice",
        "Roll a die and return the result",
        {"sides": {"type": "integer", "minimum": 1, "default": 6, "description": "Number of sides of the die"}},
    )
    async def dice(ctx: RequestContext, arguments: dict[str, Any]) -> str:
        args = DiceArguments.model_validate(arguments)
        result = rng.randint(1, args.sides)
        logger.info(f"dice: {args.sides} sides => {result}")
        return str(result)
