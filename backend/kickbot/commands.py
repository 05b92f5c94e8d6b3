import argparse
import math
import logging
import re
from dataclasses import dataclass
from typing import Optional

from kickbot.models import GameVariant
from kickbot.services.formations.scheduler import MAX_EXPIRY_SEC

CMD_START = '/kicker'
CMD_START_DUEL = '/kicker1v1'

_DURATION = re.compile(r'(?:\d+(?:\.\d+)?(?:ms|h|m|s))+')
_DURATION_PART = re.compile(r'(\d+(?:\.\d+)?)(ms|h|m|s)')
_UNIT_SECONDS = {'h': 3600.0, 'm': 60.0, 's': 1.0, 'ms': 0.001}

logger = logging.getLogger(__name__)


@dataclass
class GameOptions:
    variant: GameVariant = GameVariant.TWO_VS_TWO
    timeout: Optional[float] = None  # None: coordinator default


def parse_duration(value: str) -> float:
    """Seconds from ``90``, ``90s``, ``10m`` or ``1h30m``."""
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        if not _DURATION.fullmatch(value):
            raise ValueError(f"invalid duration {value!r}")
        seconds = sum(float(n) * _UNIT_SECONDS[unit] for n, unit in _DURATION_PART.findall(value))
    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"duration must be positive, got {value!r}")
    if seconds > MAX_EXPIRY_SEC:
        raise ValueError(f"duration {value!r} is too long")
    return seconds


class _FlagParser(argparse.ArgumentParser):

    def error(self, message):
        raise ValueError(message)


def _build_parser() -> argparse.ArgumentParser:
    parser = _FlagParser(prog=CMD_START, add_help=False)
    parser.add_argument('-t', '--timeout', '-timeout', type=parse_duration, default=None)
    parser.add_argument('-d', '--duel', '-duel', action='store_true')
    return parser


def parse_game_options(text: str, duel: bool = False) -> GameOptions:
    """Parse the flags typed after a slash command.

    Parsing stops at the first invalid flag: flags before it still apply, the
    rest fall back to defaults, so a typo never prevents a game from being
    announced.
    """
    parser = _build_parser()
    tokens = (text or '').split()
    for end in range(len(tokens), -1, -1):
        try:
            args = parser.parse_args(tokens[:end])
        except ValueError as e:
            if end == len(tokens):
                logger.warning(f"[command-flags] could not parse {text!r}: {e}")
            continue
        break
    variant = GameVariant.ONE_VS_ONE if (duel or args.duel) else GameVariant.TWO_VS_TWO
    return GameOptions(variant, args.timeout)
