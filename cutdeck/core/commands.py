"""
Text command interpreter.

A closed grammar of three templates, matched case-insensitively against
the trimmed input:

    tighten silence[s] > N [leave M ms]
    remove|cut silence[s] > N
    cut S - E

Numbers may carry a decimal part. Anything else is not a command.
Natural-language phrasing is translated into this grammar elsewhere;
nothing here guesses.
"""
from __future__ import annotations
import re
from typing import TYPE_CHECKING, Optional

from .config import SILENCE_CONFIG
from .errors import ParseError
from .ranges import Range, detect_silences, tighten_silences
from .types import Peaks
from ..utils.logger import logger

if TYPE_CHECKING:
    from .cuts import CutList
    from .media import Probe

_NUMBER = r"(\d+(?:\.\d+)?)"

TIGHTEN_PATTERN = re.compile(
    rf"^tighten\s+silences?\s*(?:>=?|=)\s*{_NUMBER}(?:\s*leave\s*{_NUMBER}\s*ms)?$", re.IGNORECASE
)
REMOVE_PATTERN = re.compile(rf"^(?:remove|cut)\s+silences?\s*(?:>=?|=)\s*{_NUMBER}$", re.IGNORECASE)
CUT_PATTERN = re.compile(rf"^cut\s*{_NUMBER}\s*-\s*{_NUMBER}$", re.IGNORECASE)

USAGE_HINT = 'Try: "tighten silence > 2 leave 150ms", "remove silence > 2", or "cut 12.5 - 14.0"'


def parse_command(text: str, probe: "Probe", peaks: Peaks) -> Optional[list[Range]]:
    """
    Interpret a text command.

    Args:
        text: Command typed by the user or produced by the agent
        probe: Metadata of the media the command applies to
        peaks: Amplitude samples of that media

    Returns:
        The ranges the command selects, or None if it is not a command
    """
    query = (text or "").strip()

    match = TIGHTEN_PATTERN.match(query)
    if match:
        min_seconds = float(match.group(1))
        leave_ms = float(match.group(2)) if match.group(2) else SILENCE_CONFIG.default_leave_ms
        return tighten_silences(probe, peaks, min_seconds, leave_ms)

    match = REMOVE_PATTERN.match(query)
    if match:
        return detect_silences(probe, peaks, float(match.group(1)))

    match = CUT_PATTERN.match(query)
    if match:
        first, second = float(match.group(1)), float(match.group(2))
        return [Range(min(first, second), max(first, second))]

    return None


def require_command(text: str, probe: "Probe", peaks: Peaks) -> list[Range]:
    """
    Like parse_command, but unknown input raises.

    Raises:
        ParseError: The text matches none of the templates
    """
    ranges = parse_command(text, probe, peaks)
    if ranges is None:
        raise ParseError(text, USAGE_HINT)
    return ranges


def run_command(cuts: "CutList", text: str, probe: "Probe", peaks: Peaks) -> Optional[list[Range]]:
    """Propose the ranges a command selects as preview cuts."""
    ranges = parse_command(text, probe, peaks)
    if ranges is None:
        logger.info(f"Command not recognized: {text!r}")
        return None
    proposed = cuts.propose(ranges)
    logger.info(f"Preview: {text.strip()} -> {len(proposed)} cuts")
    return proposed
