"""
PokerStars Cash Game Stake Normalizer

Rewrites every monetary figure of a hand history so the hand reads as if it
was played at $0.50/$1. The text is never parsed into players or actions:
each hand is treated as a list of lines and amounts are rescaled in place by
a fixed table of regex passes, each limited to the part of the hand where
its phrase can appear.

Pieces, in the order they are used:
1. Pattern catalog - one rule per money phrase (stakes, stacks, blinds, ...)
2. Region detection - preflop / postflop / summary line ranges
3. Scale derivation - original big blind taken from the header
4. Stage table - (rule, region) pairs run in order over one hand
"""

import logging
import re
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from enum import Enum
from pathlib import Path
from typing import Iterable, NamedTuple, Optional

logger = logging.getLogger(__name__)


# Normalized table stakes written into every converted header
NORMALIZED_SMALL_BLIND = "0.50"
NORMALIZED_BIG_BLIND = "1"

# Structural markers
HOLE_CARDS_MARKER = "*** HOLE CARDS ***"
SUMMARY_MARKER = "*** SUMMARY ***"

# Header and table lines come first; seats start on the third line
PREFLOP_START_OFFSET = 2

# Bare integer or dot-decimal, digits kept exactly as written
AMOUNT = r"\d+(?:\.\d+)?"

CENT = Decimal("0.01")


# =============================================================================
# Pattern Catalog
# =============================================================================

class MatchedAmount(NamedTuple):
    """A monetary capture group that took part in a match"""
    group: str
    text: str
    start: int
    end: int


@dataclass(frozen=True)
class RuleMatch:
    """Result of a successful rule match.

    Only the amount groups of the alternative that matched are listed in
    ``amounts``; groups of non-taken branches are never reported.
    """
    rule: "PatternRule"
    start: int
    end: int
    amounts: tuple[MatchedAmount, ...]

    @property
    def alternative(self) -> Optional[str]:
        """Name of the first amount group that matched (e.g. 'big_blind')"""
        return self.amounts[0].group if self.amounts else None


@dataclass(frozen=True)
class PatternRule:
    """A money phrase: a compiled regex plus its monetary named groups"""
    name: str
    pattern: re.Pattern
    amount_groups: tuple[str, ...]

    def match(self, line: str) -> Optional[RuleMatch]:
        """Find the first occurrence of the phrase in ``line``"""
        found = self.pattern.search(line)
        if not found:
            return None

        amounts = tuple(
            MatchedAmount(group, found.group(group), found.start(group), found.end(group))
            for group in self.amount_groups
            if found.group(group) is not None
        )
        return RuleMatch(rule=self, start=found.start(), end=found.end(), amounts=amounts)

    def __repr__(self):
        return f"PatternRule({self.name})"


def _rule(name: str, pattern: str, *amount_groups: str) -> PatternRule:
    return PatternRule(name=name, pattern=re.compile(pattern.format(amount=AMOUNT)), amount_groups=amount_groups)


# ($50/$100) or ($50/$100 USD) - zoom hands carry the USD suffix
STAKES = _rule(
    "stakes",
    r"\(\$(?P<small_blind>{amount})/\$(?P<big_blind>{amount})(?: USD)?\)",
    "small_blind", "big_blind",
)

# Seat 1: Player ($783.50 in chips)
STACK = _rule("stack", r"\(\$(?P<stack>{amount}) in chips\)", "stack")

# Exactly one of the three alternatives matches
BLINDS = _rule(
    "blinds",
    r"posts small blind \$(?P<small_blind>{amount})"
    r"|posts big blind \$(?P<big_blind>{amount})"
    r"|posts (?:small & big blinds|big & small blind) \$(?P<dead_blind>{amount})",
    "small_blind", "big_blind", "dead_blind",
)

ANTE = _rule("ante", r"posts the ante \$(?P<ante>{amount})", "ante")

# raises $719 to $982.25
RAISE = _rule("raise", r"raises \$(?P<raise_from>{amount}) to \$(?P<raise_to>{amount})", "raise_from", "raise_to")

BET_OR_CALL = _rule(
    "bet_or_call",
    r"bets \$(?P<bet>{amount})|calls \$(?P<call>{amount})",
    "bet", "call",
)

# Player collected $2424.24 from pot
COLLECTED = _rule("collected", r"collected \$(?P<collected>{amount})", "collected")

# Summary block: Total pot $310 Main pot $200. Side pot $110. | Rake $0
MAIN_POT = _rule("main_pot", r"Main pot \$(?P<main_pot>{amount})", "main_pot")
SIDE_POT = _rule("side_pot", r"Side pot(?:-\d+)? \$(?P<side_pot>{amount})", "side_pot")

# Seat 2: Player (small blind) showed [Ah Kd] and won ($1220) with ...
SEAT_WON = _rule(
    "seat_won",
    r"won \(\$(?P<won>{amount})\)|collected \(\$(?P<seat_collected>{amount})\)",
    "won", "seat_collected",
)


# =============================================================================
# Line Rescaler
# =============================================================================

def format_amount(value: Decimal) -> str:
    """Format money with exactly two decimals ('1' -> '1.00')"""
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the cents
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return str(value.quantize(CENT, rounding=ROUND_HALF_UP))


def rescale_amount(text: str, scale: Decimal) -> str:
    """Divide a money numeral by the scale factor and format it"""
    with localcontext() as ctx:
        # exact to the cent for numerals of any length
        ctx.prec = max(ctx.prec, len(text) + len(str(scale)) + 4)
        return format_amount(Decimal(text) / scale)


def rescale_line(line: str, rule: PatternRule, scale: Optional[Decimal]) -> str:
    """Rescale the amounts of the first ``rule`` match in ``line``.

    Each amount is replaced by its own span, so equal amounts in one match
    ('raises $100 to $100') are both rewritten and numerals outside the
    match are left alone. Without a scale factor the line is returned as is.
    """
    if not scale:
        return line

    match = rule.match(line)
    if not match:
        return line

    # Right to left keeps the remaining spans valid
    for amount in sorted(match.amounts, key=lambda a: a.start, reverse=True):
        line = line[:amount.start] + rescale_amount(amount.text, scale) + line[amount.end:]

    return line


# =============================================================================
# Region Detector
# =============================================================================

class HandRegion(Enum):
    PREFLOP = "preflop"
    POSTFLOP = "postflop"
    SUMMARY = "summary"


class Region(NamedTuple):
    """Half-open line index range [start, end)"""
    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        return self.start >= self.end

    def contains(self, index: int) -> bool:
        return self.start <= index < self.end


@dataclass(frozen=True)
class HandRegions:
    """The three structural regions of one hand"""
    preflop: Region
    postflop: Region
    summary: Region

    def get(self, region: HandRegion) -> Region:
        return getattr(self, region.value)


def _find_marker(lines: list[str], marker: str) -> Optional[int]:
    """Index of the first line containing ``marker``"""
    return next((i for i, line in enumerate(lines) if marker in line), None)


def detect_regions(lines: list[str]) -> HandRegions:
    """Locate preflop, postflop and summary line ranges.

    A missing marker never raises: the regions bounded by it come back
    empty, so the stages bound to them do nothing for this hand.
    """
    total = len(lines)
    offset = min(PREFLOP_START_OFFSET, total)

    hole_cards = _find_marker(lines, HOLE_CARDS_MARKER)
    summary = _find_marker(lines, SUMMARY_MARKER)

    if hole_cards is not None:
        hole_cards = max(hole_cards, offset)
    if summary is not None and hole_cards is not None:
        summary = max(summary, hole_cards)

    if hole_cards is None:
        logger.debug("Hole cards marker not found, preflop and postflop regions are empty")
        preflop = Region(offset, offset)
        postflop = Region(offset, offset)
    elif summary is None:
        logger.debug("Summary marker not found, postflop and summary regions are empty")
        preflop = Region(offset, hole_cards)
        postflop = Region(hole_cards, hole_cards)
    else:
        preflop = Region(offset, hole_cards)
        postflop = Region(hole_cards, summary)

    if summary is None:
        summary_region = Region(total, total)
    else:
        summary_region = Region(max(summary, postflop.end), total)

    return HandRegions(preflop=preflop, postflop=postflop, summary=summary_region)


# =============================================================================
# Scale Derivation
# =============================================================================

def derive_scale(header_line: str) -> tuple[Optional[Decimal], str]:
    """Read the table stakes from the header and normalize them.

    Returns (scale factor, rewritten header). The scale factor is the
    original big blind; it is None when the header carries no stakes.
    """
    match = STAKES.match(header_line)
    if not match:
        return None, header_line

    amounts = {amount.group: amount for amount in match.amounts}
    scale = Decimal(amounts["big_blind"].text)
    if not scale:
        logger.debug(f"Zero big blind in header: {header_line!r}")
        return None, header_line

    small_blind, big_blind = amounts["small_blind"], amounts["big_blind"]
    header = (
        header_line[:small_blind.start]
        + NORMALIZED_SMALL_BLIND
        + header_line[small_blind.end:big_blind.start]
        + NORMALIZED_BIG_BLIND
        + header_line[big_blind.end:]
    )
    return scale, header


# =============================================================================
# Region-Scoped Pipeline
# =============================================================================

@dataclass(frozen=True)
class ConversionStage:
    """One rewrite pass: a rule applied to every line of a region"""
    rule: PatternRule
    region: HandRegion

    def __repr__(self):
        return f"ConversionStage({self.rule.name} @ {self.region.value})"


DEFAULT_STAGES: tuple[ConversionStage, ...] = (
    ConversionStage(STACK, HandRegion.PREFLOP),
    ConversionStage(BLINDS, HandRegion.PREFLOP),
    ConversionStage(ANTE, HandRegion.PREFLOP),
    ConversionStage(RAISE, HandRegion.POSTFLOP),
    ConversionStage(BET_OR_CALL, HandRegion.POSTFLOP),
    ConversionStage(COLLECTED, HandRegion.POSTFLOP),
)

# Disabled by default; see HandConverter(include_summary=True)
SUMMARY_STAGES: tuple[ConversionStage, ...] = (
    ConversionStage(SIDE_POT, HandRegion.SUMMARY),
    ConversionStage(MAIN_POT, HandRegion.SUMMARY),
    ConversionStage(SEAT_WON, HandRegion.SUMMARY),
)


def run_stage(lines: list[str], stage: ConversionStage, regions: HandRegions,
              scale: Optional[Decimal]) -> list[str]:
    """Apply one stage to the lines of its region, returning a new list"""
    region = regions.get(stage.region)
    return [
        rescale_line(line, stage.rule, scale) if region.contains(i) else line
        for i, line in enumerate(lines)
    ]


# =============================================================================
# Hand / Batch Converter
# =============================================================================

class HandConverter:
    """Converts hand histories to normalized stakes.

    Holds only the immutable stage table; the scale factor lives in
    ``convert`` for the duration of one hand.
    """

    def __init__(self, stages: Optional[Iterable[ConversionStage]] = None, include_summary: bool = False):
        stages = tuple(DEFAULT_STAGES if stages is None else stages)
        if include_summary:
            stages += tuple(s for s in SUMMARY_STAGES if s not in stages)
        self.stages: tuple[ConversionStage, ...] = stages

    def convert(self, hand_text: Optional[str]) -> Optional[str]:
        """Convert a single hand; empty or missing text comes back as is"""
        if not hand_text:
            return hand_text

        lines = hand_text.split("\n")

        scale, header = derive_scale(lines[0])
        if scale is None:
            logger.debug("No stakes header found, amounts left unchanged")
            return hand_text
        lines[0] = header

        regions = detect_regions(lines)
        for stage in self.stages:
            lines = run_stage(lines, stage, regions, scale)

        return "\n".join(lines)

    def convert_many(self, hands: Iterable[Optional[str]], max_workers: Optional[int] = None) -> list[Optional[str]]:
        """Convert hands independently, keeping input order"""
        hands = list(hands)
        if max_workers and len(hands) > 1:
            with ThreadPoolExecutor(max_workers=max_workers) as executor:
                converted = list(executor.map(self.convert, hands))
        else:
            converted = [self.convert(hand) for hand in hands]

        logger.info(f"Converted {len(converted)} hands")
        return converted

    def __repr__(self):
        return f"HandConverter({len(self.stages)} stages)"


_default_converter = HandConverter()


def convert_hand(hand_text: Optional[str]) -> Optional[str]:
    """Convenience function to convert one hand with the default stages"""
    return _default_converter.convert(hand_text)


def convert_hands(hands: Iterable[Optional[str]], max_workers: Optional[int] = None) -> list[Optional[str]]:
    """Convenience function to convert many hands with the default stages"""
    return _default_converter.convert_many(hands, max_workers=max_workers)


def split_hands(text: Optional[str]) -> list[str]:
    """Split a hand history export into hands (hands are separated by blank lines)"""
    if not text:
        return []
    return [chunk.strip() for chunk in re.split(r"\n\s*\n+", text.strip()) if chunk.strip()]


def join_hands(hands: Iterable[str]) -> str:
    """Join hands back into one export, blank-line separated"""
    return "\n\n".join(hands)


def convert_hand_history_file(file_path: str, include_summary: bool = False) -> list[str]:
    """Convenience function to convert every hand of a hand history file"""
    text = Path(file_path).read_text(encoding="utf-8")
    converter = _default_converter if not include_summary else HandConverter(include_summary=True)
    return converter.convert_many(split_hands(text))


# CLI
if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python -m package.hand_converter <file_path> [--output <path>] [--summary]")
        sys.exit(1)

    file_path = sys.argv[1]
    output_path = None
    include_summary = "--summary" in sys.argv

    if "--output" in sys.argv:
        index = sys.argv.index("--output")
        if index + 1 >= len(sys.argv):
            print("--output requires a path")
            sys.exit(1)
        output_path = sys.argv[index + 1]

    converted = convert_hand_history_file(file_path, include_summary=include_summary)
    text = join_hands(converted)

    if output_path:
        Path(output_path).write_text(text + "\n", encoding="utf-8")
        print(f"Wrote {len(converted)} hands to {output_path}")
    else:
        print(text)
        print(f"\n{'='*60}")
        print(f"Converted {len(converted)} hands from {file_path}")
