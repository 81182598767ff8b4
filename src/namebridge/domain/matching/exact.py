"""Stage A: exact natural-key (fire number) matching."""

from __future__ import annotations

import re
from collections import defaultdict
from typing import TYPE_CHECKING, Final

from namebridge.domain.matching.contracts import AmbiguousMatch, DirectMatch, MatchRule, NoMatch

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from namebridge.domain.matching.contracts import NaturalKeyOutcome
    from namebridge.domain.model import SourceRecord

MAX_FIRE_NUMBER: Final = 3500
_FIRE_NUMBER: Final = re.compile(r"\d{1,4}")
_LEADING_FIRE_NUMBER: Final = re.compile(r"^(\d{1,4})\s+")


def parse_fire_number(value: object) -> int | None:
    """Return a valid fire number (integer, 0 < n < 3500) or ``None``."""

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        number = value
    elif isinstance(value, str) and _FIRE_NUMBER.fullmatch(value.strip()):
        number = int(value.strip())
    else:
        return None
    return number if 0 < number < MAX_FIRE_NUMBER else None


def extract_fire_number(address: str | None) -> int | None:
    """Read a fire number from the start of a street address (``"123 Corn Neck Rd"``)."""

    if not address:
        return None
    match = _LEADING_FIRE_NUMBER.match(address.strip())
    if match is None:
        return None
    return parse_fire_number(match.group(1))


def natural_key_of(record: SourceRecord) -> int | None:
    if record.natural_key is not None:
        return parse_fire_number(record.natural_key)
    return extract_fire_number(record.address)


def build_natural_key_index(targets: Iterable[SourceRecord]) -> dict[int, list[SourceRecord]]:
    index: defaultdict[int, list[SourceRecord]] = defaultdict(list)
    for target in targets:
        key = natural_key_of(target)
        if key is not None:
            index[key].append(target)
    return dict(index)


def match_by_natural_key(
    record: SourceRecord,
    index: Mapping[int, list[SourceRecord]],
) -> NaturalKeyOutcome[SourceRecord]:
    key = natural_key_of(record)
    if key is None:
        return NoMatch(record=record, rule=MatchRule.NO_NATURAL_KEY)
    targets = index.get(key, [])
    if not targets:
        return NoMatch(record=record, rule=MatchRule.NATURAL_KEY_NOT_FOUND)
    if len(targets) == 1:
        return DirectMatch(record=record, target=targets[0], natural_key=key)
    return AmbiguousMatch(record=record, targets=tuple(targets), natural_key=key)


def run_natural_key_stage(
    records: Iterable[SourceRecord],
    targets: Iterable[SourceRecord],
) -> list[NaturalKeyOutcome[SourceRecord]]:
    index = build_natural_key_index(targets)
    return [match_by_natural_key(record, index) for record in records]
