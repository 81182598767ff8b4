"""Compose the three matching stages over one source batch."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.matching.address import run_address_stage
from namebridge.domain.matching.contracts import (
    AmbiguousMatch,
    ClearMatch,
    DirectMatch,
    MatchingReport,
    MatchStage,
    NearMatch,
    NoMatch,
    NoViableMatch,
)
from namebridge.domain.matching.exact import run_natural_key_stage
from namebridge.domain.matching.similarity import run_similarity_stage

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from namebridge.domain.matching.contracts import SkippedRecord
    from namebridge.domain.model import SourceRecord

log = getLogger(__name__)


def run_matching(
    records: Iterable[SourceRecord],
    targets: Iterable[SourceRecord],
    *,
    skipped: Sequence[SkippedRecord] = (),
) -> MatchingReport[SourceRecord]:
    """Stage A over the batch, Stage B over its misses, Stage C over what is left.

    Direct and clear matches land in ``auto_apply``; ambiguous and near matches
    in ``needs_review``. Every outcome keeps its stage and rule.
    """

    pool = tuple(targets)
    report: MatchingReport[SourceRecord] = MatchingReport(skipped=list(skipped))

    stage_a = run_natural_key_stage(records, pool)
    report.stage_results[MatchStage.NATURAL_KEY] = list(stage_a)
    unmatched: list[SourceRecord] = []
    for outcome in stage_a:
        match outcome:
            case DirectMatch():
                report.auto_apply.append(outcome)
            case AmbiguousMatch():
                report.needs_review.append(outcome)
            case NoMatch():
                unmatched.append(outcome.record)

    stage_b = run_similarity_stage(unmatched, pool)
    report.stage_results[MatchStage.NAME_SIMILARITY] = list(stage_b)
    no_viable: list[SourceRecord] = []
    for outcome in stage_b:
        match outcome:
            case ClearMatch():
                report.auto_apply.append(outcome)
            case NearMatch():
                report.needs_review.append(outcome)
            case NoViableMatch():
                no_viable.append(outcome.record)

    stage_c = run_address_stage(no_viable)
    report.stage_results[MatchStage.ADDRESS] = list(stage_c)
    report.unhandled.extend(stage_c)

    log.info("Matching finished: %s", report.summary())
    return report
