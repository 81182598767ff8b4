"""Fold a batch of source records into the registry."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from namebridge.domain.matching import ClearMatch, NearMatch, NoViableMatch, classify_record
from namebridge.domain.model import (
    Aliases,
    AliasCategory,
    CanonicalIdentity,
    NameComponents,
    expects_name_components,
    infer_identity_kind,
)
from namebridge.domain.workflows.contracts import AddOutcome, IngestReport
from namebridge.domain.workflows.duplicate_key import add_identity
from namebridge.domain.workflows.persist import persist_updated

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from namebridge.domain.matching import SkippedRecord
    from namebridge.domain.model import SourceRecord
    from namebridge.domain.registry import RegistryContext

log = getLogger(__name__)


async def ingest_records(
    ctx: RegistryContext,
    records: Iterable[SourceRecord],
    *,
    skipped: Sequence[SkippedRecord] = (),
) -> IngestReport:
    """Link each record to an identity.

    A value already known as a variant only gains provenance. Otherwise the
    record is scored against every identity's aliases: a clear match adds a
    homonym, a near match is queued for review, anything else becomes a new
    identity (going through duplicate-key resolution if needed).
    """

    report = IngestReport(skipped=list(skipped))
    registry = ctx.registry
    for record in records:
        term = record.name_term()
        owner = registry.owner_of(term.value)
        if owner is not None:
            async with ctx.locked(owner):
                registry.merge_sighting(term)
                await persist_updated(ctx, registry.entry(owner))
            report.merged.append(owner)
            continue

        outcome = classify_record(
            record, registry.identities(), lambda identity: identity.aliases.all_values()
        )
        match outcome:
            case ClearMatch(target=target):
                async with ctx.locked(target.key):
                    entry = registry.add_alias(target.key, term, AliasCategory.HOMONYMS)
                    await persist_updated(ctx, entry)
                report.aliased.append(entry.key)
            case NearMatch():
                report.needs_review.append(outcome)
            case NoViableMatch():
                result = await add_identity(ctx, identity_from_record(ctx, record))
                if result.outcome is AddOutcome.ABANDONED:
                    report.abandoned.append(record.label)
                elif result.key is not None:
                    report.created.append(result.key)

    log.info("Ingest finished: %s", report.summary())
    return report


def identity_from_record(ctx: RegistryContext, record: SourceRecord) -> CanonicalIdentity:
    parts = list(record.name_fields.values()) or [record.name]
    kind = infer_identity_kind(parts, household=record.household)
    components = NameComponents()
    if expects_name_components(kind):
        if record.name_fields:
            components = NameComponents(
                first=record.name_fields.get("first"),
                last=record.name_fields.get("last"),
                other=record.name_fields.get("other"),
            )
        elif ctx.name_parser is not None:
            components = ctx.name_parser(record.name)
    return CanonicalIdentity(aliases=Aliases(record.name_term()), kind=kind, components=components)
