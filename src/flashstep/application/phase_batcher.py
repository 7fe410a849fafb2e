"""
Phase batcher: slices a fixed pool into bounded, resumable batches.

A phase is one logical pass over a pool. Each batch presents cards that
failed earlier in the phase first, then fresh cards starting at the phase
offset. Resolving a batch advances the offset only by the fresh cards it
actually delivered, so failed cards are re-presented without skipping or
double-counting anything. Cards deleted mid-phase are passed over and
counted as consumed.
"""

import logging
import random
from collections.abc import Iterable, Sequence
from datetime import datetime

from flashstep.application.id_service import generate_phase_id
from flashstep.application.pool import dedupe, validate_card_limit
from flashstep.domain.errors import ContractViolation, PhaseFinishedError
from flashstep.domain.models import Batch, Card, Phase

logger = logging.getLogger(__name__)


def open_phase(pool: Sequence[Card], phase_id: str | None = None) -> Phase:
    """Start a new phase over `pool`."""
    phase = Phase(
        phase_id=phase_id or generate_phase_id(),
        total_phase_cards=len(dedupe(pool)),
    )
    logger.debug(f"Opened {phase.phase_id} over {phase.total_phase_cards} cards")
    return phase


def is_finished(phase: Phase) -> bool:
    return phase.is_finished


def next_batch(
    pool: Sequence[Card],
    phase: Phase,
    card_limit: int | None,
    now: datetime,
    shuffle: bool = True,
    rng: random.Random | None = None,
    order: Sequence[str] | None = None,
) -> Batch:
    """
    Slice the next batch of a phase.

    Args:
        pool: Cards currently available to the phase.
        phase: Current phase state.
        card_limit: Maximum batch size (None = everything remaining).
        now: Reference instant (kept for a uniform call signature).
        shuffle: Shuffle presentation order.
        rng: Random source for the shuffle.
        order: Card IDs in the order the phase was opened with. Defaults to
            the order of `pool`; pass it when cards may have been deleted
            since the phase was opened, so `phase_offset` keeps pointing at
            the same card.

    Returns:
        Batch whose `pending_in_batch` counts the re-presented failed cards.
        IDs that no longer resolve to a card are reported in `skipped_ids`
        (fresh) and `stale_ids` (failed) so resolving the batch consumes them.
        An empty batch with nothing skipped means there is nothing left to deliver.

    Raises:
        PhaseFinishedError: The phase is already complete.
        ContractViolation: card_limit is not positive.
    """
    if phase.is_finished:
        raise PhaseFinishedError(phase.phase_id)
    validate_card_limit(card_limit)

    cards = dedupe(pool)
    by_id = {c.id: c for c in cards}
    order_ids = list(dict.fromkeys(order)) if order is not None else [c.id for c in cards]

    pending = [by_id[cid] for cid in phase.phase_failed_ids if cid in by_id]
    stale = tuple(cid for cid in phase.phase_failed_ids if cid not in by_id)
    if stale:
        logger.debug(f"{phase.phase_id}: dropped {len(stale)} failed IDs no longer in pool")
    if card_limit is not None:
        pending = pending[:card_limit]

    pending_ids = set(phase.phase_failed_ids)
    room = None if card_limit is None else card_limit - len(pending)

    fresh: list[Card] = []
    skipped: list[str] = []
    for cid in order_ids[phase.phase_offset :]:
        if room is not None and len(fresh) >= room:
            break
        if cid in pending_ids:
            continue
        card = by_id.get(cid)
        if card is None:
            skipped.append(cid)
            continue
        fresh.append(card)
    if skipped:
        logger.debug(f"{phase.phase_id}: skipped {len(skipped)} deleted cards")

    combined = pending + fresh
    pending_in_batch = len(pending)

    if shuffle:
        (rng or random).shuffle(combined)

    if not combined:
        logger.info(f"{phase.phase_id}: nothing left to study")

    return Batch(
        cards=tuple(combined),
        pending_in_batch=pending_in_batch,
        skipped_ids=tuple(skipped),
        stale_ids=stale,
    )


def resolve_batch(
    phase: Phase,
    batch: Iterable[str] | Batch,
    wrong_ids: Iterable[str],
    correct_count: int,
    pending_in_batch: int,
    skipped_ids: Iterable[str] = (),
    stale_ids: Iterable[str] = (),
) -> Phase:
    """
    Fold one batch's answers into the phase.

    Args:
        phase: Phase the batch was sliced from.
        batch: The batch (or its card IDs) that was presented.
        wrong_ids: Cards answered incorrectly in this batch.
        correct_count: Cards answered correctly in this batch.
        pending_in_batch: Re-presented failed cards in this batch.
        skipped_ids: Fresh IDs passed over because their card was deleted.
            Taken from `batch` when it is a Batch.
        stale_ids: Failed IDs whose card was deleted. Taken from `batch`
            when it is a Batch.

    Returns:
        The next phase value; the input phase is left untouched.

    Raises:
        ContractViolation: The counts do not describe this batch, e.g. a
            card counted both correct and wrong.
    """
    if isinstance(batch, Batch):
        batch_ids = batch.card_ids
        skipped_ids = [*batch.skipped_ids, *skipped_ids]
        stale_ids = [*batch.stale_ids, *stale_ids]
    else:
        batch_ids = list(batch)
    wrong = list(dict.fromkeys(wrong_ids))
    skipped = list(dict.fromkeys(skipped_ids))
    stale = set(stale_ids) & set(phase.phase_failed_ids)

    if not 0 <= pending_in_batch <= len(batch_ids):
        raise ContractViolation(
            f"pending_in_batch={pending_in_batch} outside 0..{len(batch_ids)}"
        )
    batch_set = set(batch_ids)
    outside = [cid for cid in wrong if cid not in batch_set]
    if outside:
        raise ContractViolation(f"Wrong IDs not in this batch: {', '.join(outside)}")
    if not 0 <= correct_count <= len(batch_ids) - len(wrong):
        raise ContractViolation(
            f"correct_count={correct_count} with {len(wrong)} wrong exceeds "
            f"batch of {len(batch_ids)}"
        )

    wrong_set = set(wrong)
    answered_right = {cid for cid in batch_ids if cid not in wrong_set}
    failed = [
        cid for cid in phase.phase_failed_ids if cid not in answered_right and cid not in stale
    ]
    failed.extend(cid for cid in wrong if cid not in failed)

    # Deleted cards count as consumed so the phase can still finish
    resolved = Phase(
        phase_id=phase.phase_id,
        total_phase_cards=phase.total_phase_cards,
        studied_in_phase=phase.studied_in_phase + correct_count + len(skipped) + len(stale),
        phase_offset=phase.phase_offset + len(batch_ids) - pending_in_batch + len(skipped),
        phase_failed_ids=tuple(failed),
    )

    if resolved.is_finished:
        logger.info(
            f"{resolved.phase_id} finished: {resolved.studied_in_phase}/"
            f"{resolved.total_phase_cards} studied"
        )
    return resolved
