"""
Step tree reconciliation.

Turns a batch of tagged step records for one case into persisted ``Step`` and
``CaseStep`` rows. New steps carry temporary ids chosen by the client, and a
new step may hang under another new step of the same batch, so creations are
ordered parents-first and temporary ids are swapped for real ids as the rows
are inserted.

Batch processing order:
1. deletions
2. updates, limited to steps attached to the case
3. creations, parents before children
4. deferred re-parenting of updated steps moved under new steps
5. sibling renumbering so ``step_no`` stays contiguous from 1
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Hashable, Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from ..exceptions import ResourceNotFoundError, ValidationError
from ..models.case import Case
from ..models.step import CaseStep, Step
from ..schemas.step import (
    CaseStepPosition,
    CreatedStep,
    DeletedStep,
    StepMutation,
    StepResponse,
    UnchangedStep,
    UpdatedStep,
)
from .transaction import transaction

logger = logging.getLogger(__name__)


@dataclass
class CreationPlan:
    """Creation order for the new steps of a batch."""
    ordered: list[CreatedStep] = field(default_factory=list)
    # Temporary ids whose parent reference was cleared by the fallback
    detached: list[Hashable] = field(default_factory=list)


@dataclass
class _Partition:
    unchanged: list[UnchangedStep] = field(default_factory=list)
    updated: list[UpdatedStep] = field(default_factory=list)
    deleted: list[DeletedStep] = field(default_factory=list)
    created: list[CreatedStep] = field(default_factory=list)


def partition_batch(records: Iterable[StepMutation]) -> _Partition:
    """Split a batch by edit state, keeping the batch order inside each group."""
    parts = _Partition()
    for record in records:
        if isinstance(record, UnchangedStep):
            parts.unchanged.append(record)
        elif isinstance(record, UpdatedStep):
            parts.updated.append(record)
        elif isinstance(record, DeletedStep):
            parts.deleted.append(record)
        else:
            parts.created.append(record)
    return parts


def order_for_creation(
    records: Sequence[CreatedStep],
    persisted_ids: set[int],
) -> CreationPlan:
    """
    Order new steps so every step comes after its parent.

    A record can be emitted once its ``parent_step_id`` is null, names a step
    in ``persisted_ids``, or names the temporary id of a record already
    emitted. A reference equal to a temporary id of the batch always means
    that record, even if a persisted step has the same id.

    When a full scan emits nothing (a cycle, or a reference to a temporary id
    that is not in the batch) every remaining record is emitted at root level
    with its parent cleared.
    """
    temp_ids = {record.id for record in records}
    plan = CreationPlan()
    emitted: set[Hashable] = set()
    remaining = list(records)

    while remaining:
        blocked = []
        for record in remaining:
            parent = record.parent_step_id
            if (
                parent is None
                or parent in emitted
                or (parent not in temp_ids and parent in persisted_ids)
            ):
                plan.ordered.append(record)
                emitted.add(record.id)
            else:
                blocked.append(record)

        if len(blocked) == len(remaining):
            for record in blocked:
                plan.ordered.append(record.model_copy(update={"parent_step_id": None}))
                plan.detached.append(record.id)
            break

        remaining = blocked

    return plan


def _case_step_ids(case_id: int, step_ids: Iterable, db: Session) -> set[int]:
    """Return the subset of ``step_ids`` attached to the case."""
    candidates = {step_id for step_id in step_ids if isinstance(step_id, int)}
    if not candidates:
        return set()
    rows = (
        db.query(CaseStep.step_id)
        .filter(CaseStep.case_id == case_id, CaseStep.step_id.in_(candidates))
        .all()
    )
    return {row.step_id for row in rows}


def _would_cycle(step_id: int, new_parent_id: int, db: Session) -> bool:
    visited: set[int] = set()
    current_id: Optional[int] = new_parent_id
    while current_id is not None and current_id not in visited:
        if current_id == step_id:
            return True
        visited.add(current_id)
        current_id = db.query(Step.parent_step_id).filter(Step.id == current_id).scalar()
    return False


def _set_parent(step_id: int, parent_id: Optional[int], db: Session) -> None:
    if parent_id is not None and _would_cycle(step_id, parent_id, db):
        raise ValidationError(f"Cannot move step {step_id} under its own sub-step")
    db.query(Step).filter(Step.id == step_id).update(
        {Step.parent_step_id: parent_id}, synchronize_session=False
    )


def _delete_step(case_id: int, record: DeletedStep, db: Session) -> None:
    detached = (
        db.query(CaseStep)
        .filter(CaseStep.case_id == case_id, CaseStep.step_id == record.id)
        .delete(synchronize_session=False)
    )
    # Sub-steps go with their parent through the schema's cascade
    if detached:
        db.query(Step).filter(Step.id == record.id).delete(synchronize_session=False)


def _update_step(case_id: int, record: UpdatedStep, db: Session) -> None:
    values = {}
    if "step" in record.model_fields_set:
        values[Step.step] = record.step
    if "result" in record.model_fields_set:
        values[Step.result] = record.result
    if values:
        db.query(Step).filter(Step.id == record.id).update(values, synchronize_session=False)

    db.query(CaseStep).filter(
        CaseStep.case_id == case_id, CaseStep.step_id == record.id
    ).update({CaseStep.step_no: record.case_steps.step_no}, synchronize_session=False)


def _create_step(
    case_id: int,
    record: CreatedStep,
    parent_id: Optional[int],
    db: Session,
) -> Step:
    """Insert one step and attach it to the case."""
    new_step = Step(step=record.step, result=record.result, parent_step_id=parent_id)
    db.add(new_step)
    db.flush()
    db.add(CaseStep(case_id=case_id, step_id=new_step.id, step_no=record.case_steps.step_no))
    db.flush()
    return new_step


def renumber_siblings(case_id: int, db: Session) -> int:
    """
    Make ``step_no`` contiguous from 1 within each parent of the case.

    Relative order is kept; ties keep the older row first.

    Returns:
        The number of rows whose position changed.
    """
    rows = (
        db.query(CaseStep, Step.parent_step_id)
        .join(Step, Step.id == CaseStep.step_id)
        .filter(CaseStep.case_id == case_id)
        .populate_existing()
        .all()
    )
    groups: dict[Optional[int], list[CaseStep]] = defaultdict(list)
    for case_step, parent_id in rows:
        groups[parent_id].append(case_step)

    changed = 0
    for siblings in groups.values():
        siblings.sort(key=lambda cs: (cs.step_no, cs.id))
        for position, case_step in enumerate(siblings, start=1):
            if case_step.step_no != position:
                case_step.step_no = position
                changed += 1
    db.flush()
    return changed


def list_case_steps(case_id: int, db: Session) -> list[StepResponse]:
    """Return a case's steps grouped by parent, then ordered by position."""
    rows = (
        db.query(Step, CaseStep.step_no)
        .join(CaseStep, CaseStep.step_id == Step.id)
        .filter(CaseStep.case_id == case_id)
        .all()
    )
    rows.sort(key=lambda row: (row[0].parent_step_id or 0, row[1], row[0].id))
    return [_to_response(step, step_no) for step, step_no in rows]


def _to_response(step: Step, step_no: int) -> StepResponse:
    return StepResponse(
        id=step.id,
        step=step.step,
        result=step.result,
        parent_step_id=step.parent_step_id,
        case_steps=CaseStepPosition(step_no=step_no),
    )


def _load_responses(case_id: int, step_ids: list[int], db: Session) -> list[StepResponse]:
    if not step_ids:
        return []
    rows = (
        db.query(Step, CaseStep.step_no)
        .join(CaseStep, CaseStep.step_id == Step.id)
        .filter(CaseStep.case_id == case_id, Step.id.in_(step_ids))
        .populate_existing()
        .all()
    )
    by_id = {step.id: _to_response(step, step_no) for step, step_no in rows}
    seen: set[int] = set()
    result = []
    for step_id in step_ids:
        if step_id in by_id and step_id not in seen:
            seen.add(step_id)
            result.append(by_id[step_id])
    return result


def reconcile_steps(
    case_id: int,
    records: Sequence[StepMutation],
    db: Session,
) -> list[StepResponse]:
    """
    Apply a batch of step mutations for one case in a single transaction.

    Returns the resulting steps: unchanged records first, then updated ones,
    then the newly created ones in creation order.

    Raises:
        ResourceNotFoundError: the case does not exist.
        ValidationError: duplicate temporary ids, or an update that would put
            a step under its own sub-step.
        TransactionError: any database failure; nothing is applied.
    """
    parts = partition_batch(records)

    temp_ids = [record.id for record in parts.created]
    if len(set(temp_ids)) != len(temp_ids):
        raise ValidationError("Temporary step ids must be unique within a batch")

    with transaction(db):
        if db.get(Case, case_id) is None:
            raise ResourceNotFoundError("Case", case_id)

        for record in parts.deleted:
            _delete_step(case_id, record, db)

        temp_id_set = set(temp_ids)
        owned_ids = _case_step_ids(case_id, [r.id for r in parts.updated], db)
        deferred_parents: list[UpdatedStep] = []
        for record in parts.updated:
            if record.id not in owned_ids:
                logger.warning(
                    "Case %s: skipping update of step %s, which is not attached to the case",
                    case_id, record.id,
                )
                continue
            _update_step(case_id, record, db)
            if "parent_step_id" in record.model_fields_set:
                if record.parent_step_id in temp_id_set:
                    deferred_parents.append(record)
                else:
                    parent_id = record.parent_step_id
                    if parent_id is not None and not _case_step_ids(case_id, [parent_id], db):
                        logger.warning(
                            "Case %s: step %s names unknown parent %r, moving it to root",
                            case_id, record.id, parent_id,
                        )
                        parent_id = None
                    _set_parent(record.id, parent_id, db)

        persisted_ids = _case_step_ids(
            case_id, (r.parent_step_id for r in parts.created if r.parent_step_id not in temp_id_set), db
        )
        plan = order_for_creation(parts.created, persisted_ids)
        if plan.detached:
            logger.warning(
                "Case %s: cyclic or dangling parents among new steps %r, creating them at root level",
                case_id, plan.detached,
            )

        id_map: dict = {}
        created_ids = []
        for record in plan.ordered:
            parent_id = record.parent_step_id
            if parent_id in temp_id_set:
                parent_id = id_map.get(parent_id)
            new_step = _create_step(case_id, record, parent_id, db)
            id_map[record.id] = new_step.id
            created_ids.append(new_step.id)

        for record in deferred_parents:
            _set_parent(record.id, id_map.get(record.parent_step_id), db)

        if parts.deleted or parts.updated or parts.created:
            renumber_siblings(case_id, db)

        responses = _load_responses(
            case_id,
            [r.id for r in parts.unchanged] + [r.id for r in parts.updated] + created_ids,
            db,
        )

    return responses
