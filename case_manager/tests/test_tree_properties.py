"""
Property-based tests for the tree engine.

Uses Hypothesis to verify universal properties of step creation ordering,
folder tree building and folder moves across many generated inputs.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from hypothesis import given, settings, HealthCheck
from hypothesis import strategies as st

from case_manager.exceptions import InvalidMoveError
from case_manager.models import Folder
from case_manager.schemas.folder import FolderUpdate
from case_manager.schemas.step import CaseStepPosition, CreatedStep
from case_manager.services.folder_tree import build_folder_tree, move_folder
from case_manager.services.step_tree import order_for_creation


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

@st.composite
def parent_indexes(draw: st.DrawFn, max_size: int = 15) -> list[Optional[int]]:
    """
    Generate a valid forest as a list of parent indexes.

    Node ``i`` has either no parent or a parent with a smaller index, so
    the result never contains a cycle.
    """
    n = draw(st.integers(min_value=0, max_value=max_size))
    parents: list[Optional[int]] = []
    for i in range(n):
        if i == 0:
            parents.append(None)
        else:
            parents.append(draw(st.one_of(st.none(), st.integers(min_value=0, max_value=i - 1))))
    return parents


def _created(temp_id, parent) -> CreatedStep:
    return CreatedStep(
        id=temp_id,
        edit_state="new",
        parent_step_id=parent,
        case_steps=CaseStepPosition(step_no=1),
    )


@dataclass
class FakeFolder:
    """Minimal stand-in for the Folder ORM model."""
    id: int
    name: str
    project_id: int
    parent_folder_id: Optional[int]
    detail: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)


# ---------------------------------------------------------------------------
# Step creation ordering
# ---------------------------------------------------------------------------

@given(data=st.data(), parents=parent_indexes())
def test_valid_forest_is_ordered_parents_first(data, parents):
    records = [
        _created(-(i + 1), None if p is None else -(p + 1))
        for i, p in enumerate(parents)
    ]
    shuffled = data.draw(st.permutations(records))

    plan = order_for_creation(shuffled, set())

    assert plan.detached == []
    position = {record.id: index for index, record in enumerate(plan.ordered)}
    assert len(position) == len(records)
    for record in plan.ordered:
        if record.parent_step_id is not None:
            assert position[record.parent_step_id] < position[record.id]


@given(
    refs=st.lists(
        st.one_of(st.none(), st.integers(min_value=-8, max_value=8)),
        max_size=8,
    ),
    persisted=st.sets(st.integers(min_value=1, max_value=8), max_size=4),
)
def test_any_batch_emits_every_record_once(refs, persisted):
    records = [_created(-(i + 1), ref) for i, ref in enumerate(refs)]

    plan = order_for_creation(records, persisted)

    assert sorted(r.id for r in plan.ordered) == sorted(r.id for r in records)
    temp_ids = {r.id for r in records}
    emitted: set = set()
    for record in plan.ordered:
        parent = record.parent_step_id
        assert parent is None or parent in emitted or (parent not in temp_ids and parent in persisted)
        emitted.add(record.id)


# ---------------------------------------------------------------------------
# Folder tree building
# ---------------------------------------------------------------------------

@given(data=st.data(), parents=parent_indexes(max_size=20))
def test_build_folder_tree_contains_every_folder_once(data, parents):
    folders = [
        FakeFolder(id=i + 1, name=f"F{i}", project_id=1, parent_folder_id=None if p is None else p + 1)
        for i, p in enumerate(parents)
    ]
    shuffled = data.draw(st.permutations(folders))

    tree = build_folder_tree(shuffled)

    seen = []
    stack = [(node, None) for node in tree]
    while stack:
        node, parent_id = stack.pop()
        seen.append(node["id"])
        assert node["parent_folder_id"] == parent_id
        stack.extend((child, node["id"]) for child in node["children"])
    assert sorted(seen) == [f.id for f in folders]


# ---------------------------------------------------------------------------
# Folder moves never create cycles
# ---------------------------------------------------------------------------

@settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(
    parents=parent_indexes(max_size=8),
    moves=st.lists(st.tuples(st.integers(0, 7), st.integers(0, 7)), max_size=10),
)
def test_moves_keep_folder_tree_acyclic(db, parents, moves):
    db.query(Folder).delete()
    db.commit()

    ids: list[int] = []
    for p in parents:
        folder = Folder(name="F", project_id=1, parent_folder_id=None if p is None else ids[p])
        db.add(folder)
        db.flush()
        ids.append(folder.id)
    db.commit()
    if not ids:
        return

    for source, target in moves:
        folder_id = ids[source % len(ids)]
        new_parent_id = ids[target % len(ids)]
        before = {f.id: f.parent_folder_id for f in db.query(Folder).all()}
        try:
            move_folder(folder_id, FolderUpdate(parent_folder_id=new_parent_id), db)
        except InvalidMoveError:
            db.expire_all()
            assert {f.id: f.parent_folder_id for f in db.query(Folder).all()} == before

    db.expire_all()
    parent_of = {f.id: f.parent_folder_id for f in db.query(Folder).all()}
    for folder_id in parent_of:
        current: Optional[int] = folder_id
        hops = 0
        while current is not None:
            current = parent_of[current]
            hops += 1
            assert hops <= len(parent_of)
