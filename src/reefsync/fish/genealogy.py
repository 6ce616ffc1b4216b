"""
Fish family tree resolution.

Parents are stored as nullable self-references on the fish row, so lineage is
a DAG walked from the relational store. Ancestors are followed depth-first
(parent 1 before parent 2); descendants are found by querying for rows naming
the current fish as either parent. A visited set keeps every fish in each
direction to a single appearance, so a corrupt cycle cannot loop forever.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy import or_

from reefsync.db.models import Fish
from reefsync.errors import NotFoundError, ValidationError
from reefsync.validation import validate_id

if TYPE_CHECKING:
    from reefsync.db.store import RelationalStore

MAX_GENERATION_DEPTH = 50


@dataclass(frozen=True)
class FamilyMember:
    id: int
    parent1_id: int | None
    parent2_id: int | None
    generation: int


@dataclass
class FamilyTree:
    fish_id: int
    ancestors: list[FamilyMember] = field(default_factory=list)
    descendants: list[FamilyMember] = field(default_factory=list)
    generation_count: int = 0
    descendant_generation_count: int = 0


def _member(row: Fish, generation: int) -> FamilyMember:
    return FamilyMember(
        id=row.id,
        parent1_id=row.parent1_id,
        parent2_id=row.parent2_id,
        generation=generation,
    )


async def build_family_tree(store: RelationalStore, fish_id: int) -> FamilyTree:
    """
    Resolve the ancestors and descendants of a fish.

    The fish itself is the first ancestor entry at generation 0. Parents are
    generation 1, grandparents 2, and so on; children are descendant
    generation 1.

    Raises:
        ValidationError: If ``fish_id`` is invalid or the lineage is deeper
            than ``MAX_GENERATION_DEPTH``.
        NotFoundError: If the fish does not exist.
        DatabaseError: If the store cannot be read.
    """
    validate_id(fish_id, "fish ID")

    root = await store.get(Fish, id=fish_id)
    if root is None:
        msg = f"Fish with ID {fish_id} not found"
        raise NotFoundError(msg)

    tree = FamilyTree(fish_id=fish_id, ancestors=[_member(root, 0)])

    visited = {fish_id}

    async def walk_up(parent_ids: tuple[int | None, int | None], generation: int) -> None:
        for parent_id in parent_ids:
            if parent_id is None or parent_id in visited:
                continue
            visited.add(parent_id)
            parent = await store.get(Fish, id=parent_id)
            if parent is None:
                continue
            if generation > MAX_GENERATION_DEPTH:
                msg = f"Max ancestor depth exceeded at generation {generation}"
                raise ValidationError(msg)
            tree.generation_count = max(tree.generation_count, generation)
            tree.ancestors.append(_member(parent, generation))
            await walk_up((parent.parent1_id, parent.parent2_id), generation + 1)

    await walk_up((root.parent1_id, root.parent2_id), 1)

    # Descendants are walked independently of the ancestor pass.
    visited.clear()
    visited.add(fish_id)

    async def walk_down(parent_id: int, generation: int) -> None:
        children = await store.select(
            Fish,
            or_(Fish.parent1_id == parent_id, Fish.parent2_id == parent_id),
            order_by=Fish.id,
        )
        for child in children:
            if child.id in visited:
                continue
            visited.add(child.id)
            if generation > MAX_GENERATION_DEPTH:
                msg = f"Max descendant depth exceeded at generation {generation}"
                raise ValidationError(msg)
            tree.descendant_generation_count = max(tree.descendant_generation_count, generation)
            tree.descendants.append(_member(child, generation))
            await walk_down(child.id, generation + 1)

    await walk_down(fish_id, 1)

    tree.ancestors.sort(key=lambda member: member.generation)
    tree.descendants.sort(key=lambda member: member.generation)
    return tree
