"""
Inheritance resolution over the derivation graph (record -> derives_from ancestors).

Precedence when merging ancestors: haram > conditional > halal > unknown.
The visited set is a frozenset copied per branch, so sibling branches never
see each other's nodes and a cycle only drops the branch that closes it.
The walk keeps its own stack, so chain depth is bounded by the knowledge base only.
"""
from typing import FrozenSet, Optional, Union
import logging

from halal_core.knowledge.knowledge_base import KnowledgeBase
from halal_core.models.evaluation_result import ResolvedStatus
from halal_core.models.ingredient_record import IngredientRecord, Ruling

logger = logging.getLogger(__name__)


class _Frame:
    """One record whose ancestors are being merged."""

    __slots__ = ("record", "visited", "next_index", "waiting_on", "chain", "missing", "steps",
                 "haram_source", "has_conditional")

    def __init__(self, record: IngredientRecord, visited: FrozenSet[str]):
        self.record = record
        self.visited = visited | {record.identifier}
        self.next_index = 0
        self.waiting_on: Optional[str] = None
        self.chain: dict[str, None] = {}
        self.missing: dict[str, None] = {}
        self.steps: list[str] = []
        self.haram_source: Optional[str] = None
        self.has_conditional = False

    def merge(self, parent: str, sub: Optional[ResolvedStatus]) -> None:
        key = self.record.identifier
        if sub is None:
            self.steps.append(f"{key}: cycle via {parent} dropped")
            return
        self.chain[parent] = None
        self.chain.update(dict.fromkeys(sub.chain))
        self.missing.update(dict.fromkeys(sub.missing_ancestors))
        self.steps.extend(sub.steps)
        if sub.ruling == Ruling.HARAM:
            if self.haram_source is None:
                self.haram_source = sub.inherited_haram_source or parent
        elif sub.ruling == Ruling.CONDITIONAL:
            self.has_conditional = True

    def finish(self) -> ResolvedStatus:
        key = self.record.identifier
        if self.haram_source is not None:
            ruling = Ruling.HARAM
            self.steps.append(f"{key}: haram inherited from {self.haram_source}")
        elif self.record.ruling == Ruling.HARAM:
            ruling = Ruling.HARAM
            self.steps.append(f"{key}: own ruling haram")
        elif self.has_conditional:
            ruling = Ruling.CONDITIONAL
            self.steps.append(f"{key}: conditional inherited from ancestors")
        else:
            ruling = self.record.ruling
            self.steps.append(f"{key}: own ruling {ruling.value}")
        return ResolvedStatus(
            identifier=key,
            ruling=ruling,
            inherited_haram_source=self.haram_source,
            chain=tuple(self.chain),
            missing_ancestors=tuple(self.missing),
            steps=tuple(self.steps),
        )


class InheritanceResolver:
    def __init__(self, kb: KnowledgeBase):
        self._kb = kb

    def _open(self, identifier: str, visited: FrozenSet[str]) -> Union[None, ResolvedStatus, _Frame]:
        record = self._kb.get(identifier)
        if record is None:
            return None
        key = record.identifier
        if key in visited:
            logger.debug("INHERITANCE cycle branch dropped identifier=%s path=%s", key, sorted(visited))
            return None
        if not record.derives_from:
            return ResolvedStatus(
                identifier=key,
                ruling=record.ruling,
                steps=(f"{key}: own ruling {record.ruling.value}",),
            )
        return _Frame(record, visited)

    def resolve(self, identifier: str, visited: FrozenSet[str] = frozenset()) -> Optional[ResolvedStatus]:
        """
        Resolve the effective ruling of `identifier` through its ancestors.
        Returns None when the identifier is absent or already on the current path.
        """
        opened = self._open(identifier, visited)
        if not isinstance(opened, _Frame):
            return opened

        stack = [opened]
        while True:
            frame = stack[-1]
            child: Optional[_Frame] = None
            ancestors = frame.record.derives_from
            while frame.next_index < len(ancestors):
                ancestor = ancestors[frame.next_index]
                frame.next_index += 1
                parent = self._kb.get(ancestor)
                if parent is None:
                    frame.missing[ancestor] = None
                    frame.steps.append(f"{frame.record.identifier}: ancestor {ancestor} not in knowledge base")
                    continue
                sub = self._open(parent.identifier, frame.visited)
                if isinstance(sub, _Frame):
                    frame.waiting_on = parent.identifier
                    child = sub
                    break
                frame.merge(parent.identifier, sub)
            if child is not None:
                stack.append(child)
                continue

            done = frame.finish()
            stack.pop()
            if not stack:
                return done
            stack[-1].merge(stack[-1].waiting_on, done)


def resolve(kb: KnowledgeBase, identifier: str) -> Optional[ResolvedStatus]:
    return InheritanceResolver(kb).resolve(identifier)
