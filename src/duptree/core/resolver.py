"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/resolver.py
Interactive resolution of duplicate groups as an explicit state machine.

STATES
------
Reviewing(index) : Looking at the group at `index` of the descending-waste list
Done             : The list is empty
Quit             : The user asked to stop

Entering Reviewing(i) re-verifies the group first. A group left with fewer than
two members is dropped and the next group slides into position i, without
asking anything. Otherwise the choice function picks one of:

    "1".."n"  keep only member k, delete the others
    "D"       delete all members
    "n" / "p" next / previous group (wrapping around)
    "q"       quit

Deleting resolves the group: it leaves the list and the registry, and the state
stays at i, which now holds the following group. The choice function must only
return offered keys; anything else raises InvalidChoice.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Union

from duptree.core.errors import InvalidChoice
from duptree.core.interfaces import ChoiceReader
from duptree.core.models import ContentHash, ReverifyReport
from duptree.core.registry import DuplicateRegistry, Rehash
from duptree.core.tree import Node, DeletionCallback

logger = logging.getLogger(__name__)

DELETE_ALL = "D"
NEXT = "n"
PREVIOUS = "p"
QUIT = "q"


@dataclass(frozen=True)
class Reviewing:
    index: int


@dataclass(frozen=True)
class Done:
    pass


@dataclass(frozen=True)
class Quit:
    pass


State = Union[Reviewing, Done, Quit]


@dataclass(frozen=True)
class GroupView:
    """What the user is shown before choosing: position, hash, members and waste."""
    position: int
    total: int
    hash: ContentHash
    members: List[Node]
    duplicated_bytes: int
    reverify: Optional[ReverifyReport] = None


GroupCallback = Callable[[GroupView], None]


class ResolutionLoop:
    """
    Walks the duplicate groups of a registry, asking `choose` what to do with each.

    Usage:
        loop = ResolutionLoop(registry, engine.rehash, choose=read_option)
        final_state = loop.run()

    Or step by step (for scripted sessions):
        state = loop.start()
        while isinstance(state, Reviewing):
            state = loop.step(state)
    """

    def __init__(
            self,
            registry: DuplicateRegistry,
            rehash: Rehash,
            choose: ChoiceReader,
            trash: bool = False,
            on_deleted: Optional[DeletionCallback] = None,
            on_group: Optional[GroupCallback] = None
    ):
        self.registry = registry
        self.rehash = rehash
        self.choose = choose
        self.trash = trash
        self.on_deleted = on_deleted
        self.on_group = on_group
        self.order: List[ContentHash] = []
        self.failed_deletions: List[str] = []

    def start(self) -> State:
        self.order = self.registry.groups_by_descending_waste()
        return Reviewing(0) if self.order else Done()

    def run(self) -> State:
        state = self.start()
        while isinstance(state, Reviewing):
            state = self.step(state)
        if isinstance(state, Done):
            logger.info("All duplicate groups resolved")
        return state

    def step(self, state: State) -> State:
        """Performs one transition from a Reviewing state."""
        if not isinstance(state, Reviewing):
            return state
        if not self.order:
            return Done()

        count = len(self.order)
        index = state.index % count
        content_hash = self.order[index]

        report = self.registry.reverify(content_hash, self.rehash)
        members = self.registry.members(content_hash)

        if len(members) < 2:
            logger.info(f"Group {content_hash.short()} has {len(members)} member(s) left, skipping it")
            del self.order[index]
            return self._at(index)

        if self.on_group:
            self.on_group(GroupView(
                position=index + 1,
                total=count,
                hash=content_hash,
                members=members,
                duplicated_bytes=self.registry.duplicated_bytes(content_hash),
                reverify=report,
            ))

        options = self.options_for(members)
        choice = self.choose(options)
        if choice not in options:
            raise InvalidChoice(choice, options)

        if choice == NEXT:
            return Reviewing((index + 1) % count)
        if choice == PREVIOUS:
            return Reviewing((index - 1) % count)
        if choice == QUIT:
            logger.info("Quit")
            return Quit()
        if choice == DELETE_ALL:
            self._delete(members)
        else:
            keep = int(choice) - 1
            self._delete([m for k, m in enumerate(members) if k != keep])

        self.registry.discard(content_hash)
        del self.order[index]
        return self._at(index)

    @staticmethod
    def options_for(members: List[Node]) -> Dict[str, str]:
        options = {str(k): f'Keep only "{node.path}"' for k, node in enumerate(members, 1)}
        options[DELETE_ALL] = "Delete ALL"
        options[NEXT] = "Next duplicate"
        options[PREVIOUS] = "Previous duplicate"
        options[QUIT] = "Quit"
        return options

    def _at(self, index: int) -> State:
        if not self.order:
            return Done()
        return Reviewing(index % len(self.order))

    def _delete(self, nodes: List[Node]) -> None:
        for node in nodes:
            try:
                node.delete(trash=self.trash, on_deleted=self.on_deleted)
            except RuntimeError as e:
                logger.warning(f"Failed to delete {node.path}: {e}")
                self.failed_deletions.append(node.path)
