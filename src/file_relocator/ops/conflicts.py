"""Detect filename collisions in a batch and assign disambiguation indices.

Collisions are detected by exact filename only: a file already on disk
counts when its name matches the desired filename string exactly. No
content hashing and no case-insensitive aliasing.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from ..models import MoveDescriptor
from .fileops import is_same_file

log = logger.bind(component="conflicts")


@dataclass
class ConflictGroup:
    """Descriptors that all want the same filename in the same directory."""

    directory: Path
    filename: str
    moves: list[MoveDescriptor] = field(default_factory=list)
    existing: int = 0
    in_place: MoveDescriptor | None = None

    @property
    def total(self) -> int:
        return self.existing + len(self.moves)

    def probe_existing(self) -> int:
        """Count the pre-existing file at directory/filename (0 or 1).

        A file that is itself one of this group's sources is not a
        competitor, e.g. a file already carrying its desired name. That
        move is remembered as in_place and keeps the plain name.
        """
        candidate = self.directory / self.filename
        self.existing = 0
        self.in_place = None
        if not os.path.lexists(candidate):
            return self.existing
        for move in self.moves:
            if is_same_file(move.source_path, candidate):
                log.debug(f"Existing {candidate} is one of the files being moved")
                self.in_place = move
                return self.existing
        log.debug(f"Existing conflict: {candidate}")
        self.existing = 1
        return self.existing

    def assign_indices(self) -> None:
        """Index all but the primary move.

        The primary is the move already sitting at the name, else the
        largest. Larger files sort first; ties keep batch order.
        Numbering starts after the pre-existing file, and index 1 is the
        unindexed name.
        """
        if self.total <= 1:
            return
        ordered = sorted(self.moves, key=lambda m: m.size, reverse=True)
        if self.in_place is not None:
            ordered = [self.in_place] + [m for m in ordered if m is not self.in_place]
        for position, move in enumerate(ordered):
            index = self.existing + position + 1
            if index > 1 and move.assign_index(index):
                log.debug(f"{move.source_path.name} -> {move.target_filename}")


def group_by_directory(
    descriptors: list[MoveDescriptor],
) -> dict[Path, list[MoveDescriptor]]:
    """Group descriptors by destination directory, in first-seen order."""
    groups: dict[Path, list[MoveDescriptor]] = {}
    for desc in descriptors:
        groups.setdefault(desc.dest_dir, []).append(desc)
    return groups


class ConflictResolver:
    """Assigns disambiguation indices within one destination directory."""

    def subgroups(
        self, directory: Path, moves: list[MoveDescriptor]
    ) -> list[ConflictGroup]:
        groups: dict[str, ConflictGroup] = {}
        for move in moves:
            name = move.desired_filename
            if name not in groups:
                groups[name] = ConflictGroup(directory=directory, filename=name)
            groups[name].moves.append(move)
        return list(groups.values())

    def resolve(
        self, directory: Path, moves: list[MoveDescriptor]
    ) -> list[ConflictGroup]:
        """Probe the disk and index colliding moves for one directory.

        Returns the groups that needed disambiguation.
        """
        conflicted = []
        for group in self.subgroups(directory, moves):
            group.probe_existing()
            if group.total > 1:
                group.assign_indices()
                conflicted.append(group)
        if conflicted:
            log.info(
                f"{directory}: {len(conflicted)} filename collision(s) "
                f"among {len(moves)} moves"
            )
        return conflicted

    def resolve_all(self, descriptors: list[MoveDescriptor]) -> list[ConflictGroup]:
        """Resolve every destination-directory group in the batch."""
        conflicted = []
        for directory, moves in group_by_directory(descriptors).items():
            conflicted.extend(self.resolve(directory, moves))
        return conflicted
