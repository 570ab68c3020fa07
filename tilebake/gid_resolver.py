"""
GID resolver - maps global tile ids to (atlas, sprite) pairs.

    Tileset A (first_gid=1):  GIDs 1..49   -> atlas 0, sprites 0..48
    Tileset B (first_gid=50): GIDs 50..119 -> atlas 1, sprites 0..69

GID 0 is the empty cell and is never in the table. The table is built once
per run so each lookup is a dict access instead of a scan over tilesets.
"""

import bisect
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from .constants import EMPTY_GID
from .errors import InvalidGidError, MapParseError
from .logging_config import get_logger

logger = get_logger('gid_resolver')


@dataclass(frozen=True)
class GidEntry:
    tileset_index: int
    sprite_index: int


class GidResolver:
    """Resolves GIDs against the map's tilesets."""

    def __init__(self, first_gids: Sequence[int], tile_ids: Sequence[Sequence[int]]):
        """
        Build the GID table.

        Args:
            first_gids: first_gid of each tileset, ascending
            tile_ids: For each tileset, the local tile id of every sprite in
                sprite order (range(n) for sheets, possibly sparse for
                image collections)

        Raises:
            MapParseError: If first_gids are not ascending or ranges overlap
        """
        if len(first_gids) != len(tile_ids):
            raise ValueError("first_gids and tile_ids must have the same length")

        self.first_gids: List[int] = list(first_gids)
        self.table: Dict[int, GidEntry] = {}

        for index, (first_gid, ids) in enumerate(zip(first_gids, tile_ids)):
            if first_gid <= EMPTY_GID:
                raise MapParseError(f"Tileset {index} has invalid first_gid {first_gid}")
            if index > 0 and first_gid <= first_gids[index - 1]:
                raise MapParseError(
                    f"Tileset first_gids are not ascending: {first_gids[index - 1]} then {first_gid}"
                )
            next_first = first_gids[index + 1] if index + 1 < len(first_gids) else None
            for sprite_index, local_id in enumerate(ids):
                gid = first_gid + local_id
                if next_first is not None and gid >= next_first:
                    raise MapParseError(
                        f"Tileset {index} tile {local_id} (GID {gid}) overlaps the next tileset"
                    )
                self.table[gid] = GidEntry(index, sprite_index)

        logger.debug(f"GID table: {len(self.table)} entries over {len(self.first_gids)} tilesets")

    def resolve(self, gid: int) -> Optional[GidEntry]:
        """
        Resolve a GID.

        A GID at or above a tileset's first_gid but past its last tile (in
        the gap before the next first_gid, or after the last tileset) is
        invalid; it is not mapped to gid - first_gid.

        Returns:
            None for the empty GID, otherwise the GidEntry

        Raises:
            InvalidGidError: If no tileset contains the GID
        """
        if gid == EMPTY_GID:
            return None
        entry = self.table.get(gid)
        if entry is None:
            raise InvalidGidError(gid)
        return entry

    def tileset_for_gid(self, gid: int) -> Optional[int]:
        """Index of the tileset with the greatest first_gid <= gid, if any."""
        position = bisect.bisect_right(self.first_gids, gid)
        if position == 0:
            return None
        return position - 1

    def __contains__(self, gid: int) -> bool:
        return gid in self.table

    def __len__(self) -> int:
        return len(self.table)
