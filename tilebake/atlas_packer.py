"""
Atlas packer - packs loose tile images into a single RGBA atlas.

Guillotine packing into a power-of-two bin. Results depend only on the order
of the input list: placement order is a stable sort on (height, width,
input index) and free regions are kept in an ordered list, so packing the
same images twice gives identical rectangles and identical pixels.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
from PIL import Image
from .constants import ATLAS_IMAGE_MODE
from .errors import PackingOverflowError
from .logging_config import get_logger
from .schema import SpritePosition

logger = get_logger('atlas_packer')


@dataclass
class _FreeRect:
    x: int
    y: int
    width: int
    height: int


@dataclass
class PackedAtlas:
    """Packed atlas image plus one rectangle per input, in input order."""
    width: int
    height: int
    image: Image.Image
    rects: List[SpritePosition] = field(default_factory=list)


def _next_power_of_two(value: int) -> int:
    power = 1
    while power < value:
        power *= 2
    return power


def _place_all(
    sizes: List[Tuple[int, int]],
    order: List[int],
    bin_width: int,
    bin_height: int
) -> Optional[List[Tuple[int, int]]]:
    """
    Try to place padded sizes into a bin of the given dimensions.

    Args:
        sizes: Padded (width, height) per input
        order: Input indices in placement order
        bin_width: Bin width in pixels
        bin_height: Bin height in pixels

    Returns:
        Top-left (x, y) per input, or None if something does not fit
    """
    free_rects = [_FreeRect(0, 0, bin_width, bin_height)]
    positions: List[Tuple[int, int]] = [(0, 0)] * len(sizes)

    for index in order:
        width, height = sizes[index]
        best = None
        best_score = None
        for slot, free in enumerate(free_rects):
            if free.width < width or free.height < height:
                continue
            # Best short side fit; ties broken by position then list order
            leftover = min(free.width - width, free.height - height)
            score = (leftover, free.y, free.x, slot)
            if best_score is None or score < best_score:
                best_score = score
                best = slot
        if best is None:
            return None

        free = free_rects.pop(best)
        positions[index] = (free.x, free.y)

        right = _FreeRect(free.x + width, free.y, free.width - width, height)
        below = _FreeRect(free.x, free.y + height, free.width, free.height - height)
        for remainder in (right, below):
            if remainder.width > 0 and remainder.height > 0:
                free_rects.append(remainder)

    return positions


def pack(images: List[Image.Image], padding: int = 0, max_size: int = 4096) -> PackedAtlas:
    """
    Pack images into one atlas.

    Args:
        images: Decoded images; converted to RGBA if needed
        padding: Empty pixels kept to the right of and below each image
        max_size: Largest allowed atlas width/height

    Returns:
        PackedAtlas with rects[i] describing images[i]

    Raises:
        PackingOverflowError: If the images cannot fit in max_size x max_size
    """
    images = [img if img.mode == ATLAS_IMAGE_MODE else img.convert(ATLAS_IMAGE_MODE) for img in images]
    if not images:
        return PackedAtlas(0, 0, Image.new(ATLAS_IMAGE_MODE, (0, 0)), [])

    # Padding is only needed between images, never past the atlas edge
    sizes = [
        (min(img.width + padding, max_size), min(img.height + padding, max_size))
        for img in images
    ]
    placeable = [i for i, img in enumerate(images) if img.width > 0 and img.height > 0]
    order = sorted(placeable, key=lambda i: (-images[i].height, -images[i].width, i))

    for i in placeable:
        if images[i].width > max_size or images[i].height > max_size:
            raise PackingOverflowError(
                f"Image {i} of {images[i].width}x{images[i].height} exceeds maximum atlas size {max_size}"
            )
    largest_w = max((sizes[i][0] for i in placeable), default=1)
    largest_h = max((sizes[i][1] for i in placeable), default=1)

    total_area = sum(sizes[i][0] * sizes[i][1] for i in placeable)
    side = _next_power_of_two(max(largest_w, largest_h, math.isqrt(max(total_area - 1, 0)) + 1))
    bin_width = min(side, max_size)
    bin_height = min(side, max_size)

    while True:
        positions = _place_all(sizes, order, bin_width, bin_height)
        if positions is not None:
            break
        if bin_width >= max_size and bin_height >= max_size:
            raise PackingOverflowError(
                f"{len(images)} images do not fit in a {max_size}x{max_size} atlas"
            )
        if bin_width <= bin_height and bin_width < max_size:
            bin_width = min(bin_width * 2, max_size)
        else:
            bin_height = min(bin_height * 2, max_size)
        logger.debug(f"Growing atlas bin to {bin_width}x{bin_height}")

    rects = []
    for i, img in enumerate(images):
        x, y = positions[i]
        rects.append(SpritePosition(x=x, y=y, width=img.width, height=img.height))

    width = max((r.x + r.width for r in rects), default=0)
    height = max((r.y + r.height for r in rects), default=0)
    atlas = Image.new(ATLAS_IMAGE_MODE, (width, height), (0, 0, 0, 0))
    for img, rect in zip(images, rects):
        if rect.width and rect.height:
            atlas.paste(img, (rect.x, rect.y))

    logger.debug(f"Packed {len(images)} images into {width}x{height} atlas")
    return PackedAtlas(width=width, height=height, image=atlas, rects=rects)
