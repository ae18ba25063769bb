"""Rendition ladder planning.

The ladder never upscales and deliberately caps at 1080p: 4K sources are
packaged as a single 1080p rendition because the players this library
serves cannot decode 2160p HEVC reliably.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenditionSpec:
    """Fixed encode parameters of one ladder rung."""

    name: str
    width: int
    height: int
    crf: int
    """Constant-quality target (CRF for libx265, CQ for NVENC)."""

    maxrate: str
    bufsize: str


RENDITIONS: tuple[RenditionSpec, ...] = (
    RenditionSpec("1080p", 1920, 1080, crf=26, maxrate="4000k", bufsize="6000k"),
    RenditionSpec("720p", 1280, 720, crf=28, maxrate="2500k", bufsize="4000k"),
    RenditionSpec("480p", 854, 480, crf=30, maxrate="1500k", bufsize="2500k"),
)
"""Predefined rungs, highest first."""

_BY_NAME = {spec.name: spec for spec in RENDITIONS}


def get_rendition(name: str) -> RenditionSpec | None:
    """Look up a predefined rung by name ("1080p")."""
    return _BY_NAME.get(name)


def plan_renditions(width: int, height: int) -> list[RenditionSpec]:
    """Plan the rendition ladder for a source resolution.

    Args:
        width: Source width in pixels.
        height: Source height in pixels.

    Returns:
        Non-empty list of RenditionSpec, highest first, none taller than
        the source except when the source is below the lowest rung.
    """
    if height >= 2160 or width >= 3840:
        logger.warning(
            "Source is %dx%d; capping ladder at 1080p for player compatibility",
            width,
            height,
        )
        return [_BY_NAME["1080p"]]
    if height >= 1080 or width >= 1920:
        return [_BY_NAME["1080p"]]
    if height >= 720 or width >= 1280:
        return [_BY_NAME["720p"]]

    for spec in RENDITIONS:
        if spec.height <= height:
            return [spec]
    return [RENDITIONS[-1]]
