"""
Named adjustment presets.

A preset is data: a total assignment of brightness, contrast, saturation
and tint. Applying one overwrites all four fields at once (it never merges
with the previous values) and records a single "preset-<name>" checkpoint.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from CS_Libs.constants import PRESET_LABEL_PREFIX
from CS_Libs.ImageEditingLib.editor_models import RgbaColor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Preset:
    name: str
    brightness: float
    contrast: float
    saturation: float
    tint: Optional[RgbaColor] = None


# Tint alpha is the overlay strength (0.4 -> 102, 0.25 -> 64, ...)
PRESETS: Mapping[str, Preset] = MappingProxyType({
    p.name: p for p in (
        Preset("moody", -10, 20, -20, (0, 40, 60, 102)),
        Preset("cinematic", 0, 15, -10, (0, 100, 150, 64)),
        Preset("vintage", 5, -10, -20, (220, 180, 50, 77)),
        Preset("warm", 5, 5, 10, (255, 140, 0, 51)),
        Preset("cool", 0, 10, -10, (0, 180, 255, 51)),
        Preset("bw", 0, 20, -100, None),
    )
})


def get_preset(name: str) -> Preset:
    """
    Look up a preset by name.

    Raises:
        KeyError: If no preset has that name
    """
    try:
        return PRESETS[name]
    except KeyError:
        available = ", ".join(PRESETS)
        raise KeyError(f"Unknown preset '{name}'. Available presets: {available}") from None


def apply_preset(session: Any, name: str) -> Preset:
    """
    Overwrite the session's brightness, contrast, saturation and tint.

    Args:
        session: EditorSession to modify
        name: Preset name (see PRESETS)

    Returns:
        The applied preset
    """
    preset = get_preset(name)
    session.adjustments = session.adjustments.with_changes(
        brightness=preset.brightness,
        contrast=preset.contrast,
        saturation=preset.saturation,
        tint=preset.tint,
    )
    session.checkpoint(f"{PRESET_LABEL_PREFIX}{preset.name}")
    logger.debug(f"Applied preset '{preset.name}'")
    return preset
