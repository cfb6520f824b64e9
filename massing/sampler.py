import io
import logging
from dataclasses import dataclass, asdict, replace
from enum import Enum

import numpy as np
from PIL import Image, ImageEnhance, ImageFilter, ImageOps, UnidentifiedImageError

from .errors import DecodeError, InvalidParameterError
from .utils import timed, MAX_RESOLUTION, RESOLUTION_STEP, MERGE_THRESHOLD

logger = logging.getLogger(__name__)

FLOORPLAN_CONTRAST = 2.0
HEIGHTMAP_BLUR_RADIUS = 1


class SampleMode(str, Enum):
    FLOORPLAN = 'floorplan'
    HEIGHTMAP = 'heightmap'


@dataclass(frozen=True)
class IngestParams:
    """
    Parameters for one ingest run.

    complexity drives the grid resolution, threshold is the luminance cut-off
    (0-255) below which a cell counts as occupied, and invert flips the image
    before the cut-off is applied.
    """
    complexity: int = 4
    mode: SampleMode = SampleMode.FLOORPLAN
    threshold: int = 128
    invert: bool = False
    merge_threshold: float = MERGE_THRESHOLD

    def validate(self) -> 'IngestParams':
        if isinstance(self.complexity, bool) or not isinstance(self.complexity, int) or self.complexity <= 0:
            raise InvalidParameterError(f"complexity must be a positive integer, got {self.complexity!r}")
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int) or not 0 <= self.threshold <= 255:
            raise InvalidParameterError(f"threshold must be an integer in [0, 255], got {self.threshold!r}")
        try:
            SampleMode(self.mode)
        except ValueError:
            raise InvalidParameterError(f"unknown sampling mode {self.mode!r}") from None
        if isinstance(self.merge_threshold, bool) or not isinstance(self.merge_threshold, (int, float)) \
                or not 0.0 <= self.merge_threshold < 1.0:
            raise InvalidParameterError(f"merge_threshold must be in [0, 1), got {self.merge_threshold!r}")
        return self

    @property
    def resolution(self) -> int:
        return resolution_for(self.complexity)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['mode'] = SampleMode(self.mode).value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'IngestParams':
        params = cls(
            complexity=data.get('complexity', 4),
            mode=data.get('mode', SampleMode.FLOORPLAN.value),
            threshold=data.get('threshold', 128),
            invert=bool(data.get('invert', False)),
            merge_threshold=data.get('merge_threshold', MERGE_THRESHOLD),
        )
        return replace(params.validate(), mode=SampleMode(params.mode))


def resolution_for(complexity: int) -> int:
    """Grid side length for a complexity value, clamped to MAX_RESOLUTION."""
    return min(MAX_RESOLUTION, complexity * RESOLUTION_STEP)


def decode_image(data) -> Image.Image:
    """Decodes raw image bytes into an RGBA Pillow image."""
    if isinstance(data, Image.Image):
        return data.convert('RGBA')
    try:
        img = Image.open(io.BytesIO(bytes(data)))
        img.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, TypeError, ValueError) as e:
        raise DecodeError(f"cannot decode image: {e}") from e
    return img.convert('RGBA')


def _draw_scaled(img: Image.Image, resolution: int, invert: bool) -> Image.Image:
    background = (0, 0, 0, 255) if invert else (255, 255, 255, 255)
    canvas = Image.new('RGBA', (resolution, resolution), background)
    scaled = img.resize((resolution, resolution), Image.Resampling.BILINEAR)
    canvas.alpha_composite(scaled)
    return canvas.convert('RGB')


def _prefilter(img: Image.Image, mode: SampleMode, invert: bool) -> Image.Image:
    if mode == SampleMode.FLOORPLAN:
        # near-binary edges
        img = ImageOps.grayscale(img).convert('RGB')
        img = ImageEnhance.Contrast(img).enhance(FLOORPLAN_CONTRAST)
    else:
        img = img.filter(ImageFilter.GaussianBlur(HEIGHTMAP_BLUR_RADIUS))
    if invert:
        img = ImageOps.invert(img)
    return img


@timed
def sample_image(data, params: IngestParams) -> np.ndarray:
    """
    Samples an image into a normalized height grid.

    Returns a read-only (r, r) float array, r = min(256, complexity * 10),
    with every value in [0, 1]. Floorplan mode yields 1.0 for every occupied
    cell, heightmap mode yields (255 - luminance) / 255.

    Raises:
        InvalidParameterError: before any decoding, for bad parameters
        DecodeError: if the image bytes cannot be decoded
    """
    params.validate()
    mode = SampleMode(params.mode)
    resolution = params.resolution

    img = decode_image(data)
    img = _draw_scaled(img, resolution, params.invert)
    img = _prefilter(img, mode, params.invert)

    rgb = np.asarray(img, dtype=np.float64)[..., :3]
    luminance = rgb.mean(axis=2)
    occupied = luminance < params.threshold

    if mode == SampleMode.FLOORPLAN:
        grid = np.where(occupied, 1.0, 0.0)
    else:
        grid = np.where(occupied, (255.0 - luminance) / 255.0, 0.0)
    grid = np.clip(grid, 0.0, 1.0)
    grid.setflags(write=False)

    logger.info(
        "Sampled %dx%d grid in %s mode (%d occupied cells)",
        resolution, resolution, mode.value, int(occupied.sum()),
    )
    return grid
