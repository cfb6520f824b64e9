import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np
import trimesh
from shapely.geometry import box as rect
from shapely.ops import unary_union

from .utils import timed, DEFAULT_SITE_WIDTH, DEFAULT_HEIGHT_MULTIPLIER

logger = logging.getLogger(__name__)


@dataclass
class MeshInstance:
    """
    A local vertex buffer placed in the world by a 4x4 transform.

    faces holds 0-based triangle indices into vertices; when it is None the
    vertex buffer is read as a triangle soup, three vertices per face.
    """
    vertices: np.ndarray
    faces: Optional[np.ndarray] = None
    transform: np.ndarray = field(default_factory=lambda: np.eye(4))
    name: Optional[str] = None

    def __post_init__(self):
        self.vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        if self.faces is not None:
            self.faces = np.asarray(self.faces, dtype=np.int64).reshape(-1, 3)
        self.transform = np.asarray(self.transform, dtype=np.float64)

    @classmethod
    def from_trimesh(cls, mesh: trimesh.Trimesh, transform=None, name=None) -> 'MeshInstance':
        return cls(
            vertices=np.array(mesh.vertices),
            faces=np.array(mesh.faces),
            transform=np.eye(4) if transform is None else transform,
            name=name,
        )

    def vertex_count(self) -> int:
        return len(self.vertices)


@dataclass
class MassingMetrics:
    """Display figures derived from a span list."""
    span_count: int = 0
    floor_area: float = 0.0
    max_height: float = 0.0


def _cell_size(resolution, site_width):
    return site_width / resolution


def span_transform(span, resolution, site_width=DEFAULT_SITE_WIDTH, height_multiplier=DEFAULT_HEIGHT_MULTIPLIER):
    """World transform placing a unit box over a span, site centered on the origin, Y up."""
    cell = _cell_size(resolution, site_width)
    height = span.height * height_multiplier
    center_x = (span.start_column + span.width / 2.0 - resolution / 2.0) * cell
    center_z = (span.row + 0.5 - resolution / 2.0) * cell

    scale = np.diag([span.width * cell, height, cell, 1.0])
    translate = trimesh.transformations.translation_matrix([center_x, height / 2.0, center_z])
    return translate @ scale


@timed
def spans_to_instances(
    spans,
    resolution,
    site_width=DEFAULT_SITE_WIDTH,
    height_multiplier=DEFAULT_HEIGHT_MULTIPLIER,
) -> List[MeshInstance]:
    """Builds one box instance per span, in span order."""
    unit = trimesh.creation.box(extents=(1.0, 1.0, 1.0))
    instances = []
    for i, span in enumerate(spans):
        m = span_transform(span, resolution, site_width, height_multiplier)
        instances.append(MeshInstance.from_trimesh(unit, transform=m, name=f"span_{i}"))
    return instances


def build_scene(
    spans,
    resolution,
    site_width=DEFAULT_SITE_WIDTH,
    height_multiplier=DEFAULT_HEIGHT_MULTIPLIER,
) -> trimesh.Scene:
    """Same boxes as spans_to_instances, as a trimesh scene graph."""
    scene = trimesh.Scene()
    for inst in spans_to_instances(spans, resolution, site_width, height_multiplier):
        mesh = trimesh.Trimesh(vertices=inst.vertices, faces=inst.faces, process=False)
        scene.add_geometry(mesh, node_name=inst.name, geom_name=inst.name, transform=inst.transform)
    return scene


def compute_metrics(
    spans,
    resolution,
    site_width=DEFAULT_SITE_WIDTH,
    height_multiplier=DEFAULT_HEIGHT_MULTIPLIER,
) -> MassingMetrics:
    """Approximate floor area (union of footprints) and tallest column."""
    if not spans:
        return MassingMetrics()

    cell = _cell_size(resolution, site_width)
    footprints = [
        rect(span.start_column * cell, span.row * cell, span.end_column * cell, (span.row + 1) * cell)
        for span in spans
    ]
    return MassingMetrics(
        span_count=len(spans),
        floor_area=float(unary_union(footprints).area),
        max_height=max(span.height for span in spans) * height_multiplier,
    )
