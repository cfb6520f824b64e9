"""
OBJ export for world-positioned mesh instances.

Every instance's vertices are transformed to world space and written as
``v x y z`` lines, then every face as ``f i j k`` with 1-based indices
offset by the vertex counts of the instances before it.

Malformed instances: by default the export skips what cannot form a
triangle and keeps going. For a triangle soup that is the trailing
``n % 3`` vertices; for indexed faces it is any face that references a
missing vertex. The vertices are still written so later offsets stay
correct, and each skip is logged and recorded in ``ExportDocument.warnings``.
With ``strict=True`` the whole export is aborted with InvalidGeometryError.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List

import numpy as np
import trimesh

from .errors import InvalidGeometryError
from .scene import MeshInstance
from .utils import timed, ensure_dir, OBJ_PRECISION

logger = logging.getLogger(__name__)

HEADER = "# massing OBJ export"


@dataclass
class ExportDocument:
    """A finished OBJ text plus counts gathered while building it."""
    text: str = ""
    vertex_count: int = 0
    face_count: int = 0
    instance_count: int = 0
    warnings: List[str] = field(default_factory=list)


@dataclass
class ExportStats:
    """Statistics from writing an OBJ file."""
    total_vertices: int = 0
    total_faces: int = 0
    total_instances: int = 0
    file_size_bytes: int = 0
    warnings: List[str] = field(default_factory=list)


def _world_vertices(instance) -> np.ndarray:
    vertices = np.asarray(instance.vertices, dtype=np.float64).reshape(-1, 3)
    if len(vertices) == 0:
        return vertices
    transform = getattr(instance, 'transform', None)
    if transform is None:
        return vertices
    return trimesh.transformations.transform_points(vertices, np.asarray(transform, dtype=np.float64))


def _local_faces(instance, n_vertices, index, strict, warnings):
    faces = getattr(instance, 'faces', None)

    if faces is None:
        remainder = n_vertices % 3
        if remainder:
            msg = f"instance {index}: {n_vertices} vertices is not a multiple of 3, dropping last {remainder}"
            if strict:
                raise InvalidGeometryError(msg)
            logger.warning(msg)
            warnings.append(msg)
        return np.arange(n_vertices - remainder).reshape(-1, 3)

    faces = np.asarray(faces, dtype=np.int64)
    if faces.size == 0:
        return faces.reshape(0, 3)
    if faces.ndim != 2 or faces.shape[1] != 3:
        msg = f"instance {index}: faces must be triangles, got shape {faces.shape}"
        if strict:
            raise InvalidGeometryError(msg)
        logger.warning(msg)
        warnings.append(msg)
        return np.empty((0, 3), dtype=np.int64)

    valid = np.all((faces >= 0) & (faces < n_vertices), axis=1)
    if not valid.all():
        msg = f"instance {index}: {int((~valid).sum())} faces reference missing vertices"
        if strict:
            raise InvalidGeometryError(msg)
        logger.warning(msg)
        warnings.append(msg)
    return faces[valid]


@timed
def build_obj(instances, strict: bool = False, comment: str = None) -> ExportDocument:
    """
    Serializes mesh instances, in the given order, to OBJ text.

    Args:
        instances: objects exposing ``vertices`` (N x 3), ``transform`` (4 x 4)
            and optionally ``faces`` (M x 3, 0-based)
        strict: raise InvalidGeometryError instead of skipping malformed faces
        comment: extra text for the header line

    Returns:
        ExportDocument with the text and counts
    """
    doc = ExportDocument()
    v_lines = []
    f_lines = []
    offset = 0

    for index, instance in enumerate(instances):
        world = _world_vertices(instance)
        n = len(world)
        doc.instance_count += 1
        if n == 0:
            continue

        faces = _local_faces(instance, n, index, strict, doc.warnings)

        for x, y, z in world:
            v_lines.append(f"v {x:.{OBJ_PRECISION}f} {y:.{OBJ_PRECISION}f} {z:.{OBJ_PRECISION}f}")
        for a, b, c in faces + offset + 1:
            f_lines.append(f"f {a} {b} {c}")

        offset += n

    doc.vertex_count = len(v_lines)
    doc.face_count = len(f_lines)

    header = HEADER if not comment else f"{HEADER}: {comment}"
    doc.text = "\n".join([header] + v_lines + f_lines) + "\n"
    logger.info(f"Built OBJ with {doc.vertex_count} vertices, {doc.face_count} faces from {doc.instance_count} instances")
    return doc


def instances_from_scene(scene: trimesh.Scene):
    """Yields the scene's mesh instances in graph node order."""
    for node in scene.graph.nodes_geometry:
        transform, geom_name = scene.graph[node]
        mesh = scene.geometry[geom_name]
        yield MeshInstance(
            vertices=np.array(mesh.vertices),
            faces=np.array(mesh.faces),
            transform=transform,
            name=node,
        )


def export_obj(instances, filepath: str, strict: bool = False, comment: str = None) -> ExportStats:
    """
    Exports mesh instances to an OBJ file.

    Args:
        instances: mesh instances or a trimesh.Scene
        filepath: output path (.obj)

    Returns:
        ExportStats with export statistics
    """
    if isinstance(instances, trimesh.Scene):
        instances = list(instances_from_scene(instances))

    doc = build_obj(instances, strict=strict, comment=comment)

    ensure_dir(os.path.dirname(filepath))
    with open(filepath, 'w', encoding='ascii', errors='replace') as f:
        f.write(doc.text)

    stats = ExportStats(
        total_vertices=doc.vertex_count,
        total_faces=doc.face_count,
        total_instances=doc.instance_count,
        file_size_bytes=os.path.getsize(filepath),
        warnings=list(doc.warnings),
    )
    logger.info(f"Exported {filepath} ({stats.file_size_bytes} bytes)")
    return stats
