"""Image to box massing pipeline: sample, greedy-merge rows, export OBJ."""
# noqa imports for re-export
from .errors import MassingError, DecodeError, InvalidParameterError, InvalidGeometryError  # noqa: F401
from .sampler import IngestParams, SampleMode, resolution_for, decode_image, sample_image  # noqa: F401
from .greedy import Span, mesh_rows, recompute  # noqa: F401
from .scene import MeshInstance, MassingMetrics, spans_to_instances, build_scene, compute_metrics  # noqa: F401
from .exporter import ExportDocument, ExportStats, build_obj, export_obj, instances_from_scene  # noqa: F401
from .pipeline import IngestResult, IngestController, ingest  # noqa: F401
from .project_io import ServiceContext, ProjectIO  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    'MassingError', 'DecodeError', 'InvalidParameterError', 'InvalidGeometryError',
    'IngestParams', 'SampleMode', 'resolution_for', 'decode_image', 'sample_image',
    'Span', 'mesh_rows', 'recompute',
    'MeshInstance', 'MassingMetrics', 'spans_to_instances', 'build_scene', 'compute_metrics',
    'ExportDocument', 'ExportStats', 'build_obj', 'export_obj', 'instances_from_scene',
    'IngestResult', 'IngestController', 'ingest',
    'ServiceContext', 'ProjectIO',
]
