"""
Command line front end.

Usage:
    python main.py plan.png -o exports/plan.obj --complexity 12 --mode floorplan
"""

import argparse
import logging
import os
import sys

from .errors import MassingError
from .exporter import export_obj
from .pipeline import ingest
from .project_io import ProjectIO, ServiceContext
from .sampler import IngestParams, SampleMode
from .scene import spans_to_instances, compute_metrics
from .utils import OUTPUT_DIR, DEFAULT_SITE_WIDTH, DEFAULT_HEIGHT_MULTIPLIER


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S',
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Turn a raster image into a box massing model and export it as OBJ.')
    parser.add_argument('image', help='Input image (PNG, JPEG, ...)')
    parser.add_argument('-o', '--output', help=f'Output OBJ path (default: {OUTPUT_DIR}/<image name>.obj)')
    parser.add_argument('--complexity', type=int, default=4, help='Grid resolution is min(256, complexity * 10)')
    parser.add_argument('--mode', choices=[m.value for m in SampleMode], default=SampleMode.FLOORPLAN.value)
    parser.add_argument('--threshold', type=int, default=128, help='Luminance cut-off, 0-255')
    parser.add_argument('--invert', action='store_true', help='Invert the image before thresholding')
    parser.add_argument('--site-width', type=float, default=DEFAULT_SITE_WIDTH)
    parser.add_argument('--height-multiplier', type=float, default=DEFAULT_HEIGHT_MULTIPLIER)
    parser.add_argument('--strict', action='store_true', help='Abort export on malformed geometry instead of skipping it')
    parser.add_argument('--save-project', metavar='DIR', help='Also save a {style, params} snapshot into DIR')
    parser.add_argument('--style', default='blueprint', help='Style name stored with the project snapshot')
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    output = args.output or os.path.join(
        OUTPUT_DIR, os.path.splitext(os.path.basename(args.image))[0] + '.obj'
    )

    try:
        params = IngestParams(
            complexity=args.complexity,
            mode=SampleMode(args.mode),
            threshold=args.threshold,
            invert=args.invert,
        ).validate()

        with open(args.image, 'rb') as f:
            result = ingest(f.read(), params)

        instances = spans_to_instances(result.spans, result.resolution, args.site_width, args.height_multiplier)
        stats = export_obj(instances, output, strict=args.strict, comment=os.path.basename(args.image))
        metrics = compute_metrics(result.spans, result.resolution, args.site_width, args.height_multiplier)

        if args.save_project:
            context = ServiceContext(project_dir=args.save_project)
            project_id = ProjectIO(context).save(args.style, params)
            print(f"Project snapshot: {project_id}")
    except (MassingError, OSError) as e:
        logging.error(f"Failed: {e}")
        return 1

    print(f"Grid: {result.resolution}x{result.resolution}, spans: {metrics.span_count}")
    print(f"Floor area: {metrics.floor_area:.2f}, max height: {metrics.max_height:.2f}")
    print(f"OBJ: {output} ({stats.total_vertices} vertices, {stats.total_faces} faces)")
    for warning in stats.warnings:
        print(f"  warning: {warning}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
