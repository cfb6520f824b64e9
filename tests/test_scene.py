"""Tests for span instantiation and display metrics."""

import sys
import unittest
from pathlib import Path

import numpy as np
import trimesh

# Add parent directory to path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from massing import scene
from massing.greedy import Span


def world_bounds(instance):
    points = trimesh.transformations.transform_points(instance.vertices, instance.transform)
    return points.min(axis=0), points.max(axis=0)


class TestSpansToInstances(unittest.TestCase):

    def test_one_box_per_span(self):
        spans = [Span(0, 0, 3, 1.0), Span(0, 5, 1, 0.4), Span(2, 1, 2, 0.7)]
        instances = scene.spans_to_instances(spans, resolution=10)
        self.assertEqual(len(instances), 3)
        for instance in instances:
            self.assertEqual(instance.vertex_count(), 8)
            self.assertEqual(len(instance.faces), 12)
        self.assertEqual([i.name for i in instances], ['span_0', 'span_1', 'span_2'])

    def test_box_placement(self):
        # full first row of a 10x10 grid on a 20 unit site, cells are 2 units
        span = Span(0, 0, 10, 1.0)
        (instance,) = scene.spans_to_instances([span], resolution=10, site_width=20.0, height_multiplier=5.0)
        lo, hi = world_bounds(instance)
        np.testing.assert_allclose(lo, [-10.0, 0.0, -10.0])
        np.testing.assert_allclose(hi, [10.0, 5.0, -8.0])

    def test_height_scales_with_span_height(self):
        (instance,) = scene.spans_to_instances([Span(4, 2, 1, 0.5)], resolution=8, height_multiplier=4.0)
        lo, hi = world_bounds(instance)
        self.assertAlmostEqual(lo[1], 0.0)
        self.assertAlmostEqual(hi[1], 2.0)

    def test_build_scene(self):
        spans = [Span(0, 0, 1, 1.0), Span(1, 0, 1, 1.0)]
        result = scene.build_scene(spans, resolution=2)
        self.assertIsInstance(result, trimesh.Scene)
        self.assertEqual(len(result.graph.nodes_geometry), 2)


class TestMetrics(unittest.TestCase):

    def test_empty(self):
        metrics = scene.compute_metrics([], resolution=10)
        self.assertEqual(metrics, scene.MassingMetrics())

    def test_area_and_height(self):
        spans = [Span(0, 0, 2, 0.5), Span(1, 0, 2, 1.0)]
        metrics = scene.compute_metrics(spans, resolution=10, site_width=20.0, height_multiplier=5.0)
        self.assertEqual(metrics.span_count, 2)
        self.assertAlmostEqual(metrics.floor_area, 16.0)
        self.assertAlmostEqual(metrics.max_height, 5.0)


if __name__ == '__main__':
    unittest.main()
