"""Tests for project snapshots and the command line front end."""

import io
import json
import os
import sys
import tempfile
import unittest
from unittest import mock
from pathlib import Path

from PIL import Image

# Add parent directory to path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from massing import cli
from massing.errors import InvalidParameterError
from massing.project_io import ProjectIO, ServiceContext
from massing.sampler import IngestParams, SampleMode


class TestProjectIO(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.context = ServiceContext(project_dir=os.path.join(self.tmp.name, 'projects'), user_id='u123')
        self.project_io = ProjectIO(self.context)

    def tearDown(self):
        self.tmp.cleanup()

    def test_save_and_load(self):
        params = IngestParams(complexity=9, mode=SampleMode.HEIGHTMAP, threshold=100, invert=True)
        project_id = self.project_io.save('blueprint', params)

        self.assertEqual(self.project_io.last_saved_id, project_id)
        style, loaded = self.project_io.load(project_id)
        self.assertEqual(style, 'blueprint')
        self.assertEqual(loaded, params)

    def test_snapshot_contents(self):
        project_id = self.project_io.save('neon', IngestParams())
        with open(os.path.join(self.context.project_dir, f'{project_id}.json')) as f:
            project = json.load(f)
        self.assertEqual(project['id'], project_id)
        self.assertEqual(project['user_id'], 'u123')
        self.assertEqual(project['params']['mode'], 'floorplan')
        self.assertIn('timestamp', project)

    def test_load_rejects_bad_mode(self):
        project_id = self.project_io.save('blueprint', IngestParams())
        path = os.path.join(self.context.project_dir, f'{project_id}.json')
        with open(path) as f:
            project = json.load(f)
        project['params']['mode'] = 'wireframe'
        with open(path, 'w') as f:
            json.dump(project, f)
        with self.assertRaises(InvalidParameterError):
            self.project_io.load(project_id)

    def test_list(self):
        self.assertEqual(self.project_io.list(), [])
        first = self.project_io.save('a', IngestParams())
        second = self.project_io.save('b', IngestParams(complexity=2))
        self.assertEqual([p['id'] for p in self.project_io.list()], [first, second])


class TestCli(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        img = Image.new('RGB', (20, 20), (255, 255, 255))
        img.paste((0, 0, 0), (5, 5, 15, 15))
        self.image = os.path.join(self.tmp.name, 'plan.png')
        img.save(self.image)

    def tearDown(self):
        self.tmp.cleanup()

    def test_exports_obj(self):
        out = os.path.join(self.tmp.name, 'out', 'plan.obj')
        projects = os.path.join(self.tmp.name, 'projects')
        code = cli.main([self.image, '-o', out, '--complexity', '2', '--save-project', projects])

        self.assertEqual(code, 0)
        with open(out) as f:
            lines = f.read().splitlines()
        self.assertTrue(lines[0].startswith('#'))
        # ten rows of one ten-cell span, one box each
        self.assertEqual(sum(1 for line in lines if line.startswith('v ')), 80)
        self.assertEqual(len(os.listdir(projects)), 1)

    def test_bad_image(self):
        bad = os.path.join(self.tmp.name, 'bad.png')
        with open(bad, 'wb') as f:
            f.write(b'not a png')
        self.assertEqual(cli.main([bad, '-o', os.path.join(self.tmp.name, 'x.obj')]), 1)

    def test_oversized_image(self):
        with mock.patch.object(Image, 'MAX_IMAGE_PIXELS', 50):
            code = cli.main([self.image, '-o', os.path.join(self.tmp.name, 'x.obj')])
        self.assertEqual(code, 1)

    def test_bad_threshold(self):
        self.assertEqual(cli.main([self.image, '--threshold', '999', '-o', os.path.join(self.tmp.name, 'x.obj')]), 1)


if __name__ == '__main__':
    unittest.main()
