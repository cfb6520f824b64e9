import json
import logging
import os
import time
import uuid
from dataclasses import dataclass
from typing import List, Optional

from .sampler import IngestParams
from .utils import ensure_dir, OUTPUT_DIR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceContext:
    """Handles for outside services, built once at startup and passed explicitly."""
    project_dir: str = os.path.join(OUTPUT_DIR, 'projects')
    user_id: Optional[str] = None


class ProjectIO:
    """Saves and opens {style, params} snapshots as JSON files in the context's project directory."""
    def __init__(self, context: ServiceContext):
        self.context = context
        self.last_saved_id = None

    def _path(self, project_id: str) -> str:
        return os.path.join(self.context.project_dir, f'{project_id}.json')

    def save(self, style: str, params: IngestParams) -> str:
        project = {
            'id': str(uuid.uuid4()),
            'style': style,
            'params': params.to_dict(),
            'timestamp': time.time(),
        }
        if self.context.user_id:
            project['user_id'] = self.context.user_id

        ensure_dir(self.context.project_dir)
        with open(self._path(project['id']), 'w') as f:
            json.dump(project, f, indent=2)
        self.last_saved_id = project['id']
        logger.info(f"Project saved as {project['id']}")
        return project['id']

    def load(self, project_id: str):
        """Returns (style, params) for a saved project."""
        with open(self._path(project_id), 'r') as f:
            project = json.load(f)
        return project.get('style'), IngestParams.from_dict(project.get('params', {}))

    def list(self) -> List[dict]:
        if not os.path.isdir(self.context.project_dir):
            return []
        projects = []
        for name in sorted(os.listdir(self.context.project_dir)):
            if not name.endswith('.json'):
                continue
            with open(os.path.join(self.context.project_dir, name), 'r') as f:
                projects.append(json.load(f))
        return sorted(projects, key=lambda p: p.get('timestamp', 0))
