from typing import List

from ..config import WorkstationConfig
from ..step_runner import Step
from .base import Catalog
from .checks import verification_checks
from .desktop import desktop_steps
from .devtools import browser_steps, nodejs_steps, python_steps
from .docker import docker_steps
from .shell import shell_steps
from .system import hostname_steps, system_steps
from .user import user_steps

# Run order. The user comes before anything that writes into the home directory.
COMPONENT_STEPS = [
    ("system", system_steps),
    ("hostname", hostname_steps),
    ("user", user_steps),
    ("docker", docker_steps),
    ("desktop", desktop_steps),
    ("browsers", browser_steps),
    ("python", python_steps),
    ("nodejs", nodejs_steps),
    ("shell", shell_steps),
]


def build_steps(config: WorkstationConfig) -> List[Step]:
    cat = Catalog(config=config)
    steps: List[Step] = []
    for component, factory in COMPONENT_STEPS:
        if config.component_enabled(component):
            steps += factory(cat)
    return steps


__all__ = [
    "COMPONENT_STEPS",
    "Catalog",
    "build_steps",
    "verification_checks",
]
