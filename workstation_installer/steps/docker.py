from __future__ import annotations

import logging
from typing import List

from ..lib import apt_repo, hostinfo, services, users
from ..resources import group_member, repository, service
from ..step_runner import Step
from .base import Catalog

logger = logging.getLogger(__name__)

DOCKER_URL = "https://download.docker.com/linux/debian"
DOCKER_KEYRING = f"{apt_repo.KEYRINGS_DIR}/docker.asc"
DOCKER_SOURCES = f"{apt_repo.SOURCES_DIR}/docker.sources"

DOCKER_PACKAGES = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]


def docker_steps(cat: Catalog) -> List[Step]:
    def add_repo() -> None:
        suite = hostinfo.codename()
        if not suite:
            raise RuntimeError("cannot determine Debian codename from /etc/os-release")
        apt_repo.fetch_keyring(f"{DOCKER_URL}/gpg", DOCKER_KEYRING, timeout_s=cat.timeout_s)
        apt_repo.write_sources(
            DOCKER_SOURCES,
            apt_repo.render_deb822(
                uris=DOCKER_URL,
                suites=suite,
                components=["stable"],
                architectures=apt_repo.dpkg_architecture(),
                signed_by=DOCKER_KEYRING,
            ),
        )
        cat.refresh_apt_index(force=True)

    steps = [
        cat.step(
            name="docker:repository",
            resource=repository("docker", DOCKER_SOURCES, DOCKER_KEYRING),
            action=add_repo,
            backup_paths=(DOCKER_SOURCES,),
            policy=cat.config.retry_policy("network"),
            requires=("curl", "dpkg"),
        )
    ]
    steps += cat.package_steps("docker", DOCKER_PACKAGES)
    steps += [
        cat.step(
            name="docker:service",
            resource=service("docker"),
            action=lambda: services.enable_now("docker", timeout_s=cat.timeout_s),
            requires=("systemctl",),
        ),
        cat.step(
            name="docker:group",
            resource=group_member("docker", cat.user),
            action=lambda: users.add_to_group(cat.user, "docker"),
            requires=("usermod",),
        ),
    ]
    return steps
