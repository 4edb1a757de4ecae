from __future__ import annotations

import logging
from typing import List

from ..lib import services, users
from ..lib.dotfiles import write_file
from ..resources import file_marker, group_member, service
from ..step_runner import Step
from .base import Catalog

logger = logging.getLogger(__name__)

DESKTOP_PACKAGES = [
    "xfce4",
    "xfce4-goodies",
    "xorg",
    "dbus-x11",
    "x11-xserver-utils",
    "xrdp",
]

XSESSION_COMMAND = "xfce4-session"


def desktop_steps(cat: Catalog) -> List[Step]:
    xsession = f"{cat.home}/.xsession"

    def write_xsession() -> None:
        write_file(xsession, XSESSION_COMMAND + "\n", mode=0o644)
        users.chown_to(cat.user, xsession)

    steps = cat.package_steps("desktop", DESKTOP_PACKAGES)
    steps += [
        cat.step(
            name="desktop:xrdp-ssl-cert",
            resource=group_member("ssl-cert", "xrdp"),
            action=lambda: users.add_to_group("xrdp", "ssl-cert"),
            requires=("usermod",),
        ),
        cat.step(
            name="desktop:xsession",
            resource=file_marker("xsession", xsession, XSESSION_COMMAND),
            action=write_xsession,
            backup_paths=(xsession,),
        ),
        cat.step(
            name="desktop:xrdp-service",
            resource=service("xrdp"),
            action=lambda: services.enable_now("xrdp", timeout_s=cat.timeout_s),
            requires=("systemctl",),
        ),
    ]
    return steps
