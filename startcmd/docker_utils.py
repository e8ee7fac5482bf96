"""
Docker helpers.

Picks a default image that resembles the host OS for docker levels that
were given no --image.
"""

import sys
from pathlib import Path

from .logging import get_logger

logger = get_logger("docker_utils")

FALLBACK_IMAGE = "alpine:latest"

OS_RELEASE = Path("/etc/os-release")

# Checked in order; first matching marker wins
_DISTRO_IMAGES = (
    (("ID=ubuntu", "ID_LIKE=ubuntu", "ID_LIKE=debian ubuntu"), "ubuntu:latest"),
    (("ID=debian", "ID_LIKE=debian"), "debian:latest"),
    (("ID=arch", "ID_LIKE=arch"), "archlinux:latest"),
    (("ID=fedora",), "fedora:latest"),
    (("ID=centos", "ID=rhel", "ID_LIKE=rhel"), "centos:latest"),
    (("ID=alpine",), "alpine:latest"),
)


def image_for_os_release(content: str) -> str:
    """Map /etc/os-release content to an image tag."""
    for markers, image in _DISTRO_IMAGES:
        if any(marker in content for marker in markers):
            return image
    return FALLBACK_IMAGE


def get_default_docker_image() -> str:
    """
    Get the default Docker image for the host operating system.

    macOS and Windows cannot be containerised, so they get alpine. Linux
    hosts get the image of their distribution when /etc/os-release names a
    known one.
    """
    if not sys.platform.startswith("linux"):
        return FALLBACK_IMAGE

    try:
        content = OS_RELEASE.read_text()
    except OSError:
        logger.debug(f"Cannot read {OS_RELEASE}, using {FALLBACK_IMAGE}")
        return FALLBACK_IMAGE

    return image_for_os_release(content)
