"""Installation registry: GitHub App installations and their coverage.

Usage
-----
Record an installation and look up coverage::

    from herald.installations import InstallationAccount, InstallationRegistry

    registry = InstallationRegistry(session_factory)
    delta = await registry.record_installation_created(
        42, InstallationAccount(login="octo", type="Organization"), ["octo/repo"]
    )
    await registry.coverage_of("octo/repo")  # 42

"""

from herald.installations.models import (
    CoverageDelta,
    DeliveryMode,
    InstallationAccount,
    InstallationInfo,
    ModePartition,
)
from herald.installations.registry import DEFAULT_APP_SLUG, InstallationRegistry

__all__ = [
    "DEFAULT_APP_SLUG",
    "CoverageDelta",
    "DeliveryMode",
    "InstallationAccount",
    "InstallationInfo",
    "InstallationRegistry",
    "ModePartition",
]
