"""Durable record of GitHub App installations and the repositories they cover.

Each mutation runs in a single transaction and reports the coverage rows it
actually changed as a :class:`CoverageDelta`. Callers derive notifications
from that delta rather than from the webhook payload, which makes redelivered
events produce empty deltas.
"""

from __future__ import annotations

import typing as typ

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from herald.common.time import utcnow
from herald.errors import (
    DataConsistencyViolationError,
    DuplicateInstallationError,
    UnknownInstallationError,
)
from herald.installations.models import (
    CoverageDelta,
    DeliveryMode,
    InstallationInfo,
    ModePartition,
)
from herald.storage import GithubInstallation, InstallationRepository

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from herald.installations.models import InstallationAccount

    type SessionFactory = async_sessionmaker[AsyncSession]

DEFAULT_APP_SLUG = "herald"


def _unique(repositories: cabc.Iterable[str]) -> list[str]:
    """Drop repeated names while keeping first-seen order."""
    return list(dict.fromkeys(repositories))


async def _covered_repositories(
    session: AsyncSession, installation_id: int
) -> list[str]:
    rows = await session.scalars(
        select(InstallationRepository.repo_full_name)
        .where(InstallationRepository.installation_id == installation_id)
        .order_by(InstallationRepository.repo_full_name)
    )
    return list(rows)


async def _claim_repositories(
    session: AsyncSession, installation_id: int, repositories: list[str]
) -> set[str]:
    """Return repositories already covered by *installation_id*.

    Raises
    ------
    DataConsistencyViolationError
        If any repository is covered by a different installation.

    """
    if not repositories:
        return set()

    rows = await session.execute(
        select(
            InstallationRepository.repo_full_name,
            InstallationRepository.installation_id,
        ).where(InstallationRepository.repo_full_name.in_(repositories))
    )
    owned: set[str] = set()
    for repo_full_name, owner_id in rows:
        if owner_id != installation_id:
            raise DataConsistencyViolationError(
                repo_full_name,
                existing_installation_id=owner_id,
                conflicting_installation_id=installation_id,
            )
        owned.add(repo_full_name)
    return owned


class _CoverageRaceError(Exception):
    """Coverage rows collided with the unique repository index at flush time."""

    def __init__(self, repositories: list[str]) -> None:
        self.repositories = repositories
        super().__init__(", ".join(repositories))


async def _flush_installation(session: AsyncSession, installation_id: int) -> None:
    """Flush a new installation row, mapping a primary-key race to a duplicate."""
    try:
        await session.flush()
    except IntegrityError as exc:
        raise DuplicateInstallationError(
            installation_id, "recorded concurrently by another writer"
        ) from exc


async def _flush_coverage(session: AsyncSession, repositories: list[str]) -> None:
    """Flush pending coverage rows.

    Raises
    ------
    _CoverageRaceError
        If another installation committed one of *repositories* after the
        ownership check. The session must be rolled back before the actual
        owner can be read.

    """
    try:
        await session.flush()
    except IntegrityError as exc:
        raise _CoverageRaceError(repositories) from exc


def _to_installation_info(row: GithubInstallation) -> InstallationInfo:
    return InstallationInfo(
        installation_id=row.installation_id,
        account_login=row.account_login,
        account_type=row.account_type,
        app_slug=row.app_slug,
        installed_at=row.installed_at,
        suspended_at=row.suspended_at,
    )


class InstallationRegistry:
    """Records installations and their repository coverage.

    Parameters
    ----------
    session_factory:
        Async session factory for the Herald database.
    default_app_slug:
        App slug stored when a created event omits one.

    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        default_app_slug: str = DEFAULT_APP_SLUG,
    ) -> None:
        """Configure the registry with its session factory."""
        self._session_factory = session_factory
        self._default_app_slug = default_app_slug

    async def record_installation_created(
        self,
        installation_id: int,
        account: InstallationAccount,
        repositories: cabc.Iterable[str],
        *,
        app_slug: str | None = None,
    ) -> CoverageDelta:
        """Record a new installation and its initial coverage.

        A redelivered event whose account and app slug match the stored row is
        a no-op and returns an empty delta. The repository list of a redelivery
        is not compared: coverage may legitimately have moved on through
        added or removed events since the first delivery.

        Raises
        ------
        DuplicateInstallationError
            If the id is already recorded with different content, or another
            writer records the same id concurrently.
        DataConsistencyViolationError
            If a listed repository is covered by another installation.

        """
        repos = _unique(repositories)
        slug = app_slug or self._default_app_slug

        try:
            async with self._session_factory() as session, session.begin():
                existing = await session.get(GithubInstallation, installation_id)
                if existing is not None:
                    self._ensure_same_installation(existing, account, slug)
                    return CoverageDelta.empty(installation_id)

                await _claim_repositories(session, installation_id, repos)

                now = utcnow()
                session.add(
                    GithubInstallation(
                        installation_id=installation_id,
                        account_login=account.login,
                        account_type=account.type,
                        app_slug=slug,
                        installed_at=now,
                        suspended_at=None,
                    )
                )
                await _flush_installation(session, installation_id)
                session.add_all(
                    InstallationRepository(
                        installation_id=installation_id,
                        repo_full_name=repo,
                        added_at=now,
                    )
                    for repo in repos
                )
                await _flush_coverage(session, repos)
        except _CoverageRaceError as race:
            raise await self._coverage_conflict(
                installation_id, race.repositories
            ) from race

        return CoverageDelta(installation_id, tuple(repos), changes_mode=True)

    @staticmethod
    def _ensure_same_installation(
        existing: GithubInstallation, account: InstallationAccount, app_slug: str
    ) -> None:
        """Raise unless the stored account and app slug match the redelivery."""
        mismatches = [
            field
            for field, stored, incoming in (
                ("account_login", existing.account_login, account.login),
                ("account_type", existing.account_type, account.type),
                ("app_slug", existing.app_slug, app_slug),
            )
            if stored != incoming
        ]
        if mismatches:
            raise DuplicateInstallationError(
                existing.installation_id,
                f"stored content differs in {', '.join(mismatches)}",
            )

    async def record_installation_deleted(self, installation_id: int) -> CoverageDelta:
        """Delete an installation and all of its coverage rows.

        The covered repository names are read before anything is deleted and
        returned in the delta, since coverage lookups return nothing afterwards.

        Raises
        ------
        UnknownInstallationError
            If the installation is not recorded.

        """
        async with self._session_factory() as session, session.begin():
            installation = await self._require(session, installation_id)
            repos = await _covered_repositories(session, installation_id)
            changes_mode = installation.is_active

            await session.execute(
                delete(InstallationRepository).where(
                    InstallationRepository.installation_id == installation_id
                )
            )
            await session.execute(
                delete(GithubInstallation).where(
                    GithubInstallation.installation_id == installation_id
                )
            )

        return CoverageDelta(installation_id, tuple(repos), changes_mode=changes_mode)

    async def add_repositories(
        self, installation_id: int, repositories: cabc.Iterable[str]
    ) -> CoverageDelta:
        """Add coverage edges, skipping ones that already exist.

        Raises
        ------
        UnknownInstallationError
            If the installation is not recorded.
        DataConsistencyViolationError
            If a repository is covered by another installation.

        """
        repos = _unique(repositories)

        try:
            async with self._session_factory() as session, session.begin():
                installation = await self._require(session, installation_id)
                already_covered = await _claim_repositories(
                    session, installation_id, repos
                )
                added = [repo for repo in repos if repo not in already_covered]

                now = utcnow()
                session.add_all(
                    InstallationRepository(
                        installation_id=installation_id,
                        repo_full_name=repo,
                        added_at=now,
                    )
                    for repo in added
                )
                await _flush_coverage(session, added)
                changes_mode = installation.is_active
        except _CoverageRaceError as race:
            raise await self._coverage_conflict(
                installation_id, race.repositories
            ) from race

        return CoverageDelta(installation_id, tuple(added), changes_mode=changes_mode)

    async def _coverage_conflict(
        self, installation_id: int, repositories: list[str]
    ) -> DataConsistencyViolationError:
        """Describe a lost coverage race by re-reading the winning owner."""
        async with self._session_factory() as session:
            row = (
                await session.execute(
                    select(
                        InstallationRepository.repo_full_name,
                        InstallationRepository.installation_id,
                    )
                    .where(
                        InstallationRepository.repo_full_name.in_(repositories),
                        InstallationRepository.installation_id != installation_id,
                    )
                    .order_by(InstallationRepository.repo_full_name)
                    .limit(1)
                )
            ).first()

        if row is None:
            return DataConsistencyViolationError(
                ", ".join(repositories),
                existing_installation_id=None,
                conflicting_installation_id=installation_id,
            )
        repo_full_name, owner_id = row
        return DataConsistencyViolationError(
            repo_full_name,
            existing_installation_id=owner_id,
            conflicting_installation_id=installation_id,
        )

    async def remove_repositories(
        self, installation_id: int, repositories: cabc.Iterable[str]
    ) -> CoverageDelta:
        """Remove coverage edges; repositories not covered are ignored.

        Raises
        ------
        UnknownInstallationError
            If the installation is not recorded.

        """
        repos = _unique(repositories)

        async with self._session_factory() as session, session.begin():
            installation = await self._require(session, installation_id)
            covered = set(await _covered_repositories(session, installation_id))
            removed = [repo for repo in repos if repo in covered]

            if removed:
                await session.execute(
                    delete(InstallationRepository).where(
                        InstallationRepository.installation_id == installation_id,
                        InstallationRepository.repo_full_name.in_(removed),
                    )
                )
            changes_mode = installation.is_active

        return CoverageDelta(installation_id, tuple(removed), changes_mode=changes_mode)

    async def set_suspended(
        self, installation_id: int, suspended_at: dt.datetime | None
    ) -> CoverageDelta:
        """Suspend (timestamp) or unsuspend (``None``) an installation.

        The delta lists the covered repositories only when the suspension
        state actually flipped.

        Raises
        ------
        UnknownInstallationError
            If the installation is not recorded.

        """
        async with self._session_factory() as session, session.begin():
            installation = await self._require(session, installation_id)
            if installation.is_active == (suspended_at is None):
                return CoverageDelta.empty(installation_id)

            installation.suspended_at = suspended_at
            repos = await _covered_repositories(session, installation_id)

        return CoverageDelta(installation_id, tuple(repos), changes_mode=True)

    @staticmethod
    async def _require(
        session: AsyncSession, installation_id: int
    ) -> GithubInstallation:
        installation = await session.get(GithubInstallation, installation_id)
        if installation is None:
            raise UnknownInstallationError(installation_id)
        return installation

    async def coverage_of(self, repo_full_name: str) -> int | None:
        """Return the id of the installation covering a repository, if any."""
        async with self._session_factory() as session:
            return await session.scalar(
                select(InstallationRepository.installation_id).where(
                    InstallationRepository.repo_full_name == repo_full_name
                )
            )

    async def installation_repos(self, installation_id: int) -> list[str]:
        """Return the repositories covered by an installation, sorted by name."""
        async with self._session_factory() as session:
            return await _covered_repositories(session, installation_id)

    async def get_installation(self, installation_id: int) -> InstallationInfo | None:
        """Look up an installation by id."""
        async with self._session_factory() as session:
            row = await session.get(GithubInstallation, installation_id)
            return _to_installation_info(row) if row else None

    async def delivery_mode_of(self, repo_full_name: str) -> DeliveryMode:
        """Return PUSH when an active installation covers the repository."""
        partition = await self.partition_by_mode([repo_full_name])
        return DeliveryMode.PUSH if partition.push else DeliveryMode.POLL

    async def partition_by_mode(
        self, repositories: cabc.Iterable[str]
    ) -> ModePartition:
        """Split repositories into push and poll delivery.

        The poll ticker uses the ``poll`` half to decide which subscribed
        repositories still need periodic fetching.
        """
        repos = _unique(repositories)
        if not repos:
            return ModePartition()

        async with self._session_factory() as session:
            rows = await session.scalars(
                select(InstallationRepository.repo_full_name)
                .join(GithubInstallation)
                .where(
                    InstallationRepository.repo_full_name.in_(repos),
                    GithubInstallation.suspended_at.is_(None),
                )
            )
            pushed = set(rows)

        return ModePartition(
            push=tuple(repo for repo in repos if repo in pushed),
            poll=tuple(repo for repo in repos if repo not in pushed),
        )

    async def count_installations(self) -> int:
        """Return the number of recorded installations."""
        async with self._session_factory() as session:
            count = await session.scalar(
                select(func.count()).select_from(GithubInstallation)
            )
            return count or 0
