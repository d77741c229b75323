"""Persistence models for installations, coverage and subscriptions."""

from __future__ import annotations

import datetime as dt
import typing as typ

from sqlalchemy import (
    BigInteger,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import TypeDecorator

from herald.common.time import utcnow

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


class TimezoneAwareRequiredError(ValueError):
    """Raised when a naive datetime is bound to a UTC column."""

    def __init__(self) -> None:
        """Attach a fixed message."""
        super().__init__("datetime values must be timezone aware")


class Base(DeclarativeBase):
    """Declarative base for Herald tables."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Reject naive datetimes and convert aware ones to UTC."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise TimezoneAwareRequiredError
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Return stored datetimes as aware UTC values."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class GithubInstallation(Base):
    """GitHub App installation on one account."""

    __tablename__ = "github_installations"

    installation_id: Mapped[int] = mapped_column(
        BigInteger, primary_key=True, autoincrement=False
    )
    account_login: Mapped[str] = mapped_column(String(255))
    account_type: Mapped[str] = mapped_column(String(32))
    app_slug: Mapped[str] = mapped_column(String(255))
    installed_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    suspended_at: Mapped[dt.datetime | None] = mapped_column(
        UTCDateTime(), default=None
    )

    repositories: Mapped[list[InstallationRepository]] = relationship(
        back_populates="installation"
    )

    @property
    def is_active(self) -> bool:
        """Return True when the installation is not suspended."""
        return self.suspended_at is None


class InstallationRepository(Base):
    """Coverage edge between an installation and one repository.

    The unique index on ``repo_full_name`` ensures that a repository is
    covered by at most one installation at a time.
    """

    __tablename__ = "installation_repositories"
    __table_args__ = (
        UniqueConstraint(
            "installation_id",
            "repo_full_name",
            name="uq_installation_repositories_pair",
        ),
        Index(
            "ix_installation_repositories_repo",
            "repo_full_name",
            unique=True,
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    installation_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("github_installations.installation_id", ondelete="CASCADE"),
        nullable=False,
    )
    repo_full_name: Mapped[str] = mapped_column(String(255))
    added_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)

    installation: Mapped[GithubInstallation] = relationship(
        back_populates="repositories"
    )


class Subscription(Base):
    """A chat channel's interest in a repository, independent of delivery mode."""

    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint(
            "channel_id", "repo_full_name", name="uq_subscriptions_channel_repo"
        ),
        Index("ix_subscriptions_repo", "repo_full_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    channel_id: Mapped[str] = mapped_column(String(255))
    repo_full_name: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)


async def init_storage(engine: AsyncEngine) -> None:
    """Create all Herald tables if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
