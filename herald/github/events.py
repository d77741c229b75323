"""Decode GitHub App installation webhooks into lifecycle events.

Only the fields the reconciler needs are modelled; msgspec ignores the rest
of GitHub's payload.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import hashlib
import hmac

import msgspec

from herald.common.slug import is_repo_slug
from herald.common.time import utcnow
from herald.github.errors import WebhookPayloadError, WebhookSignatureError
from herald.installations.models import InstallationAccount
from herald.reconciler.events import (
    InstallationCreated,
    InstallationDeleted,
    InstallationSuspended,
    InstallationUnsuspended,
    LifecycleEvent,
    RepositoriesAdded,
    RepositoriesRemoved,
)

INSTALLATION_EVENT = "installation"
INSTALLATION_REPOSITORIES_EVENT = "installation_repositories"
_SIGNATURE_PREFIX = "sha256="


class GitHubAccount(msgspec.Struct, kw_only=True):
    """Account owning an installation."""

    login: str
    type: str = "User"


class GitHubRepositoryRef(msgspec.Struct, kw_only=True):
    """Repository entry in installation payload lists."""

    full_name: str


class GitHubInstallation(msgspec.Struct, kw_only=True):
    """The ``installation`` object shared by both webhook kinds."""

    id: int
    account: GitHubAccount
    app_slug: str | None = None
    suspended_at: dt.datetime | None = None


class InstallationPayload(msgspec.Struct, kw_only=True):
    """Body of an ``installation`` webhook."""

    action: str
    installation: GitHubInstallation
    repositories: list[GitHubRepositoryRef] = msgspec.field(default_factory=list)


class InstallationRepositoriesPayload(msgspec.Struct, kw_only=True):
    """Body of an ``installation_repositories`` webhook."""

    action: str
    installation: GitHubInstallation
    repositories_added: list[GitHubRepositoryRef] = msgspec.field(
        default_factory=list
    )
    repositories_removed: list[GitHubRepositoryRef] = msgspec.field(
        default_factory=list
    )


def _decode[T](body: bytes, payload_type: type[T]) -> T:
    try:
        return msgspec.json.decode(body, type=payload_type)
    except msgspec.DecodeError as exc:
        raise WebhookPayloadError.malformed(exc) from exc


def _full_names(refs: list[GitHubRepositoryRef]) -> tuple[str, ...]:
    names: list[str] = []
    for ref in refs:
        if not is_repo_slug(ref.full_name):
            raise WebhookPayloadError.invalid_repository(ref.full_name)
        names.append(ref.full_name)
    return tuple(names)


def _account(installation: GitHubInstallation) -> InstallationAccount:
    return InstallationAccount(
        login=installation.account.login, type=installation.account.type
    )


def _installation_event(payload: InstallationPayload) -> LifecycleEvent | None:
    installation = payload.installation
    account = _account(installation)
    match payload.action:
        case "created":
            return InstallationCreated(
                installation_id=installation.id,
                account=account,
                repositories=_full_names(payload.repositories),
                app_slug=installation.app_slug,
            )
        case "deleted":
            return InstallationDeleted(installation_id=installation.id, account=account)
        case "suspend":
            return InstallationSuspended(
                installation_id=installation.id,
                account=account,
                suspended_at=installation.suspended_at or utcnow(),
            )
        case "unsuspend":
            return InstallationUnsuspended(
                installation_id=installation.id, account=account
            )
        case _:
            return None


def _repositories_event(
    payload: InstallationRepositoriesPayload,
) -> LifecycleEvent | None:
    installation = payload.installation
    account = _account(installation)
    match payload.action:
        case "added":
            return RepositoriesAdded(
                installation_id=installation.id,
                account=account,
                repositories=_full_names(payload.repositories_added),
            )
        case "removed":
            return RepositoriesRemoved(
                installation_id=installation.id,
                account=account,
                repositories=_full_names(payload.repositories_removed),
            )
        case _:
            return None


def parse_lifecycle_event(event_name: str, body: bytes) -> LifecycleEvent | None:
    """Map a webhook delivery onto a lifecycle event.

    Parameters
    ----------
    event_name:
        Value of the ``X-GitHub-Event`` header.
    body:
        Raw JSON request body.

    Returns
    -------
    LifecycleEvent | None
        The decoded event, or ``None`` for events and actions that do not
        affect installation coverage.

    Raises
    ------
    WebhookPayloadError
        If the body does not match the expected schema.

    """
    if event_name == INSTALLATION_EVENT:
        return _installation_event(_decode(body, InstallationPayload))
    if event_name == INSTALLATION_REPOSITORIES_EVENT:
        return _repositories_event(_decode(body, InstallationRepositoriesPayload))
    return None


def sign_payload(secret: str, body: bytes) -> str:
    """Return the ``X-Hub-Signature-256`` header value for *body*."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return f"{_SIGNATURE_PREFIX}{digest}"


def verify_signature(secret: str, body: bytes, signature: str | None) -> None:
    """Check a webhook signature header against *body*.

    Raises
    ------
    WebhookSignatureError
        If the header is absent or does not match.

    """
    if not signature:
        raise WebhookSignatureError.missing()
    if not hmac.compare_digest(sign_payload(secret, body), signature.strip()):
        raise WebhookSignatureError.mismatch()
