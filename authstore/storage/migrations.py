"""Data migration between storage backends.

Copies every user from a source backend into a destination backend without
changing ids, digests or timestamps.

The policy is best-effort: each record is written through the
destination's ``save_user`` in its own transaction. A record already in the
destination with identical fields is skipped, as is one whose email is
already taken there. A record whose id is present with different fields,
or whose write fails, is marked failed and the run continues. Every
outcome is listed in the returned :class:`MigrationReport`, and running
the same migration twice leaves the destination unchanged.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from authstore.storage.backends.base import UserBackend
from authstore.storage.exceptions import (
    DuplicateUserError,
    MigrationFailedError,
    StorageError,
)
from authstore.storage.factory import BackendType, create_backend

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class MigrationReport:
    """Outcome of a migration run."""

    source_type: str
    target_type: str
    started_at: datetime
    completed_at: datetime | None = None
    total: int = 0
    migrated: list[str] = field(default_factory=list)
    skipped: dict[str, str] = field(default_factory=dict)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def duration(self) -> float | None:
        """Get migration duration in seconds."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    @property
    def ok(self) -> bool:
        """True when no record failed."""
        return not self.failed

    @property
    def success_rate(self) -> float:
        """Share of records now present in the destination, as a percentage."""
        if self.total == 0:
            return 100.0
        return (len(self.migrated) + len(self.skipped)) / self.total * 100.0

    def raise_for_failures(self) -> None:
        """Raise :class:`MigrationFailedError` if any record failed."""
        if self.failed:
            raise MigrationFailedError(
                f"{len(self.failed)} of {self.total} users failed to migrate",
                report=self,
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source_type": self.source_type,
            "target_type": self.target_type,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat()
            if self.completed_at
            else None,
            "duration": self.duration,
            "total": self.total,
            "migrated": list(self.migrated),
            "skipped": dict(self.skipped),
            "failed": dict(self.failed),
            "success_rate": self.success_rate,
        }


class MigrationManager:
    """Copies users between backends and checks the result."""

    def __init__(self, progress_callback: ProgressCallback | None = None):
        self._progress_callback = progress_callback

    def set_progress_callback(self, callback: ProgressCallback) -> None:
        """Set a callback for progress updates (current, total)."""
        self._progress_callback = callback

    def _report_progress(self, current: int, total: int) -> None:
        if self._progress_callback:
            self._progress_callback(current, total)

    def migrate_users(self, source: UserBackend, target: UserBackend) -> MigrationReport:
        """Copy every user from ``source`` into ``target``.

        Raises:
            MigrationFailedError: the source could not be read
        """
        report = MigrationReport(
            source_type=source.backend_type,
            target_type=target.backend_type,
            started_at=_now(),
        )

        try:
            users = source.get_all_users()
        except StorageError as e:
            raise MigrationFailedError(f"Cannot read source backend: {e}") from e

        report.total = len(users)

        for i, user in enumerate(users, start=1):
            try:
                existing = target.find_user_by_id(user.id)
                if existing == user:
                    report.skipped[user.id] = "already present"
                elif existing is not None:
                    report.failed[user.id] = "destination record differs"
                    logger.warning(
                        "User %s in %s differs from the source record",
                        user.id,
                        target.backend_type,
                    )
                else:
                    target.save_user(user)
                    report.migrated.append(user.id)
            except DuplicateUserError:
                report.skipped[user.id] = "email already taken"
                logger.warning(
                    "Skipped user %s: email already present in %s",
                    user.id,
                    target.backend_type,
                )
            except StorageError as e:
                report.failed[user.id] = str(e)
                logger.warning("Failed to migrate user %s: %s", user.id, e)

            self._report_progress(i, report.total)

        report.completed_at = _now()
        logger.info(
            "Migrated %d of %d users from %s to %s (%d skipped, %d failed)",
            len(report.migrated),
            report.total,
            report.source_type,
            report.target_type,
            len(report.skipped),
            len(report.failed),
        )
        return report

    def verify_migration(self, source: UserBackend, target: UserBackend) -> dict[str, Any]:
        """Compare the two record sets by id and field values."""
        source_users = {user.id: user for user in source.get_all_users()}
        target_users = {user.id: user for user in target.get_all_users()}

        missing = sorted(source_users.keys() - target_users.keys())
        extra = sorted(target_users.keys() - source_users.keys())
        differing = sorted(
            user_id
            for user_id in source_users.keys() & target_users.keys()
            if source_users[user_id] != target_users[user_id]
        )

        return {
            "source_count": len(source_users),
            "target_count": len(target_users),
            "missing_in_target": missing,
            "extra_in_target": extra,
            "differing": differing,
            "verification_passed": not (missing or extra or differing),
        }


def migrate_users(
    source: UserBackend,
    target: UserBackend,
    progress_callback: ProgressCallback | None = None,
) -> MigrationReport:
    """Copy every user from ``source`` into ``target``."""
    return MigrationManager(progress_callback).migrate_users(source, target)


def migrate_backend(
    source: UserBackend,
    backend_type: BackendType | str,
    *,
    db_path: Path | str | None = None,
    data_dir: Path | None = None,
    progress_callback: ProgressCallback | None = None,
) -> tuple[UserBackend, MigrationReport]:
    """Open a destination backend and copy ``source`` into it.

    Returns the open destination together with the report; the caller owns
    the destination and closes it.
    """
    target = create_backend(backend_type, db_path=db_path, data_dir=data_dir)
    try:
        report = migrate_users(source, target, progress_callback)
    except Exception:
        target.close()
        raise
    return target, report
