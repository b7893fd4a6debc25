"""Release retention: decides which remote releases to delete"""

import logging
import posixpath
from typing import Iterable, Optional

from ..api.exceptions import RetentionPlanError, TransportError
from ..constants import CURRENT_LINK_NAME, TEMP_LINK_SUFFIX
from ..models.result import RetentionPlan
from ..remote.base import RemoteExecutor

logger = logging.getLogger(__name__)


def plan(listing: Iterable[str],
         current_target: Optional[str],
         keep_count: int) -> RetentionPlan:
    """Compute which release directories to keep and which to delete

    Release names are timestamps, so sorting them lexicographically orders
    them chronologically. The release the current link points at is always
    kept, even when it is older than the newest ``keep_count`` releases.

    Args:
        listing: Entry names of the release root, possibly including the
            current link and a temporary link left by an interrupted swap
        current_target: Path or name the current link resolves to, if any
        keep_count: Number of newest releases to keep; negative disables
            cleanup

    Returns:
        RetentionPlan
    """
    link_names = {CURRENT_LINK_NAME, CURRENT_LINK_NAME + TEMP_LINK_SUFFIX}
    entries = [name.strip() for name in listing if name.strip()]
    ignored = [name for name in entries if name in link_names]
    if ignored:
        logger.debug(f"Not treated as releases: {', '.join(sorted(ignored))}")
    releases = sorted(name for name in entries if name not in link_names)
    current = posixpath.basename(current_target.rstrip("/")) if current_target else None

    if keep_count < 0:
        return RetentionPlan(
            to_keep=frozenset(releases),
            to_delete=frozenset(),
            keep_count=keep_count,
            current=current,
            skipped=True
        )

    if keep_count >= len(releases):
        to_keep = set(releases)
        to_delete = set()
    else:
        cutoff = len(releases) - keep_count
        to_keep = set(releases[cutoff:])
        to_delete = set(releases[:cutoff])

    if current:
        to_keep.add(current)
        to_delete.discard(current)

    return RetentionPlan(
        to_keep=frozenset(to_keep),
        to_delete=frozenset(to_delete),
        keep_count=keep_count,
        current=current
    )


class RetentionPlanner:
    """Prunes old releases under a release root on the target host"""

    def __init__(self, executor: RemoteExecutor):
        self.executor = executor

    def prune(self, release_root: str, keep_count: int) -> RetentionPlan:
        """Delete all but the newest ``keep_count`` releases

        Nothing is deleted unless both the listing and the current link were
        read successfully. Deletion is one batched request; directories
        already removed when it fails stay removed.

        Args:
            release_root: Remote directory holding the releases
            keep_count: Number of releases to keep; negative skips cleanup

        Returns:
            The executed plan

        Raises:
            RetentionPlanError: If the listing or link resolution fails
            TransportError: If the removal request fails
        """
        if keep_count < 0:
            logger.info("Skipping cleanup of remote releases")
            return plan([], None, keep_count)

        try:
            listing = self.executor.list_directory(release_root)
        except TransportError as e:
            raise RetentionPlanError(f"Unable to list releases in {release_root}: {e}")

        if not listing:
            logger.info(f"No releases found in {release_root}; nothing to clean up")
            return plan([], None, keep_count)

        current_target = None
        if CURRENT_LINK_NAME in listing:
            current_link = posixpath.join(release_root, CURRENT_LINK_NAME)
            try:
                current_target = self.executor.resolve_symlink(current_link)
            except TransportError as e:
                raise RetentionPlanError(f"Unable to resolve {current_link}: {e}")
            if current_target is None:
                raise RetentionPlanError(f"{current_link} exists but is not a symlink")

        result = plan(listing, current_target, keep_count)
        logger.debug(f"Keeping releases: {', '.join(sorted(result.to_keep)) or 'none'}")

        if result.has_deletions:
            doomed = sorted(result.to_delete)
            logger.info(f"Removing {len(doomed)} old release(s): {', '.join(doomed)}")
            self.executor.remove_paths(posixpath.join(release_root, name) for name in doomed)
        else:
            logger.debug("No releases to remove")

        return result
