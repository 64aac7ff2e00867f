"""Resolve revision strings to commit boundaries."""

import logging

from git_tagwalk.core.exceptions import RepositoryError
from git_tagwalk.core.repository import GitRepository
from git_tagwalk.models.boundary import InclusivenessStrategy, RevisionBoundary
from git_tagwalk.models.settings import ZERO_COMMIT

logger = logging.getLogger(__name__)


class RevisionResolver:
    """Turns refs, hashes and the zero sentinel into ``RevisionBoundary``s."""

    def __init__(self, repository: GitRepository):
        self.repository = repository

    def resolve(
        self,
        spec: str,
        strategy: InclusivenessStrategy = InclusivenessStrategy.DEFAULT,
    ) -> RevisionBoundary:
        """Resolve ``spec`` in this order: refs, direct commit id, zero sentinel.

        Raises:
            RepositoryError: nothing matched; the message lists every known ref.
        """
        commit_hash = self._find_ref(spec)
        if commit_hash is None:
            commit_hash = self._find_commit(spec)
        if commit_hash is None:
            raise RepositoryError(
                f"{spec} not found in:",
                spec=spec,
                description=self.repository.describe(),
            )
        logger.debug("Resolved %s to %s (%s)", spec, commit_hash, strategy.value)
        return RevisionBoundary(commit_hash=commit_hash, strategy=strategy)

    def _find_ref(self, spec: str):
        found = self.repository.find_ref(spec, exact=True)
        if found is None:
            found = self.repository.find_ref(spec, exact=False)
        return found

    def _find_commit(self, spec: str):
        if spec.startswith(ZERO_COMMIT):
            return self.repository.first_commit()
        return self.repository.resolve_commit(spec)
