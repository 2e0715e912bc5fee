"""
Lookup table from state name to state policy.

The table is fixed: adding a state means adding an ArticleStatus member,
a policy class, and an entry below.
"""

import logging
from types import MappingProxyType
from typing import List, Mapping, Union

from apps.articles.exceptions import UnknownStateError
from apps.articles.states import (
    ArticleStatePolicy,
    ArticleStatus,
    DraftPolicy,
    InReviewPolicy,
    ObservedPolicy,
    PublishedPolicy,
)

logger = logging.getLogger(__name__)


class StateRegistry:
    """Resolves a stored state name to its policy."""

    def __init__(self, policies: Mapping[ArticleStatus, ArticleStatePolicy]):
        missing = set(ArticleStatus) - set(policies)
        if missing:
            raise ValueError(f"No policy for states: {sorted(s.value for s in missing)}")
        self._policies = MappingProxyType({status.value: policy for status, policy in policies.items()})

    def resolve(self, state_name: Union[ArticleStatus, str]) -> ArticleStatePolicy:
        """
        Return the policy for ``state_name``.

        Raises:
            UnknownStateError: if the name is not a known state.
        """
        key = state_name.value if isinstance(state_name, ArticleStatus) else state_name
        try:
            return self._policies[key]
        except (KeyError, TypeError):
            logger.error("Unknown article state %r", state_name)
            raise UnknownStateError(state_name) from None

    def states(self) -> List[str]:
        return list(self._policies)

    def __contains__(self, state_name) -> bool:
        key = state_name.value if isinstance(state_name, ArticleStatus) else state_name
        try:
            return key in self._policies
        except TypeError:
            return False


state_registry = StateRegistry({
    ArticleStatus.DRAFT: DraftPolicy(),
    ArticleStatus.IN_REVIEW: InReviewPolicy(),
    ArticleStatus.PUBLISHED: PublishedPolicy(),
    ArticleStatus.OBSERVED: ObservedPolicy(),
})
