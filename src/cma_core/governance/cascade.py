"""Policy cascade: root-to-entity accumulation of governance rules.

Each level contributes its explicit policies followed by the mixins its
tags activate. The cascade is purely additive: a child never removes or
replaces a policy inherited from an ancestor, it only adds more specific
ones.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel

from cma_core.enums import Enforcement
from cma_core.governance.mixins import MixinRegistry, default_mixin_registry
from cma_core.mesh.policy import Policy

if TYPE_CHECKING:
    from cma_core.hierarchy.resolver import HierarchyResolution
    from cma_core.mesh.node import MeshNode
    from cma_core.snapshot.snapshot import MeshSnapshot

logger = logging.getLogger(__name__)


class CascadedPolicy(BaseModel):
    """A policy in an effective policy list, with the level that contributed it."""

    policy: Policy
    origin_id: str
    mixin_tag: str | None = None


class PolicyRef(BaseModel):
    """Compact reference to a cascaded policy, used in reports."""

    policy_id: str
    policy_name: str
    enforcement: Enforcement
    origin_id: str
    mixin_tag: str | None = None

    @classmethod
    def from_cascaded(cls, cascaded: CascadedPolicy) -> PolicyRef:
        return cls(
            policy_id=cascaded.policy.id,
            policy_name=cascaded.policy.name,
            enforcement=cascaded.policy.enforcement,
            origin_id=cascaded.origin_id,
            mixin_tag=cascaded.mixin_tag,
        )


class PolicyCascade:
    """Computes effective policy lists over a resolved snapshot.

    Results are memoized per entity; the snapshot and resolution are never
    modified.
    """

    def __init__(
        self,
        snapshot: MeshSnapshot,
        resolution: HierarchyResolution,
        mixins: MixinRegistry | None = None,
    ) -> None:
        self.snapshot = snapshot
        self.resolution = resolution
        self.mixins = mixins or default_mixin_registry()
        self._local: dict[str, list[CascadedPolicy]] = {}
        self._cascades: dict[str, list[CascadedPolicy]] = {}

    def local_policies(self, entity: MeshNode) -> list[CascadedPolicy]:
        """Explicit policies of ``entity`` followed by its tag-activated mixins."""
        cached = self._local.get(entity.id)
        if cached is not None:
            return cached

        local = [CascadedPolicy(policy=p, origin_id=entity.id) for p in entity.policies]
        local.extend(
            CascadedPolicy(policy=policy, origin_id=entity.id, mixin_tag=tag)
            for tag, policy in self.mixins.activated(entity.tags)
        )
        self._local[entity.id] = local
        return local

    def cascade(self, entity_id: str) -> list[CascadedPolicy]:
        """Ancestors' local policies root first, then the entity's own.

        Raises:
            UnknownEntityError: If ``entity_id`` is not in the snapshot.
        """
        cached = self._cascades.get(entity_id)
        if cached is not None:
            return cached

        entity = self.snapshot.require(entity_id)
        result: list[CascadedPolicy] = []
        for ancestor_id in self.resolution.ancestors_of(entity_id):
            result.extend(self.local_policies(self.snapshot.require(ancestor_id)))
        result.extend(self.local_policies(entity))

        self._cascades[entity_id] = result
        logger.debug("Cascaded %d policies onto %s", len(result), entity_id)
        return result

    def effective_policies(self, entity_id: str) -> list[Policy]:
        return [c.policy for c in self.cascade(entity_id)]

    def inherited_tags(self, entity_id: str) -> list[str]:
        """Tags of every ancestor, root first, without duplicates."""
        tags: list[str] = []
        for ancestor_id in self.resolution.ancestors_of(entity_id):
            for tag in self.snapshot.require(ancestor_id).tags:
                if tag not in tags:
                    tags.append(tag)
        return tags
