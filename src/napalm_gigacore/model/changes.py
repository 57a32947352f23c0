"""Typed models for detected state changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ChangeClass(str, Enum):
    """Kinds of model change a consumer may need to react to."""

    LINK_STATE = "link_state"
    PORT_DISABLED = "port_disabled"
    PORT_MEMBERSHIP = "port_membership"
    PORT_PROTECTED = "port_protected"
    GROUP_COLOR = "group_color"
    POE_ENABLED = "poe_enabled"
    POE_SOURCING = "poe_sourcing"
    PROFILE_PROTECTED = "profile_protected"
    POE_CAPABILITY_TOGGLED = "poe_capability_toggled"


class Rebuild(str, Enum):
    """Consumer definition sets that must be rebuilt after a structural change."""

    ACTIONS = "actions"
    VARIABLES = "variables"
    PRESETS = "presets"
    FEEDBACKS = "feedbacks"


@dataclass
class ChangeSet:
    """Outcome of reconciling one decoded fragment.

    Attributes:
        fired: Change classes whose values differ from the previous model.
        rebuild: Definition sets to rebuild; non-empty only on a first
            observation or a size change of a collection.
        member_labels: For every port whose membership changed, the
            ``(name, color)`` of its new group or trunk as known at the time
            of the change (``None`` when unresolved).
    """

    fired: set[ChangeClass] = field(default_factory=set)
    rebuild: set[Rebuild] = field(default_factory=set)
    member_labels: dict[int, tuple[str, str] | None] = field(default_factory=dict)

    def fire(self, *classes: ChangeClass) -> None:
        self.fired.update(classes)

    def request(self, *targets: Rebuild) -> None:
        self.rebuild.update(targets)

    def merge(self, other: ChangeSet) -> ChangeSet:
        """Fold *other* into this change set and return ``self``."""
        self.fired |= other.fired
        self.rebuild |= other.rebuild
        self.member_labels.update(other.member_labels)
        return self

    def __bool__(self) -> bool:
        return bool(self.fired or self.rebuild)
