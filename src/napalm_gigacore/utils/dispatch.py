"""Notification dispatcher: turns change sets into consumer callbacks.

The consumer (a control-surface integration, a UI, ...) registers opaque
hooks.  The core never knows what a hook does; it only guarantees that
each ingest cycle produces at most one ``check_feedbacks`` call carrying
every token affected by the fired change classes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from napalm_gigacore.model.changes import ChangeClass, ChangeSet, Rebuild

logger = logging.getLogger(__name__)


class ConnectionStatus(str, Enum):
    OK = "ok"
    CONNECTING = "connecting"
    DISCONNECTED = "disconnected"
    CONNECTION_FAILURE = "connection_failure"


# Consumer recomputation tokens.
PORT_STATE: str = "port_state"
PORT_DISABLED: str = "port_disabled"
PORT_COLOR: str = "port_color"
SELECTED_PORT_COLOR: str = "selected_port_color"
GROUP_COLOR: str = "group_color"
SELECTED_GROUP_COLOR: str = "selected_group_color"
PORT_PROTECTED: str = "port_protected"
SELECTED_PORT_PROTECTED: str = "selected_port_protected"
POE_ENABLED: str = "poe_enabled"
POE_SOURCING: str = "poe_sourcing"
PROFILE_PROTECTED: str = "profile_protected"

CHANGE_TOKENS: dict[ChangeClass, frozenset[str]] = {
    ChangeClass.LINK_STATE: frozenset({PORT_STATE}),
    ChangeClass.PORT_DISABLED: frozenset({PORT_DISABLED}),
    ChangeClass.PORT_MEMBERSHIP: frozenset({PORT_COLOR, SELECTED_PORT_COLOR}),
    ChangeClass.PORT_PROTECTED: frozenset({PORT_PROTECTED, SELECTED_PORT_PROTECTED}),
    ChangeClass.GROUP_COLOR: frozenset(
        {PORT_COLOR, SELECTED_PORT_COLOR, GROUP_COLOR, SELECTED_GROUP_COLOR}
    ),
    ChangeClass.POE_ENABLED: frozenset({POE_ENABLED}),
    ChangeClass.POE_SOURCING: frozenset({POE_SOURCING}),
    ChangeClass.PROFILE_PROTECTED: frozenset({PROFILE_PROTECTED}),
    ChangeClass.POE_CAPABILITY_TOGGLED: frozenset({POE_ENABLED, POE_SOURCING}),
}

# Rebuild hooks always run in this order.
_REBUILD_ORDER: tuple[Rebuild, ...] = (
    Rebuild.ACTIONS,
    Rebuild.VARIABLES,
    Rebuild.PRESETS,
    Rebuild.FEEDBACKS,
)


def tokens_for(classes: Iterable[ChangeClass]) -> set[str]:
    """Return the union of consumer tokens for *classes*."""
    tokens: set[str] = set()
    for change_class in classes:
        tokens |= CHANGE_TOKENS[change_class]
    return tokens


@dataclass
class ConsumerHooks:
    """Callbacks supplied by the host.  Every hook is optional.

    Attributes:
        check_feedbacks: Called with the set of tokens to recompute.
        rebuild_actions: Rebuild action definitions.
        rebuild_variables: Rebuild variable definitions.
        rebuild_presets: Rebuild preset definitions.
        rebuild_feedbacks: Rebuild feedback definitions.
        update_status: Called with a :class:`ConnectionStatus` and an
            optional message whenever connectivity changes.
        update_member_labels: Called with ``{port_number: (name, color)}``
            for the ports whose membership changed (``None`` when the new
            group or trunk is not known yet), before ``check_feedbacks``.
    """

    check_feedbacks: Callable[[set[str]], None] | None = None
    rebuild_actions: Callable[[], None] | None = None
    rebuild_variables: Callable[[], None] | None = None
    rebuild_presets: Callable[[], None] | None = None
    rebuild_feedbacks: Callable[[], None] | None = None
    update_status: Callable[[ConnectionStatus, str | None], None] | None = None
    update_member_labels: Callable[[dict[int, tuple[str, str] | None]], None] | None = None


class Dispatcher:
    """Delivers change sets and status changes to :class:`ConsumerHooks`.

    Hook exceptions are logged and contained so a faulty consumer cannot
    break the ingest path.

    Args:
        hooks: Host callbacks; ``None`` installs no-op hooks.
    """

    def __init__(self, hooks: ConsumerHooks | None = None) -> None:
        self.hooks: ConsumerHooks = hooks or ConsumerHooks()

    def dispatch(self, change_set: ChangeSet) -> None:
        """Notify the consumer of one ingest cycle's changes.

        Rebuild hooks run first (in a fixed order), then
        ``update_member_labels`` when memberships changed, then
        ``check_feedbacks`` once with the union of tokens.  An empty change
        set calls nothing.
        """
        if not change_set:
            return
        rebuilders: dict[Rebuild, Callable[[], None] | None] = {
            Rebuild.ACTIONS: self.hooks.rebuild_actions,
            Rebuild.VARIABLES: self.hooks.rebuild_variables,
            Rebuild.PRESETS: self.hooks.rebuild_presets,
            Rebuild.FEEDBACKS: self.hooks.rebuild_feedbacks,
        }
        for target in _REBUILD_ORDER:
            if target in change_set.rebuild:
                self._call(f"rebuild_{target.value}", rebuilders[target])
        if change_set.member_labels:
            self._call(
                "update_member_labels",
                self.hooks.update_member_labels,
                dict(change_set.member_labels),
            )
        tokens = tokens_for(change_set.fired)
        if tokens and self.hooks.check_feedbacks is not None:
            logger.debug("check_feedbacks %s", sorted(tokens))
            self._call("check_feedbacks", self.hooks.check_feedbacks, tokens)

    def status(self, status: ConnectionStatus, message: str | None = None) -> None:
        """Report a connectivity change to the consumer."""
        self._call("update_status", self.hooks.update_status, status, message)

    @staticmethod
    def _call(name: str, hook: Callable[..., None] | None, *args: object) -> None:
        if hook is None:
            return
        try:
            hook(*args)
        except Exception:
            logger.exception("Consumer hook %s failed", name)
