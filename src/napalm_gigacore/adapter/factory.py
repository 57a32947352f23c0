"""Adapter selection by device generation."""

from __future__ import annotations

from typing import Any

from napalm_gigacore.adapter.base import DeviceAdapter
from napalm_gigacore.adapter.polling import PollingAdapter
from napalm_gigacore.adapter.push import PushAdapter
from napalm_gigacore.client.session import GigaCoreCredentials
from napalm_gigacore.model.config import GigaCoreConfig
from napalm_gigacore.utils.dispatch import ConsumerHooks


def create_adapter(
    config: GigaCoreConfig,
    hooks: ConsumerHooks | None = None,
    **kwargs: Any,
) -> DeviceAdapter:
    """Build the adapter for *config* and point it at the configured address.

    Args:
        config: Connection settings; ``gen1`` selects the polling adapter.
        hooks: Consumer callbacks.
        **kwargs: Passed to the adapter constructor (timeouts, intervals).

    Returns:
        The adapter, configured when *config* resolves to an address and
        left unconfigured otherwise.
    """
    adapter: DeviceAdapter
    if config.gen1:
        adapter = PollingAdapter(hooks, **kwargs)
    else:
        adapter = PushAdapter(hooks, **kwargs)
    address = config.host_address()
    if address is not None:
        adapter.configure(address, GigaCoreCredentials(password=config.password))
    return adapter
