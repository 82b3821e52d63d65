"""Error kinds raised by the routing core and the subscription registry."""

from __future__ import annotations


class HookcordError(Exception):
    """Base class for all Hookcord errors."""


class InvalidInboundEvent(HookcordError):
    """A webhook delivery is missing its event type or repository."""


class InvalidChannel(HookcordError):
    """A channel descriptor has no channel id."""


class DuplicateChannel(HookcordError):
    def __init__(self, channel_id: str) -> None:
        super().__init__(f"Channel {channel_id} already has a config record")
        self.channel_id = channel_id


class UnknownChannel(HookcordError):
    def __init__(self, channel_id: str) -> None:
        super().__init__(f"Channel {channel_id} has no config record")
        self.channel_id = channel_id


class InvalidProperty(HookcordError):
    def __init__(self, name: str, reason: str = "not a mutable property") -> None:
        super().__init__(f"Invalid property '{name}': {reason}")
        self.name = name


class RegistryNotReady(HookcordError):
    """The registry has not finished loading from the config store."""


class StoreWriteFailure(HookcordError):
    """A write to the config store failed; the cache was left untouched."""

    def __init__(self, channel_id: str, cause: BaseException) -> None:
        super().__init__(
            f"Config store write for channel {channel_id} failed: "
            f"{type(cause).__name__}: {cause}"
        )
        self.channel_id = channel_id


class RegistryInconsistent(HookcordError):
    """The store accepted a write but the cache swap failed; registry was reloaded."""


class DeliveryFailure(HookcordError):
    def __init__(self, channel_id: str, reason: str) -> None:
        super().__init__(f"Delivery to channel {channel_id} failed: {reason}")
        self.channel_id = channel_id
