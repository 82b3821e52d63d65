"""In-memory registry of channel subscriptions, kept in step with the config store.

The registry owns every ``ChannelConfig`` in the process. Records are
immutable; a mutation writes through to the store first and only then
replaces the cached record, so readers see either the old record or the
new one and never a partial update.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from typing import Any, Protocol

from hookcord.errors import (
    DuplicateChannel,
    InvalidChannel,
    InvalidProperty,
    RegistryInconsistent,
    RegistryNotReady,
    StoreWriteFailure,
    UnknownChannel,
)
from hookcord.models.channel_config import (
    BOOL_FIELDS,
    LIST_FIELDS,
    MUTABLE_FIELDS,
    TEXT_FIELDS,
    ChannelConfig,
    ChannelDescriptor,
    canonical_repo,
    unique,
)

logger = logging.getLogger(__name__)


class ConfigStore(Protocol):
    """What the registry needs from the persistent config store."""

    async def list_configs(self) -> list[ChannelConfig]: ...

    async def insert_config(self, config: ChannelConfig) -> ChannelConfig: ...

    async def update_field(
        self, channel_id: str, name: str, value: Any
    ) -> ChannelConfig | None: ...

    async def delete_config(self, channel_id: str) -> None: ...


def _coerce(name: str, value: Any) -> Any:
    """Validate and canonicalize a value for a mutable field."""
    if name in LIST_FIELDS:
        if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
            raise InvalidProperty(name, "expected a list of strings")
        items = list(value)
        if not all(isinstance(i, str) for i in items):
            raise InvalidProperty(name, "expected a list of strings")
        if name == "repos":
            return unique(canonical_repo(i) for i in items)
        return unique(i.strip() for i in items)
    if name in TEXT_FIELDS:
        if value is not None and not isinstance(value, str):
            raise InvalidProperty(name, "expected a string")
        if name == "repo" and value:
            return canonical_repo(value)
        return value
    if name in BOOL_FIELDS:
        if not isinstance(value, bool):
            raise InvalidProperty(name, "expected true or false")
        return value
    raise InvalidProperty(name)


class SubscriptionRegistry:
    """Authoritative cache of channel subscriptions.

    Reads are synchronous and see a consistent snapshot. Mutations are
    serialized per channel id and write through to *store* before the
    cache changes. Every operation raises ``RegistryNotReady`` until
    ``load()`` has completed.
    """

    def __init__(
        self,
        store: ConfigStore,
        *,
        load_retries: int = 3,
        load_retry_delay: float = 2.0,
    ) -> None:
        self._store = store
        self._load_retries = max(1, load_retries)
        self._load_retry_delay = load_retry_delay
        self._configs: dict[str, ChannelConfig] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._ready = asyncio.Event()
        self._load_lock = asyncio.Lock()

    # ==================== Readiness ====================

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def ensure_ready(self) -> None:
        if not self._ready.is_set():
            raise RegistryNotReady("Channel configs have not been loaded yet")

    async def wait_until_ready(self, timeout: float | None = None) -> None:
        """Block until load() completes; RegistryNotReady after *timeout* seconds."""
        if self._ready.is_set():
            return
        try:
            await asyncio.wait_for(self._ready.wait(), timeout)
        except asyncio.TimeoutError:
            raise RegistryNotReady(
                f"Channel configs still not loaded after {timeout}s"
            ) from None

    async def load(self) -> int:
        """Fetch every record from the store and replace the cache.

        Retries with exponential backoff; re-raises the last store error
        once retries are exhausted, leaving the registry not ready.
        """
        async with self._load_lock:
            for attempt in range(1, self._load_retries + 1):
                try:
                    configs = await self._store.list_configs()
                    break
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    if attempt >= self._load_retries:
                        logger.exception(
                            f"Loading channel configs failed after {attempt} attempts"
                        )
                        raise
                    delay = self._load_retry_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Loading channel configs failed ({attempt}/{self._load_retries}): "
                        f"{type(e).__name__}: {e}, retrying in {delay}s..."
                    )
                    await asyncio.sleep(delay)

            self._configs = {c.channel_id: c for c in configs}
            self._ready.set()
            logger.info(f"Loaded {len(self._configs)} channel config(s)")
            return len(self._configs)

    async def reload(self) -> int:
        """Drop readiness and load the whole registry again."""
        self._ready.clear()
        return await self.load()

    # ==================== Reads ====================

    def find_by_channel(self, channel_id: str) -> ChannelConfig | None:
        self.ensure_ready()
        return self._configs.get(str(channel_id))

    def find_by_repo(self, repo_id: str) -> list[ChannelConfig]:
        """Channels subscribed to *repo_id*, matched case-insensitively."""
        self.ensure_ready()
        repo = canonical_repo(repo_id)
        return [c for c in self._configs.values() if repo in c.repos]

    def find_repo_in_channel(self, channel_id: str, repo_id: str) -> ChannelConfig | None:
        """The channel's record if it already subscribes to *repo_id*."""
        config = self.find_by_channel(channel_id)
        if config is not None and canonical_repo(repo_id) in config.repos:
            return config
        return None

    def channels(self) -> list[ChannelConfig]:
        self.ensure_ready()
        return list(self._configs.values())

    def __len__(self) -> int:
        return len(self._configs)

    # ==================== Mutations ====================

    def _lock_for(self, channel_id: str) -> asyncio.Lock:
        lock = self._locks.get(channel_id)
        if lock is None:
            lock = self._locks[channel_id] = asyncio.Lock()
            # Drop idle locks for channels that no longer exist
            if len(self._locks) > 2 * len(self._configs) + 64:
                for key in list(self._locks):
                    if key not in self._configs and not self._locks[key].locked():
                        if key != channel_id:
                            del self._locks[key]
        return lock

    async def _commit(self, channel_id: str, stored: ChannelConfig | None) -> ChannelConfig:
        """Swap the stored record into the cache.

        The store already holds the new state here, so a record that cannot
        be swapped in means cache and store disagree: reload everything.
        """
        try:
            if stored is None or stored.channel_id != channel_id:
                raise LookupError(f"config store returned no record for {channel_id}")
            self._configs[channel_id] = stored
            return stored
        except Exception as e:
            logger.critical(
                f"Cache swap for channel {channel_id} failed after store write "
                f"({type(e).__name__}: {e}); reloading registry"
            )
            await self.reload()
            raise RegistryInconsistent(
                f"Registry reloaded after failed cache swap for channel {channel_id}"
            ) from e

    async def create(self, channel: ChannelDescriptor) -> ChannelConfig:
        """Persist and cache a default record for a newly seen channel."""
        if channel is None or not channel.channel_id:
            raise InvalidChannel("No channel id given")
        self.ensure_ready()
        channel_id = str(channel.channel_id)

        async with self._lock_for(channel_id):
            if channel_id in self._configs:
                raise DuplicateChannel(channel_id)
            record = ChannelConfig.for_channel(channel)
            try:
                stored = await self._store.insert_config(record)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                raise StoreWriteFailure(channel_id, e) from e
            config = await self._commit(channel_id, stored)

        logger.info(
            f"ChannelConf | Adding \"{config.guild_name}\"'s #{config.channel_name} ({channel_id})"
        )
        return config

    async def _update(
        self, channel_id: str, name: str, compute: Callable[[Any], Any]
    ) -> ChannelConfig:
        """Read-modify-write one field. Caller holds the channel lock."""
        current = self._configs.get(channel_id)
        if current is None:
            raise UnknownChannel(channel_id)

        old_value = getattr(current, name)
        new_value = _coerce(name, compute(old_value))
        if new_value == old_value:
            return current

        try:
            stored = await self._store.update_field(channel_id, name, new_value)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise StoreWriteFailure(channel_id, e) from e
        config = await self._commit(channel_id, stored)
        logger.debug(f"ChannelConf | {channel_id}.{name} = {new_value!r}")
        return config

    async def set_property(self, channel_id: str, name: str, value: Any) -> ChannelConfig:
        """Replace one mutable field of a channel's record."""
        if name not in MUTABLE_FIELDS:
            raise InvalidProperty(name)
        self.ensure_ready()
        channel_id = str(channel_id)
        async with self._lock_for(channel_id):
            return await self._update(channel_id, name, lambda _old: value)

    async def add_repo_to_channel(self, channel_id: str, repo_id: str) -> ChannelConfig:
        """Subscribe a channel to a repository (stored lowercase, no duplicates)."""
        if not repo_id or not repo_id.strip():
            raise InvalidProperty("repos", "empty repository name")
        repo = canonical_repo(repo_id)
        self.ensure_ready()
        channel_id = str(channel_id)
        async with self._lock_for(channel_id):
            return await self._update(
                channel_id, "repos", lambda repos: repos if repo in repos else (*repos, repo)
            )

    async def delete_repo_from_channel(self, channel_id: str, repo_id: str) -> ChannelConfig:
        """Unsubscribe a channel from a repository; unchanged record if not subscribed."""
        repo = canonical_repo(repo_id or "")
        self.ensure_ready()
        channel_id = str(channel_id)
        async with self._lock_for(channel_id):
            return await self._update(
                channel_id, "repos", lambda repos: tuple(r for r in repos if r != repo)
            )

    async def add_list_item(self, channel_id: str, name: str, item: str) -> ChannelConfig:
        """Add *item* to a list field such as ``ignored_users``."""
        if name not in LIST_FIELDS:
            raise InvalidProperty(name, "not a list property")
        if name == "repos":
            return await self.add_repo_to_channel(channel_id, item)
        self.ensure_ready()
        channel_id = str(channel_id)
        async with self._lock_for(channel_id):
            return await self._update(channel_id, name, lambda items: (*items, item))

    async def remove_list_item(self, channel_id: str, name: str, item: str) -> ChannelConfig:
        """Remove *item* from a list field; unchanged record if absent."""
        if name not in LIST_FIELDS:
            raise InvalidProperty(name, "not a list property")
        if name == "repos":
            return await self.delete_repo_from_channel(channel_id, item)
        self.ensure_ready()
        channel_id = str(channel_id)
        async with self._lock_for(channel_id):
            return await self._update(
                channel_id, name, lambda items: tuple(i for i in items if i != item.strip())
            )

    async def toggle_embed(self, channel_id: str) -> ChannelConfig:
        """Flip a channel between rich embeds and plain text."""
        self.ensure_ready()
        channel_id = str(channel_id)
        async with self._lock_for(channel_id):
            return await self._update(channel_id, "embed", lambda embed: not embed)

    async def delete_channel(self, channel_id: str) -> None:
        """Remove a channel's record from store and cache. No-op if absent."""
        self.ensure_ready()
        channel_id = str(channel_id)
        async with self._lock_for(channel_id):
            config = self._configs.get(channel_id)
            if config is None:
                return
            try:
                await self._store.delete_config(channel_id)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                raise StoreWriteFailure(channel_id, e) from e
            self._configs.pop(channel_id, None)

        logger.info(
            f"ChannelConf | Deleting \"{config.guild_name}\"'s #{config.channel_name} ({channel_id})"
        )

    # ==================== Reconciliation ====================

    async def reconcile(self, live_channels: Iterable[ChannelDescriptor]) -> list[ChannelConfig]:
        """Create default records for live channels the registry does not know.

        Never deletes: a channel missing from *live_channels* may only be
        briefly inaccessible. Removal happens on explicit delete signals.
        """
        self.ensure_ready()
        added: list[ChannelConfig] = []
        for channel in live_channels:
            if not channel.channel_id or str(channel.channel_id) in self._configs:
                continue
            try:
                added.append(await self.create(channel))
            except DuplicateChannel:
                continue
            except StoreWriteFailure as e:
                logger.error(f"ChannelConf | Could not add channel during reconcile: {e}")
        if added:
            logger.info(f"Reconciled {len(added)} new channel(s)")
        return added
