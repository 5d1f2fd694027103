"""
Scene registry: the interaction surface shared by every entity.

The registry owns the entities registered with it, publishes their marker
records to observers and routes interaction events back to them.

Lifecycle:
    registry = SceneRegistry()
    registry.open()
    entity.add_to_registry(registry)
    registry.apply_changes()          # observers see the first full frame
    registry.post_event(...)          # from the UI / event loop
    registry.process_events()
    registry.close()                  # entities released, events dropped

Events are applied one at a time on the caller's thread; no locking is done.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Callable, Iterable, Iterator, TypeVar

from calibsim.core.errors import DuplicateEntityNameError, RegistryClosedError, UnknownEntityError
from calibsim.scene.entity import SceneEntity
from calibsim.scene.events import InteractionEvent
from calibsim.scene.state import EntityId, MarkerRecord

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=SceneEntity)


class SceneRegistry:
    """
    Tracks live entities and delivers interaction events to them.

    Observer callbacks:
    - update: callback(record: MarkerRecord) for each new or changed entity
    - erase: callback(entity_id: EntityId) for each removed entity
    - commit: callback(records: list[MarkerRecord]) after each batch, with the full scene
    """

    def __init__(self, name: str = "simulate") -> None:
        self.name = name
        self._is_open = False
        self._entities: dict[EntityId, SceneEntity] = {}
        self._names: dict[str, EntityId] = {}
        self._pending: dict[EntityId, MarkerRecord | None] = {}
        self._published: set[EntityId] = set()
        self._events: deque[InteractionEvent] = deque()

        self._on_update_callbacks: list[Callable[[MarkerRecord], None]] = []
        self._on_erase_callbacks: list[Callable[[EntityId], None]] = []
        self._on_commit_callbacks: list[Callable[[list[MarkerRecord]], None]] = []

    # =====================================================
    # Lifecycle
    # =====================================================

    @property
    def is_open(self) -> bool:
        return self._is_open

    def open(self) -> SceneRegistry:
        if self._is_open:
            logger.warning("Registry %s is already open", self.name)
            return self
        self._is_open = True
        logger.info("Registry %s opened", self.name)
        return self

    def close(self) -> None:
        """Release every entity and drop queued events."""
        if not self._is_open:
            return
        dropped = len(self._events)
        for entity in self._entities.values():
            entity._detach()
        count = len(self._entities)
        self._entities.clear()
        self._names.clear()
        self._pending.clear()
        self._published.clear()
        self._events.clear()
        self._is_open = False
        logger.info("Registry %s closed (%d entities released, %d events dropped)",
                    self.name, count, dropped)

    def __enter__(self) -> SceneRegistry:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_open(self) -> None:
        if not self._is_open:
            raise RegistryClosedError(f"Registry {self.name} is not open")

    # =====================================================
    # Entities
    # =====================================================

    def register(self, entity: SceneEntity) -> EntityId:
        """
        Add an entity and queue its marker record for publication.

        :raises DuplicateEntityNameError: an entity with the same name exists
        """
        self._require_open()
        entity_id = entity.entity_id
        if entity.name in self._names:
            logger.error("Rejecting duplicate entity %s", entity_id)
            raise DuplicateEntityNameError(entity.frame_id, entity.name)

        self._entities[entity_id] = entity
        self._names[entity.name] = entity_id
        entity._attach(self)
        self._pending[entity_id] = entity.marker_record()
        logger.debug("Registered %s (%s)", entity_id, entity.control_mode.name)
        return entity_id

    def unregister(self, entity_id: EntityId) -> SceneEntity:
        self._require_open()
        entity = self._entities.pop(entity_id, None)
        if entity is None:
            raise UnknownEntityError(f"No entity registered as {entity_id}")
        del self._names[entity.name]
        entity._detach()
        if entity_id in self._published:
            self._pending[entity_id] = None
        else:
            # never seen by observers, so there is nothing to erase
            self._pending.pop(entity_id, None)
        logger.debug("Unregistered %s", entity_id)
        return entity

    def publish(self, entity: SceneEntity) -> None:
        """Queue the entity's current record; observers see it at apply_changes()."""
        self._require_open()
        if self._entities.get(entity.entity_id) is not entity:
            raise UnknownEntityError(f"No entity registered as {entity.entity_id}")
        self._pending[entity.entity_id] = entity.marker_record()

    def get(self, entity_id: EntityId) -> SceneEntity:
        try:
            return self._entities[entity_id]
        except KeyError:
            raise UnknownEntityError(f"No entity registered as {entity_id}") from None

    def find(self, name: str) -> SceneEntity | None:
        entity_id = self._names.get(name)
        return self._entities[entity_id] if entity_id is not None else None

    def entities(self) -> list[SceneEntity]:
        """Registered entities, in registration order."""
        return list(self._entities.values())

    def entities_of_type(self, cls: type[E]) -> list[E]:
        return [e for e in self._entities.values() if isinstance(e, cls)]

    def records(self) -> list[MarkerRecord]:
        return [e.marker_record() for e in self._entities.values()]

    def __contains__(self, entity_id: EntityId) -> bool:
        return entity_id in self._entities

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[SceneEntity]:
        return iter(list(self._entities.values()))

    # =====================================================
    # Publication
    # =====================================================

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending)

    def apply_changes(self) -> int:
        """
        Deliver queued updates/erasures, then one commit with the whole scene.

        :return: number of records delivered
        """
        self._require_open()
        if not self._pending:
            return 0
        pending, self._pending = self._pending, {}

        for entity_id, record in pending.items():
            if record is None:
                self._published.discard(entity_id)
                self._notify(self._on_erase_callbacks, entity_id)
            else:
                self._published.add(entity_id)
                self._notify(self._on_update_callbacks, record)
        self._notify(self._on_commit_callbacks, self.records())

        logger.debug("Applied %d change(s)", len(pending))
        return len(pending)

    def add_update_callback(self, callback: Callable[[MarkerRecord], None]) -> None:
        self._on_update_callbacks.append(callback)

    def add_erase_callback(self, callback: Callable[[EntityId], None]) -> None:
        self._on_erase_callbacks.append(callback)

    def add_commit_callback(self, callback: Callable[[list[MarkerRecord]], None]) -> None:
        self._on_commit_callbacks.append(callback)

    def remove_update_callback(self, callback: Callable[[MarkerRecord], None]) -> None:
        self._on_update_callbacks.remove(callback)

    def remove_erase_callback(self, callback: Callable[[EntityId], None]) -> None:
        self._on_erase_callbacks.remove(callback)

    def remove_commit_callback(self, callback: Callable[[list[MarkerRecord]], None]) -> None:
        self._on_commit_callbacks.remove(callback)

    @staticmethod
    def _notify(callbacks: list[Callable], payload) -> None:
        for callback in callbacks:
            try:
                callback(payload)
            except Exception as e:
                logger.exception(f"Error in registry callback: {e}")

    # =====================================================
    # Interaction events
    # =====================================================

    @property
    def queued_events(self) -> int:
        return len(self._events)

    def post_event(self, event: InteractionEvent) -> bool:
        """
        Queue an interaction event.

        :return: False if the registry is closed and the event was dropped
        """
        if not self._is_open:
            logger.debug("Registry closed; dropping %s", event)
            return False
        self._events.append(event)
        return True

    def process_events(self) -> int:
        """Apply queued events in arrival order. Returns the number processed."""
        processed = 0
        while self._is_open and self._events:
            self.dispatch(self._events.popleft())
            processed += 1
        return processed

    def dispatch(self, event: InteractionEvent) -> bool:
        """
        Apply one event to its entity and re-publish the entity if it changed.

        :return: True if the entity's state changed
        """
        self._require_open()
        entity = self._entities.get(event.entity_id)
        if entity is None:
            logger.warning("Event for unknown entity %s dropped", event.entity_id)
            return False

        changed = entity.handle_event(event)
        if changed and event.entity_id in self._entities:
            self._pending[event.entity_id] = entity.marker_record()
        if self._pending:
            self.apply_changes()
        return changed

    def replay(self, events: Iterable[InteractionEvent]) -> int:
        """Queue and apply a recorded sequence of events."""
        for event in events:
            self.post_event(event)
        return self.process_events()
