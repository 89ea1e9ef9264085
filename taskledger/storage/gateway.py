"""Namespaced snapshot persistence over a raw key-value store."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .kv import KeyValueStore

logger = logging.getLogger(__name__)

METADATA_ENTITY = "_metadata"


def iso_now() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PersistenceGateway:
    """The only component that touches the raw key-value store.

    Each entity collection is written as one envelope::

        key:   "{namespace}_{entity_name}"
        value: {"data": <snapshot>, "timestamp": <ISO-8601>, "version": <schema version>}

    and a ledger of per-entity write times is kept under
    ``"{namespace}__metadata"``. The gateway never raises to its callers:
    write failures come back as ``False`` and read failures as the supplied
    default. If the store fails a test write at construction time the
    gateway marks itself unavailable and every operation becomes a no-op.
    """

    CHECK_KEY = "__storage_test__"

    def __init__(self, store: KeyValueStore, namespace: str = "taskManagementApp", version: str = "2.0"):
        self.store = store
        self.namespace = namespace
        self.version = version
        self.is_available = self._check_availability()

        if self.is_available:
            self._initialize_metadata()
            logger.info(f"Persistence gateway ready (namespace={namespace}, version={version})")
        else:
            logger.warning(f"Key-value store unavailable, persistence disabled for namespace {namespace}")

    def key_for(self, entity_name: str) -> str:
        return f"{self.namespace}_{entity_name}"

    def save(self, entity_name: str, snapshot: Any) -> bool:
        """Write ``snapshot`` for ``entity_name`` inside a timestamped envelope.

        Args:
            entity_name: Collection name, e.g. ``"tasks"``
            snapshot: JSON-serializable payload

        Returns:
            True if the envelope was written, False otherwise
        """
        if not self.is_available:
            logger.warning(f"Cannot save {entity_name}: storage unavailable")
            return False

        timestamp = iso_now()
        envelope = {"data": snapshot, "timestamp": timestamp, "version": self.version}

        try:
            payload = json.dumps(envelope, ensure_ascii=False).encode("utf-8")
            if self.store.set(self.key_for(entity_name), payload) is False:
                logger.error(f"Failed to save {entity_name}: store rejected the write")
                return False
        except Exception as e:
            logger.error(f"Failed to save {entity_name}: {str(e)}")
            return False

        logger.debug(f"Saved {entity_name} ({len(payload)} bytes)")

        if entity_name != METADATA_ENTITY:
            self._update_metadata(entity_name, timestamp)
        return True

    def load(self, entity_name: str, default: Any = None) -> Any:
        """Read the ``data`` field stored for ``entity_name``.

        Returns:
            The stored payload, or ``default`` when the key is missing,
            unreadable or not a valid envelope
        """
        if not self.is_available:
            return default

        try:
            raw = self.store.get(self.key_for(entity_name))
        except Exception as e:
            logger.error(f"Failed to read {entity_name}: {str(e)}")
            return default

        if raw is None:
            return default

        try:
            envelope = json.loads(raw)
        except ValueError as e:
            logger.error(f"Failed to parse stored {entity_name}: {str(e)}")
            return default

        if not isinstance(envelope, dict) or "data" not in envelope:
            logger.warning(f"Stored {entity_name} is not a snapshot envelope, ignoring it")
            return default

        return envelope["data"]

    def remove(self, entity_name: str) -> bool:
        """Delete the stored collection and its ledger entry."""
        if not self.is_available:
            return False

        try:
            self.store.delete(self.key_for(entity_name))
        except Exception as e:
            logger.error(f"Failed to remove {entity_name}: {str(e)}")
            return False

        if entity_name != METADATA_ENTITY:
            self._remove_from_metadata(entity_name)
        logger.info(f"Removed {entity_name}")
        return True

    def metadata(self) -> Dict[str, Any]:
        """Return the ledger: schema version, creation time and per-entity writes."""
        return self.load(METADATA_ENTITY, None) or {}

    def export_snapshot(self) -> Optional[Dict[str, Any]]:
        """Bundle every key under this namespace for backup.

        Returns:
            ``{"appName", "version", "exportedAt", "data": {key: envelope}}``
            or None if storage is unavailable
        """
        if not self.is_available:
            return None

        bundle: Dict[str, Any] = {
            "appName": self.namespace,
            "version": self.version,
            "exportedAt": iso_now(),
            "data": {},
        }

        try:
            keys = self.store.list_keys(f"{self.namespace}_")
        except Exception as e:
            logger.error(f"Failed to list keys for export: {str(e)}")
            return None

        for key in keys:
            try:
                raw = self.store.get(key)
                if raw is None:
                    continue
                bundle["data"][key] = json.loads(raw)
            except Exception as e:
                logger.warning(f"Skipping {key} in export: {str(e)}")

        logger.info(f"Exported {len(bundle['data'])} keys from namespace {self.namespace}")
        return bundle

    # ---- private helpers ----

    def _check_availability(self) -> bool:
        try:
            if self.store.set(self.CHECK_KEY, b"test") is False:
                return False
            self.store.delete(self.CHECK_KEY)
            return True
        except Exception as e:
            logger.error(f"Key-value store availability check failed: {str(e)}")
            return False

    def _initialize_metadata(self) -> None:
        if not self.load(METADATA_ENTITY):
            self.save(
                METADATA_ENTITY,
                {"version": self.version, "createdAt": iso_now(), "entities": {}},
            )

    def _update_metadata(self, entity_name: str, timestamp: str) -> None:
        metadata = self.load(METADATA_ENTITY)
        if not isinstance(metadata, dict):
            metadata = {"version": self.version, "createdAt": timestamp, "entities": {}}
        metadata.setdefault("entities", {})[entity_name] = {
            "lastUpdated": timestamp,
            "version": self.version,
        }
        if not self.save(METADATA_ENTITY, metadata):
            logger.warning(f"Ledger entry for {entity_name} was not updated")

    def _remove_from_metadata(self, entity_name: str) -> None:
        metadata = self.load(METADATA_ENTITY)
        if metadata and entity_name in metadata.get("entities", {}):
            del metadata["entities"][entity_name]
            self.save(METADATA_ENTITY, metadata)
