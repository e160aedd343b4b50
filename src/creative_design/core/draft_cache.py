"""TTL-bound persistence of the in-progress design draft.

The draft (screenshot, prompt, style, aspect ratio) survives a page reload
for ``draft_expiration_hours``, but only for the artifact it was written
for.  Generated results and errors are never persisted here; they are cheap
to regenerate.

Storage is a plain string key-value capability (:class:`KeyValueStore`).
:class:`JsonFileKeyValueStore` keeps one JSON document per key in a
directory; :class:`MemoryKeyValueStore` is an in-process dictionary.

Restoration rules
-----------------
A stored draft is exposed only if:

- it parses as a draft document
- ``now - saved_at`` is below the expiration window
- its owner matches the caller's current artifact

Anything else is treated as "no draft" and the stored value is removed.
Failures of the store itself are raised as ``STORAGE_ERROR``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from creative_design.core.errors import storage_error
from creative_design.core.models import DesignStyle, DraftState

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """String key-value storage used by the draft cache."""

    def get(self, key: str) -> str | None:
        ...

    def put(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryKeyValueStore:
    """Key-value store held in a dictionary."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def put(self, key: str, value: str) -> None:
        self._items[key] = value

    def delete(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)


class JsonFileKeyValueStore:
    """Key-value store with one ``<key>.json`` file per key.

    Args:
        directory: Directory holding the files; created if missing.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        safe_key = "".join(c if c.isalnum() or c in "-_." else "_" for c in key)
        return self.directory / f"{safe_key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def put(self, key: str, value: str) -> None:
        self._path(key).write_text(value, encoding="utf-8")

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class DraftStateCache:
    """Persist and restore the design draft for the current artifact.

    Args:
        store: Backing key-value store.
        storage_key: Key the draft document is written under.
        expiration_hours: Draft time-to-live.
        max_storage_bytes: Largest serialized draft accepted.
        clock: Returns "now" as epoch seconds.
    """

    def __init__(
        self,
        store: KeyValueStore,
        storage_key: str = "creative-design-draft",
        expiration_hours: float = 24.0,
        max_storage_bytes: int = 5 * 1024 * 1024,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.storage_key = storage_key
        self.expiration_hours = expiration_hours
        self.max_storage_bytes = max_storage_bytes
        self._clock = clock

    @property
    def expiration_seconds(self) -> float:
        return self.expiration_hours * 3600

    def _purge(self, reason: str) -> None:
        logger.info(f"Discarding stored draft: {reason}")
        self._delete()

    def _delete(self) -> None:
        try:
            self.store.delete(self.storage_key)
        except OSError as e:
            logger.error(f"Error clearing draft: {e}")
            raise storage_error("The draft could not be cleared.", e) from e

    def load(self, owner_artifact_id: str) -> DraftState | None:
        """Return the stored draft for ``owner_artifact_id`` if still valid.

        Expired, foreign or unparseable drafts are deleted and ``None`` is
        returned.  These cases are never errors.

        Raises:
            DesignError: ``STORAGE_ERROR`` if the store itself cannot be read.
        """
        try:
            serialized = self.store.get(self.storage_key)
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading draft: {e}")
            raise storage_error("The draft could not be read.", e) from e
        if serialized is None:
            return None

        try:
            draft = DraftState.model_validate_json(serialized)
        except ValidationError as e:
            self._purge(f"unreadable payload ({e.error_count()} errors)")
            return None

        age_seconds = self._clock() - draft.saved_at
        if age_seconds >= self.expiration_seconds:
            self._purge(f"expired {age_seconds:.0f}s after save")
            return None

        if draft.owner_artifact_id != owner_artifact_id:
            self._purge(f"belongs to artifact {draft.owner_artifact_id}, not {owner_artifact_id}")
            return None

        return draft

    def save(
        self,
        owner_artifact_id: str,
        *,
        screenshot: str | None = None,
        prompt: str | None = None,
        style: DesignStyle | str | None = None,
        aspect_ratio: str | None = None,
    ) -> DraftState:
        """Write the draft, merging the given fields into the current one.

        Fields left as ``None`` keep their stored value when a valid draft for
        the same artifact exists, and their defaults otherwise.

        Returns:
            The draft as written, with ``saved_at`` set to now.

        Raises:
            DesignError: ``STORAGE_ERROR`` if the serialized draft exceeds
                ``max_storage_bytes`` or the store fails.  Nothing is written
                in either case.
        """
        current = self.load(owner_artifact_id)
        base = current.model_dump() if current else {}

        updates = {
            "screenshot": screenshot,
            "prompt": prompt,
            "style": style,
            "aspect_ratio": aspect_ratio,
        }
        merged = {**base, **{k: v for k, v in updates.items() if v is not None}}
        merged["owner_artifact_id"] = owner_artifact_id
        merged["saved_at"] = self._clock()
        draft = DraftState.model_validate(merged)

        serialized = draft.model_dump_json()
        size = len(serialized.encode("utf-8"))
        if size > self.max_storage_bytes:
            logger.error(f"Draft too large to persist ({size} > {self.max_storage_bytes} bytes)")
            raise storage_error(
                "The draft is too large to save. Try a smaller screenshot."
            )

        try:
            self.store.put(self.storage_key, serialized)
        except OSError as e:
            logger.error(f"Error saving draft: {e}")
            raise storage_error("The draft could not be saved.", e) from e

        logger.debug(f"Saved draft for artifact {owner_artifact_id} ({size} bytes)")
        return draft

    def clear(self) -> None:
        """Remove the stored draft unconditionally."""
        self._delete()
        logger.info("Draft cleared")
