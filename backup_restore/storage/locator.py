"""
Backup object location.

Pages through a storage prefix and selects the most recently modified
object whose key looks like a backup (`.json` or `.json.gz`).
"""

from collections.abc import Iterator
from datetime import datetime, timezone

from backup_restore.core.errors import NoBackupFound
from backup_restore.core.models import BackupObject
from backup_restore.observability.logger import get_logger

from .object_store import ObjectStore

logger = get_logger(__name__)

BACKUP_SUFFIXES = (".json", ".json.gz")

# Objects without a timestamp sort before everything else
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def normalize_prefix(prefix: str | None) -> str:
    """
    Normalize a key prefix: no leading slash, exactly one trailing slash.

    Examples:
        >>> normalize_prefix("/backups")
        'backups/'
        >>> normalize_prefix("backups//")
        'backups/'
        >>> normalize_prefix("")
        ''
    """
    prefix = (prefix or "").lstrip("/")
    if not prefix:
        return ""
    return prefix.rstrip("/") + "/"


def is_backup_key(key: str | None) -> bool:
    """Return True if the key has a recognized backup suffix."""
    return bool(key) and key.endswith(BACKUP_SUFFIXES)


def _sort_time(obj: BackupObject) -> datetime:
    if obj.last_modified is None:
        return _OLDEST
    if obj.last_modified.tzinfo is None:
        return obj.last_modified.replace(tzinfo=timezone.utc)
    return obj.last_modified


class ObjectLocator:
    """
    Finds the latest backup object under a prefix.
    """

    def __init__(self, store: ObjectStore, prefix: str | None = "", debug_list: bool = False):
        """
        Initialize object locator.

        Args:
            store: Object storage capability
            prefix: Key prefix; normalized on construction
            debug_list: Log every matching key
        """
        self.store = store
        self.prefix = normalize_prefix(prefix)
        self.debug_list = debug_list

    def iter_objects(self) -> Iterator[BackupObject]:
        """Yield every object under the prefix, following continuation tokens."""
        token = None
        pages = 0
        while True:
            page = self.store.list_page(self.prefix, token)
            pages += 1
            yield from page.objects
            if not page.next_token:
                break
            token = page.next_token
        logger.debug(f"Listed {pages} page(s) under prefix '{self.prefix}'")

    def list_backups(self) -> list[BackupObject]:
        """Return matching backup objects in listing order."""
        backups = [obj for obj in self.iter_objects() if is_backup_key(obj.key)]

        if self.debug_list:
            logger.info(
                f"Listed keys under prefix '{self.prefix}': {[obj.key for obj in backups]}",
                extra={"prefix": self.prefix, "count": len(backups)},
            )

        return backups

    def latest(self) -> BackupObject:
        """
        Return the most recently modified backup object.

        Ties on the timestamp go to the object listed first.

        Raises:
            NoBackupFound: If no object matches
        """
        latest: BackupObject | None = None
        for obj in self.list_backups():
            if latest is None or _sort_time(obj) > _sort_time(latest):
                latest = obj

        if latest is None:
            raise NoBackupFound(self.store.bucket, self.prefix)

        logger.info(f"Latest backup: {latest.key} (modified {latest.last_modified})")
        return latest

    def latest_key(self) -> str:
        return self.latest().key
