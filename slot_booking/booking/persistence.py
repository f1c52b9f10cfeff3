import copy
import json
import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, List
from .error_utils import PersistenceError

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

# Mapping of "YYYY-MM-DD" date keys to the ordered list of booked slots for that date
Store = Dict[str, List[str]]


class StorePersistence(ABC):
    """
    Interface between the booking store and wherever the bookings are kept.
    """

    @abstractmethod
    def load(self) -> Store:
        """Returns the full store. Raises PersistenceError if it can't be read."""

    @abstractmethod
    def save(self, store: Store) -> bool:
        """Replaces the persisted store. Returns True if the write succeeded, False otherwise."""


class JsonFilePersistence(StorePersistence):
    """
    Keeps the store as a single JSON object in a flat file. The file is created on the first write.
    """
    def __init__(self, path):
        self.path = os.path.abspath(os.fspath(path))

    @contextmanager
    def _atomic_writer(self):
        """
        Internal function to write through a temp file in the same folder and swap it in with os.replace, so a failed write never leaves a half-written data file.
        """
        folder = os.path.dirname(self.path)
        os.makedirs(folder, exist_ok=True)
        with tempfile.NamedTemporaryFile('w', delete=False, encoding='utf-8', dir=folder, suffix='.tmp') as tmp_file:
            tmp_name = tmp_file.name
            try:
                yield tmp_file
            except BaseException:
                tmp_file.close()
                os.unlink(tmp_name)
                raise
        try:
            # Temp files are created 0600, keep the data file's own permissions
            if os.path.exists(self.path):
                shutil.copymode(self.path, tmp_name)
            os.replace(tmp_name, self.path)
        except OSError:
            os.unlink(tmp_name)
            raise

    def load(self) -> Store:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as data_file:
                raw = json.load(data_file)
        except (OSError, ValueError) as e:
            logger.error("Reading data file %s failed: %s", self.path, e.args)
            raise PersistenceError("Error while reading booking data")
        if not _is_valid_store(raw):
            logger.error("Data file %s is not a mapping of dates to slot lists", self.path)
            raise PersistenceError("Error while reading booking data")
        return raw

    def save(self, store: Store) -> bool:
        try:
            with self._atomic_writer() as data_file:
                json.dump(store, data_file, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error("Writing data file %s failed: %s", self.path, e.args)
            return False
        return True


class MemoryPersistence(StorePersistence):
    """
    Keeps the store in memory. Used for tests and for running without a data file.
    Set fail_writes to simulate a storage failure.
    """
    def __init__(self, initial: Store = None, fail_writes=False):
        self._store = copy.deepcopy(initial) if initial else {}
        self.fail_writes = fail_writes
        self.save_count = 0

    def load(self) -> Store:
        # Hand out a copy so callers can't change what's "persisted" without saving
        return copy.deepcopy(self._store)

    def save(self, store: Store) -> bool:
        if self.fail_writes:
            logger.error("Simulated write failure, store not saved")
            return False
        self._store = copy.deepcopy(store)
        self.save_count += 1
        return True


def _is_valid_store(raw) -> bool:
    if not isinstance(raw, dict):
        return False
    for slots in raw.values():
        if not isinstance(slots, list) or not all(isinstance(slot, str) for slot in slots):
            return False
    return True
