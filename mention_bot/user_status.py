"""Account liveness checks for suggested reviewers."""

import os
import json
import logging
import tempfile
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timedelta
from threading import Lock
from typing import Dict, List, Optional, Sequence

import requests

from .api_client import GitHubAPIClient


class UserStatusCache:
    """Remembers whether GitHub logins belong to active accounts.

    Shared by concurrent webhook deliveries. Reads and writes are guarded by
    a lock; when two deliveries resolve the same login at the same time the
    first stored answer is kept and later ones are discarded.
    """

    def __init__(self, cache_file: str = None, ttl_hours: float = 24.0):
        """Initialize the cache.

        Args:
            cache_file: Optional JSON file to load from and save to
            ttl_hours: Age after which an entry is looked up again; 0 keeps
                       entries for the life of the cache
        """
        self.cache_file = cache_file
        self.ttl = timedelta(hours=ttl_hours)
        self._lock = Lock()
        self._write_lock = Lock()
        self.cache: Dict[str, Dict] = self._load_cache()

    def _load_cache(self) -> Dict:
        """Load cache from file."""
        if not self.cache_file or not os.path.exists(self.cache_file):
            return {}

        try:
            with open(self.cache_file, 'r') as f:
                cache = json.load(f)
                logging.info(f"Loaded user cache from {self.cache_file} with {len(cache)} entries")
                return cache
        except (OSError, ValueError) as e:
            logging.warning(f"Failed to load user cache: {e}")
            return {}

    def save_cache(self):
        """Save cache to file.

        Concurrent saves are serialized and each one replaces the file
        atomically, so readers never see a partially written cache.
        """
        if not self.cache_file:
            return

        with self._write_lock:
            with self._lock:
                snapshot = dict(self.cache)
            directory = os.path.dirname(os.path.abspath(self.cache_file))
            fd, temp_path = tempfile.mkstemp(suffix='.tmp', dir=directory)
            try:
                with os.fdopen(fd, 'w') as f:
                    json.dump(snapshot, f, indent=2)
                os.replace(temp_path, self.cache_file)
                logging.info(f"Saved user cache to {self.cache_file} with {len(snapshot)} entries")
            except OSError as e:
                logging.warning(f"Failed to save user cache: {e}")
                if os.path.exists(temp_path):
                    os.remove(temp_path)

    def _is_fresh(self, entry: Dict) -> bool:
        if self.ttl.total_seconds() <= 0:
            return True
        try:
            cached_time = datetime.fromisoformat(entry['timestamp'])
        except (KeyError, TypeError, ValueError):
            return False
        return datetime.now() - cached_time < self.ttl

    def _evict_expired(self):
        """Drop stale entries. Caller holds _lock."""
        expired = [login for login, entry in self.cache.items() if not self._is_fresh(entry)]
        for login in expired:
            del self.cache[login]
        if expired:
            logging.debug(f"Evicted {len(expired)} expired user cache entries")

    def get(self, login: str) -> Optional[bool]:
        """Return the cached status of a login, or None if unknown or expired."""
        with self._lock:
            entry = self.cache.get(login.lower())
            if entry is None or not self._is_fresh(entry):
                return None
            return entry.get('active')

    def put_if_absent(self, login: str, active: bool) -> bool:
        """Store a status unless a fresh one is already cached.

        Returns:
            The status that is cached after the call
        """
        key = login.lower()
        with self._lock:
            entry = self.cache.get(key)
            if entry is not None and 'active' in entry and self._is_fresh(entry):
                return entry['active']
            self._evict_expired()
            self.cache[key] = {
                'timestamp': datetime.now().isoformat(),
                'active': active
            }
            return active

    def __contains__(self, login: str) -> bool:
        return self.get(login) is not None

    def __len__(self) -> int:
        return len(self.cache)


def check_user_active(login: str, api_client: GitHubAPIClient, cache: UserStatusCache) -> Optional[bool]:
    """Look up whether a login is an active (not suspended) account.

    Returns:
        True or False, or None if the lookup failed
    """
    cached = cache.get(login)
    if cached is not None:
        logging.debug(f"Using cached status for {login}")
        return cached

    try:
        user = api_client.get_user(login)
    except requests.RequestException as e:
        logging.warning(f"Could not look up user {login}: {e}")
        return None

    return cache.put_if_absent(login, not user.get('suspended_at'))


def filter_active_reviewers(reviewers: Sequence[str], api_client: GitHubAPIClient,
                            cache: UserStatusCache, max_workers: int = 10) -> List[str]:
    """Keep the reviewers whose accounts are active, in their original order.

    All lookups run concurrently and are awaited before returning. A login
    whose lookup fails is left out.
    """
    if not reviewers:
        return []

    statuses: Dict[str, Optional[bool]] = {}
    with ThreadPoolExecutor(max_workers=min(max(1, max_workers), len(reviewers))) as executor:
        future_to_login = {
            executor.submit(check_user_active, login, api_client, cache): login
            for login in reviewers
        }

        for future in as_completed(future_to_login):
            statuses[future_to_login[future]] = future.result()

    inactive = [login for login in reviewers if statuses.get(login) is False]
    if inactive:
        logging.info(f"Not mentioning inactive account(s): {', '.join(inactive)}")

    return [login for login in reviewers if statuses.get(login)]
