from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

from linkedin_pipeline.application.ports.session_store_port import SessionStorePort
from linkedin_pipeline.domain.entities.cookie import (
    Cookie,
    cookies_from_json,
    cookies_to_json,
    find_session_cookie,
)

logger = logging.getLogger(__name__)


class FileSessionStore(SessionStorePort):
    """JSON-file session store. Persists the cookie set across restarts.

    A cookie blob provided through the environment is only a seed: when the
    file also holds a session cookie, whichever session cookie expires later
    is loaded. Saves always go to the file. Writes are atomic (temp file +
    rename) and the file is readable by the owner only.
    """

    def __init__(self, path: str | os.PathLike[str] = ".linkedin_cookies.json", *, env_blob: str | None = None) -> None:
        self._path = Path(path)
        self._env_blob = (env_blob or "").strip() or None

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[Cookie]:
        from_env = self._load_env()
        from_file = self._load_file()
        if from_env and from_file:
            return self._fresher(from_env, from_file)
        return from_env or from_file

    def _load_env(self) -> list[Cookie]:
        if not self._env_blob:
            return []
        try:
            return cookies_from_json(self._env_blob)
        except ValueError as exc:
            logger.warning("[FileSessionStore] cookie blob in environment is invalid: %s", exc)
            return []

    def _load_file(self) -> list[Cookie]:
        if not self._path.exists():
            return []
        try:
            return cookies_from_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("[FileSessionStore] could not read %s: %s", self._path, exc)
            return []

    def _fresher(self, from_env: list[Cookie], from_file: list[Cookie]) -> list[Cookie]:
        env_cookie = find_session_cookie(from_env)
        file_cookie = find_session_cookie(from_file)
        use_env = file_cookie is None and env_cookie is not None
        if (
            env_cookie is not None
            and file_cookie is not None
            and env_cookie.expires_at is not None
            and file_cookie.expires_at is not None
        ):
            use_env = env_cookie.expires_at > file_cookie.expires_at
        if use_env:
            logger.info("[FileSessionStore] %d cookies from environment", len(from_env))
            return from_env
        logger.info("[FileSessionStore] %d cookies from %s", len(from_file), self._path)
        return from_file

    def save(self, cookies: Sequence[Cookie]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".cookies-", dir=self._path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(cookies_to_json(cookies))
            os.chmod(tmp, 0o600)
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
