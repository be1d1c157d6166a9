"""
token_store.py

Persistence for the owner's OAuth token.

One interface, several backends; the deployment picks exactly one with
MOYOFY_TOKEN_STORE. Business logic never chains backends.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from moyofy import config
from moyofy.env import ConfigError, Environment
from moyofy.env.paths import auth_token_file
from moyofy.logger import get_logger

logger = get_logger(__name__)


class TokenStore(Protocol):
    def load(self) -> Optional[Dict[str, Any]]: ...

    def save(self, info: Dict[str, Any]) -> None: ...

    def clear(self) -> None: ...


class FileTokenStore:
    """JSON file under the auth dir, readable by the owner only."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            if not self.path.exists():
                return None
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to read owner token {self.path}: {e}")
                return None
            return data if isinstance(data, dict) else None

    def save(self, info: Dict[str, Any]) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(info, indent=2, sort_keys=True), encoding="utf-8")

            # Best-effort permission tightening (POSIX only)
            try:
                os.chmod(tmp, 0o600)
            except OSError as e:
                logger.debug(f"Could not set restrictive permissions: {e}")

            tmp.replace(self.path)
        logger.debug(f"Saved owner token to {self.path}")

    def clear(self) -> None:
        with self._lock:
            try:
                self.path.unlink()
                logger.info("Cleared stored owner token")
            except FileNotFoundError:
                pass


class EnvTokenStore:
    """
    Token provided through an environment variable (read-mostly hosts).

    Saves only update this process's environment; the deployment has to
    copy a rotated token back into its configuration itself.
    """

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name

    def load(self) -> Optional[Dict[str, Any]]:
        raw = os.environ.get(self.var_name)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.error(f"{self.var_name} is not valid JSON: {e}")
            return None
        return data if isinstance(data, dict) else None

    def save(self, info: Dict[str, Any]) -> None:
        os.environ[self.var_name] = json.dumps(info)
        logger.warning(
            f"Owner token updated in process environment only; "
            f"update {self.var_name} in the deployment to keep it across restarts"
        )

    def clear(self) -> None:
        os.environ.pop(self.var_name, None)
        logger.info(f"Cleared {self.var_name} from process environment")


def build_token_store(env: Environment) -> TokenStore:
    if env.token_store == "file":
        return FileTokenStore(auth_token_file(config.OWNER_TOKEN_FILENAME))
    if env.token_store == "env":
        return EnvTokenStore(env.owner_tokens_var)
    raise ConfigError(
        f"Unknown MOYOFY_TOKEN_STORE: {env.token_store!r} (expected 'file' or 'env')"
    )
