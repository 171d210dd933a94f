"""
Command Handlers

One coroutine per protocol action. Each handler loads what it needs,
checks authentication where required, talks to a fresh backend, records
the outcome with the tracker, and returns a single Response.
"""

import logging
from typing import Awaitable, Callable, Dict, List, Optional

from ..config import DEFAULT_MAX_LEVELS
from ..core.auth import Authenticator
from ..core.project_config import ConfigError, ImbuedConfig, find_config, load_config
from ..core.protocol import Action, Command, Response
from ..core.secrets import BackendSetupError, open_backend
from ..core.tracking import Tracker, TrackingError

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "Process is not authenticated"

Handler = Callable[[Command], Awaitable[Response]]


class CommandHandlers:
    """
    Composes config loading, authentication, backends and tracking.

    Args:
        tracker: Audit tracker shared by all connections
        authenticator: Grant store shared by all connections
        config_loader: Loads a `.imbued` file (default: load_config)
        backend_opener: Async context manager factory (default: open_backend)
    """

    def __init__(
        self,
        tracker: Tracker,
        authenticator: Authenticator,
        config_loader: Callable[[str], ImbuedConfig] = load_config,
        backend_opener=open_backend
    ):
        self.tracker = tracker
        self.authenticator = authenticator
        self.config_loader = config_loader
        self.backend_opener = backend_opener

        self.handlers: Dict[str, Handler] = {
            Action.CHECK_AUTH.value: self.check_auth,
            Action.AUTHENTICATE.value: self.authenticate,
            Action.GET_SECRET.value: self.get_secret,
            Action.LIST_SECRETS.value: self.list_secrets,
            Action.INJECT_ENV.value: self.inject_env,
            Action.CLEAN_ENV.value: self.clean_env,
            Action.SHOW_CONFIG.value: self.show_config,
            Action.FIND_CONFIG.value: self.find_config,
            Action.STORE_SECRETS.value: self.store_secrets,
        }

    def get_handler(self, action: str) -> Optional[Handler]:
        """Return the handler for action, or None if the action is unknown."""
        return self.handlers.get(action)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _load(self, command: Command) -> ImbuedConfig:
        return self.config_loader(command.config_path or "")

    def _track(self, method: str, *args) -> None:
        """Call a tracker method; tracking failures are logged and never propagate."""
        try:
            getattr(self.tracker, method)(*args)
        except TrackingError as e:
            logger.error(f"❌ Failed to {method.replace('_', ' ')}: {e}")

    async def _record_access(self, process_id: str, secret_names: List[str]) -> None:
        try:
            await self.authenticator.record_access(process_id, secret_names)
        except Exception as e:
            logger.warning(f"⚠️ Failed to record access for process {process_id}: {e}")

    @staticmethod
    def _setup_failure(e: BackendSetupError) -> Response:
        if e.stage == "create":
            return Response.fail(f"Failed to create secret backend: {e}")
        return Response.fail(f"Failed to initialize secret backend: {e}")

    # =========================================================================
    # AUTHENTICATION
    # =========================================================================

    async def check_auth(self, command: Command) -> Response:
        authenticated = await self.authenticator.is_authenticated(command.process_id or "")
        return Response.ok(data={"authenticated": "true" if authenticated else "false"})

    async def authenticate(self, command: Command) -> Response:
        try:
            cfg = self._load(command)
        except ConfigError as e:
            return Response.fail(f"Failed to load config: {e}")

        process_id = command.process_id or ""
        if not process_id:
            return Response.fail("Authentication failed: process_id is required")

        secret_names = list(cfg.secrets)
        self._track("track_authentication_request", process_id, secret_names)

        try:
            authenticated = await self.authenticator.authenticate(process_id, secret_names)
        except Exception as e:
            logger.error(f"❌ Authentication error for process {process_id}: {e}")
            self._track("track_authentication_failure", process_id, secret_names, e)
            return Response.fail(f"Authentication failed: {e}")

        if not authenticated:
            self._track("track_authentication_failure", process_id, secret_names, "authentication denied")
            return Response.fail("Authentication denied")

        self._track("track_authentication_success", process_id, secret_names)
        return Response.ok(output="Authentication successful")

    # =========================================================================
    # SECRET ACCESS
    # =========================================================================

    async def get_secret(self, command: Command) -> Response:
        try:
            cfg = self._load(command)
        except ConfigError as e:
            return Response.fail(f"Failed to load config: {e}")

        process_id = command.process_id or ""
        if not await self.authenticator.is_authenticated(process_id):
            return Response.fail(NOT_AUTHENTICATED)

        secret_name = command.secret_name or ""
        env_name = cfg.secrets.get(secret_name)
        if env_name is None:
            return Response.fail(f"Secret not found: {secret_name}")

        self._track("track_secret_access", process_id, [secret_name])

        try:
            async with self.backend_opener(cfg.backend_type, cfg.backend_config) as backend:
                try:
                    value = await backend.get_secret(secret_name)
                except Exception as e:
                    self._track("track_secret_access_failure", process_id, [secret_name], e)
                    return Response.fail(f"Failed to get secret: {e}")
        except BackendSetupError as e:
            return self._setup_failure(e)

        await self._record_access(process_id, [secret_name])
        return Response.ok(data={"env_name": env_name, "value": value})

    async def inject_env(self, command: Command) -> Response:
        """Fetch every configured secret; a secret that fails is logged, tracked and left out."""
        try:
            cfg = self._load(command)
        except ConfigError as e:
            return Response.fail(f"Failed to load config: {e}")

        process_id = command.process_id or ""
        if not await self.authenticator.is_authenticated(process_id):
            return Response.fail(NOT_AUTHENTICATED)

        secret_names = list(cfg.secrets)
        self._track("track_secret_access", process_id, secret_names)

        data: Dict[str, str] = {}
        try:
            async with self.backend_opener(cfg.backend_type, cfg.backend_config) as backend:
                for secret_name, env_name in cfg.secrets.items():
                    try:
                        data[env_name] = await backend.get_secret(secret_name)
                    except Exception as e:
                        self._track("track_secret_access_failure", process_id, [secret_name], e)
                        logger.warning(f"⚠️ Failed to get secret {secret_name}: {e}")
        except BackendSetupError as e:
            return self._setup_failure(e)

        await self._record_access(process_id, [n for n, env in cfg.secrets.items() if env in data])
        return Response.ok(data=data)

    async def store_secrets(self, command: Command) -> Response:
        try:
            cfg = self._load(command)
        except ConfigError as e:
            return Response.fail(f"Failed to load config: {e}")

        process_id = command.process_id or ""
        if not await self.authenticator.is_authenticated(process_id):
            return Response.fail(NOT_AUTHENTICATED)

        secrets = dict(command.environment)
        secret_names = list(secrets)
        backend_type = command.backend_type or cfg.backend_type
        self._track("track_secret_access", process_id, secret_names)

        try:
            async with self.backend_opener(backend_type, cfg.backend_config) as backend:
                try:
                    await backend.store_secrets(secrets)
                except Exception as e:
                    self._track("track_secret_access_failure", process_id, secret_names, e)
                    return Response.fail(f"Failed to store secrets: {e}")
        except BackendSetupError as e:
            return self._setup_failure(e)

        return Response.ok(output=f"Stored {len(secrets)} secret(s)")

    # =========================================================================
    # CONFIG PROJECTIONS
    # =========================================================================

    async def list_secrets(self, command: Command) -> Response:
        try:
            cfg = self._load(command)
        except ConfigError as e:
            return Response.fail(f"Failed to load config: {e}")
        return Response.ok(data=dict(cfg.secrets))

    async def clean_env(self, command: Command) -> Response:
        try:
            cfg = self._load(command)
        except ConfigError as e:
            return Response.fail(f"Failed to load config: {e}")
        return Response.ok(data={env_name: "" for env_name in cfg.secrets.values()})

    async def show_config(self, command: Command) -> Response:
        try:
            cfg = self._load(command)
        except ConfigError as e:
            return Response.fail(f"Failed to load config: {e}")

        data = {
            "config_file": command.config_path or "",
            "valid_depth": str(cfg.valid_depth),
            "backend_type": cfg.backend_type,
        }
        for key, value in cfg.backend_config.items():
            data[f"backend_config.{key}"] = value
        for secret_name, env_name in cfg.secrets.items():
            data[f"secret.{secret_name}"] = env_name

        return Response.ok(data=data)

    async def find_config(self, command: Command) -> Response:
        if not command.current_dir:
            return Response.fail("Failed to find config: current_dir is required")

        max_levels = command.max_levels if command.max_levels >= 0 else DEFAULT_MAX_LEVELS
        try:
            path = find_config(command.current_dir, max_levels)
        except ConfigError as e:
            return Response.fail(f"Failed to find config: {e}")

        return Response.ok(data={"config_path": str(path)})
