"""Configuration for the RFC service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .errors import ConfigurationError

CONFIG_PATH_ENV = "RFC_SVC_CONFIG"
TOKEN_ENV = "GIT_TOKEN"
MACHINE_TOKEN_ENV = "GIT_MACHINE_TOKEN"
TRACKING_REPOSITORY_ENV = "TRACKING_REPOSITORY"
IS_LOCAL_ENV = "IS_LOCAL"


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False


@dataclass
class RepositoryConfig:
    """Tracking repository (system of record) configuration."""
    provider: str = "github"
    api_url: str = "https://api.github.com"
    owner: str = ""
    name: str = ""
    base_branch: str = "main"
    rfc_directory: str = "RFC"
    rfc_file_name: str = "RFC.json"
    timeout_seconds: float = 30.0


@dataclass
class CredentialsConfig:
    """Backend tokens. The machine token drives merges and background work."""
    token: str | None = None
    machine_token: str | None = None

    def require_token(self) -> str:
        if not self.token:
            raise ConfigurationError("no token specified")
        return self.token

    def require_machine_token(self) -> str:
        if not self.machine_token:
            raise ConfigurationError("no machine token specified")
        return self.machine_token


@dataclass
class MergeabilityConfig:
    """Mergeability polling: attempts per phase and wait between attempts."""
    retry_count: int = 3
    wait_seconds: float = 10.0


@dataclass
class SchemaStoreConfig:
    """Downstream schema store hand-off. No URL means log-only."""
    url: str | None = None
    timeout_seconds: float = 30.0


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Config:
    """Main configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)
    mergeability: MergeabilityConfig = field(default_factory=MergeabilityConfig)
    schema_store: SchemaStoreConfig = field(default_factory=SchemaStoreConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        return cls(
            server=ServerConfig(**(data.get("server") or {})),
            repository=RepositoryConfig(**(data.get("repository") or {})),
            credentials=CredentialsConfig(**(data.get("credentials") or {})),
            mergeability=MergeabilityConfig(**(data.get("mergeability") or {})),
            schema_store=SchemaStoreConfig(**(data.get("schema_store") or {})),
            logging=LoggingConfig(**(data.get("logging") or {})),
        )

    @classmethod
    def from_yaml(cls, path: str) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> Config:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: str) -> Config:
        """Load config from a YAML or JSON file, chosen by extension."""
        if path.endswith(".json"):
            return cls.from_json(path)
        return cls.from_yaml(path)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Config:
        """
        Load config from the environment.

        Reads the file named by RFC_SVC_CONFIG when set, then overlays
        GIT_TOKEN, GIT_MACHINE_TOKEN, TRACKING_REPOSITORY and IS_LOCAL.
        """
        env = os.environ if environ is None else environ

        path = env.get(CONFIG_PATH_ENV)
        config = cls.from_file(path) if path else cls()

        if env.get(TOKEN_ENV):
            config.credentials.token = env[TOKEN_ENV]
        if env.get(MACHINE_TOKEN_ENV):
            config.credentials.machine_token = env[MACHINE_TOKEN_ENV]

        tracking = env.get(TRACKING_REPOSITORY_ENV)
        if tracking:
            if "/" in tracking:
                owner, name = tracking.split("/", 1)
                config.repository.owner = owner
                config.repository.name = name
            else:
                config.repository.name = tracking

        if env.get(IS_LOCAL_ENV) == "true":
            config.server.reload = True

        return config

    def require_repository(self) -> RepositoryConfig:
        """Return the repository section, failing if it is not usable."""
        if not self.repository.owner or not self.repository.name:
            raise ConfigurationError("no tracking repository specified")
        return self.repository
