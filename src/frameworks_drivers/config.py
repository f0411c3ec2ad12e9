import json
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress


class GenericConfig(BaseModel):
    """Filesystem layout of the MySQL installation and its runtime directories.

    Attributes:
        executable_path: Path of the mysqld executable.
        package_base_path: Installation base directory (--basedir).
        charsets_path: Character sets directory (--character-sets-dir).
        plugins_path: Plugins directory (--plugin-dir).
        databases_path: Data directory (--datadir); also holds the bootstrap marker.
        temporary_path: Temporary directory (--tmpdir); the child's working directory.
        socket_path: Unix socket path (--socket).
        pid_path: Pid file path (--pid-file).
    """

    model_config = ConfigDict(frozen=True)

    executable_path: str = Field(..., description="Path of the mysqld executable")
    package_base_path: str = Field(..., description="Installation base directory")
    charsets_path: str = Field(..., description="Character sets directory")
    plugins_path: str = Field(..., description="Plugins directory")
    databases_path: str = Field(..., description="Data directory, also holding the bootstrap marker")
    temporary_path: str = Field(..., description="Temporary directory, used as working directory")
    socket_path: str = Field(..., description="Unix socket path")
    pid_path: str = Field(..., description="Pid file path")


class ServerConfiguration(BaseModel):
    """Launch parameters of the supervised MySQL server; immutable once built.

    Attributes:
        generic: Installation and runtime directory layout.
        sql_endpoint_ip: Address the server binds to.
        sql_endpoint_port: Port the server listens on.
        sql_administrator_password: Password set for the root user during bootstrap.
        sql_initialization_script_paths: SQL scripts executed, in order, during bootstrap.
        environment: Environment variables of the child; the supervisor's own are not inherited.
    """

    model_config = ConfigDict(frozen=True)

    generic: GenericConfig
    sql_endpoint_ip: IPvAnyAddress = Field("127.0.0.1", description="Address the server binds to")
    sql_endpoint_port: int = Field(3306, ge=1, le=65535, description="Port the server listens on")
    sql_administrator_password: str = Field(..., description="Password set for the root user during bootstrap")
    sql_initialization_script_paths: List[str] = Field(default_factory=list, description="SQL scripts executed during bootstrap, in order")
    environment: Dict[str, str] = Field(default_factory=dict, description="Environment variables of the child process")

    @property
    def marker_path(self) -> Path:
        """Location of the bootstrap marker inside the data directory."""
        return Path(self.generic.databases_path) / ".bootstrap.marker"


class SupervisorConfig(BaseModel):
    """Configuration for the supervisor itself.

    Attributes:
        queue_size: Capacity of the lifecycle command queue.
        terminate_timeout: Grace period before a terminating server is killed (None waits forever).
        auto_start: Whether the entry point starts the server before serving the API.
        auto_bootstrap: Whether auto start bootstraps first when no marker exists.
    """

    queue_size: int = Field(16, gt=0, description="Capacity of the lifecycle command queue")
    terminate_timeout: Optional[float] = Field(None, gt=0, description="Grace period in seconds before killing a terminating server")
    auto_start: bool = Field(False, description="Start the server when the supervisor starts")
    auto_bootstrap: bool = Field(True, description="Bootstrap before auto start when no marker exists")


class ApiConfig(BaseModel):
    """Configuration for the control API.

    Attributes:
        host: Host for the control API.
        port: Port for the control API.
    """

    host: str = Field("127.0.0.1", description="Host for the control API")
    port: int = Field(8000, ge=1, le=65535, description="Port for the control API")


class Config(BaseModel):
    """Main configuration class.

    Attributes:
        mysql: Launch parameters of the supervised server.
        supervisor: Supervisor settings.
        server: Control API settings.
    """

    mysql: ServerConfiguration
    supervisor: SupervisorConfig = Field(default_factory=SupervisorConfig)
    server: ApiConfig = Field(default_factory=ApiConfig)

    @classmethod
    def load(cls, config_path: str = "config.json") -> "Config":
        """Load and validate configuration from JSON file."""
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path) as f:
            data = json.load(f)

        return cls(**data)
