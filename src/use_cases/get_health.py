from typing import Any, Optional

from src.entities.server_state import ServerState
from src.frameworks_drivers.config import Config
from src.shared.protocols import ServerControlProtocol


class GetHealth:
    def __init__(self, server: ServerControlProtocol, config: Optional[Config] = None):
        self.server = server
        self.config = config

    def execute(self) -> dict[str, Any]:
        status = self.server.status()
        response = {
            "healthy": status.state != ServerState.FAILED,
            "server": status.model_dump(mode="json"),
        }
        # Only include the endpoint if configuration is present
        if self.config:
            response["endpoint"] = {
                "host": str(self.config.mysql.sql_endpoint_ip),
                "port": self.config.mysql.sql_endpoint_port,
            }
        return response
