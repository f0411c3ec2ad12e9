import os
import uvicorn

from src.entities.server_state import ServerState
from src.frameworks_drivers.config import Config
from src.frameworks_drivers.mysql_server import MySqlServer
from src.interface_adapters.api import API
from src.interface_adapters.health_controller import HealthController
from src.interface_adapters.lifecycle_controller import LifecycleController
from src.shared.logger import Logger
from src.use_cases.control_server import ControlServer
from src.use_cases.get_health import GetHealth

if __name__ == "__main__":
    logger = Logger.get(__name__)

    server = None
    try:
        config = Config.load(os.environ.get("MYSQL_SUPERVISOR_CONFIG", "config.json"))

        # Instantiate the supervised server
        server = MySqlServer(
            config.mysql,
            queue_size=config.supervisor.queue_size,
            terminate_timeout=config.supervisor.terminate_timeout,
        )

        if config.supervisor.auto_start:
            bootstrap = config.supervisor.auto_bootstrap and not server.marker.exists()
            logger.info(f"Auto-starting mysqld (bootstrap={bootstrap})")
            server.start(bootstrap=bootstrap)

        # Instantiate use cases
        control_server = ControlServer(server)
        get_health = GetHealth(server, config)

        # Instantiate controllers
        lifecycle_controller = LifecycleController(control_server)
        health_controller = HealthController(get_health)

        # Instantiate API
        api = API(lifecycle_controller, health_controller)

        logger.info("Starting MySQL Server Supervisor...")
        uvicorn.run(api.app, host=config.server.host, port=config.server.port)
    except Exception as e:
        logger.error(f"Failed to run supervisor: {e}")
        raise
    finally:
        if server is not None:
            if server.status().state == ServerState.RUNNING:
                logger.info("Stopping mysqld before exit")
                server.terminate()
            server.close()
