from fastapi import FastAPI

from src.interface_adapters.health_controller import HealthController
from src.interface_adapters.lifecycle_controller import LifecycleController


class API:
    def __init__(self, lifecycle_controller: LifecycleController, health_controller: HealthController):
        self.lifecycle_controller = lifecycle_controller
        self.health_controller = health_controller
        self.app = FastAPI(title="MySQL Server Supervisor", version="0.1.0")

        self._register_routes()

    def _register_routes(self):
        # Handlers are synchronous so FastAPI runs them in its threadpool while they block on the executor
        def bootstrap_handler():
            return self.lifecycle_controller.bootstrap()

        def start_handler(bootstrap: bool = False):
            return self.lifecycle_controller.start(bootstrap=bootstrap)

        def terminate_handler():
            return self.lifecycle_controller.terminate()

        def health_handler():
            return self.health_controller.health()

        self.app.post("/bootstrap")(bootstrap_handler)
        self.app.post("/start")(start_handler)
        self.app.post("/terminate")(terminate_handler)
        self.app.get("/health")(health_handler)
