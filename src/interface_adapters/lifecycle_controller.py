from fastapi.responses import JSONResponse

from src.shared.error_utils import ErrorUtils
from src.shared.errors import ServerError
from src.shared.logger import Logger
from src.use_cases.control_server import ControlServer

logger = Logger.get(__name__)


class LifecycleController:
    def __init__(self, control_server_use_case: ControlServer):
        self.control_server_use_case = control_server_use_case

    def bootstrap(self):
        return self._run("bootstrap", self.control_server_use_case.bootstrap)

    def start(self, bootstrap: bool = False):
        return self._run("start", lambda: self.control_server_use_case.start(bootstrap=bootstrap))

    def terminate(self):
        return self._run("terminate", self.control_server_use_case.terminate)

    def _run(self, operation: str, action):
        try:
            return action()
        except ServerError as e:
            logger.warning(f"{operation} failed: {e}")
            return JSONResponse(status_code=e.status_code, content=ErrorUtils.format_server_error(e))
        except Exception as e:
            # Return a proper error response instead of letting FastAPI handle it
            logger.error(f"{operation} failed unexpectedly: {e}")
            return JSONResponse(
                status_code=500,
                content=ErrorUtils.format_error_response(f"Internal server error: {str(e)}", "internal_error"),
            )
