from fastapi.responses import JSONResponse

from src.shared.error_utils import ErrorUtils
from src.shared.logger import Logger
from src.use_cases.get_health import GetHealth

logger = Logger.get(__name__)


class HealthController:
    def __init__(self, get_health_use_case: GetHealth):
        self.get_health_use_case = get_health_use_case

    def health(self):
        try:
            return self.get_health_use_case.execute()
        except Exception as e:
            # Executor closed or status unavailable
            logger.error(f"Health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content=ErrorUtils.format_error_response(f"Health check failed: {str(e)}", "health_check_error"),
            )
