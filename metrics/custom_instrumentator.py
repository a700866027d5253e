from prometheus_fastapi_instrumentator import Instrumentator, metrics
from goryl.config.admin_config import admin_config

instrumentator = Instrumentator(
    should_ignore_untemplated=True,
    excluded_handlers=["/metrics", "/api/v1/health", r".*/messages/poll$"],
    should_instrument_requests_inprogress=True,
    should_group_status_codes=False,
)

instrumentator.add(metrics.default(metric_namespace=admin_config.SERVICE_NAME))
