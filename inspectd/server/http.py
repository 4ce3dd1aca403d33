import logging
import uuid
from typing import Tuple

from aiohttp import web

from inspectd.core.exceptions import ConfigurationError
from inspectd.core.logging import set_correlation_id
from inspectd.metrics.context import MetricContext

logger = logging.getLogger(__name__)

METRICS_PATH = "/api/v1/metrics.json"

metric_context_key = web.AppKey("metric_context", MetricContext)

@web.middleware
async def correlation_middleware(request: web.Request, handler):
    set_correlation_id(request.headers.get("X-Request-Id") or str(uuid.uuid4()))
    return await handler(request)

async def json_handler(request: web.Request) -> web.Response:
    """Serve every registered metric as a JSON array."""
    context = request.app[metric_context_key]
    body = context.to_json() + "\n" # be nice to curl
    logger.debug(f"Serving metrics for {request.remote}", extra={"path": request.path})
    return web.Response(text=body, content_type="application/json")

async def health_handler(request: web.Request) -> web.Response:
    return web.Response()

def create_app(context: MetricContext, path: str = METRICS_PATH) -> web.Application:
    app = web.Application(middlewares=[correlation_middleware])
    app[metric_context_key] = context
    app.router.add_get(path, json_handler)
    app.router.add_get("/health", health_handler)
    return app

def parse_address(address: str) -> Tuple[str, int]:
    """Split "host:port" (host optional, as in ":19999") into its parts."""
    host, sep, port = address.rpartition(":")
    if not sep:
        raise ConfigurationError(f"address must be host:port, got {address!r}")
    try:
        port_number = int(port)
    except ValueError:
        raise ConfigurationError(f"invalid port in address {address!r}") from None
    if not 0 <= port_number <= 65535:
        raise ConfigurationError(f"port out of range in address {address!r}")
    return host or "0.0.0.0", port_number

async def start_server(context: MetricContext, address: str, path: str = METRICS_PATH) -> web.AppRunner:
    host, port = parse_address(address)
    runner = web.AppRunner(create_app(context, path))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info(f"Serving metrics on http://{host}:{port}{path}")
    return runner
