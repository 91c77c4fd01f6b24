from fastapi import FastAPI
from contextlib import asynccontextmanager
from .config import get_settings
from .logging_config import configure_logging
from .slack.client import connect_slack, create_http_client
from .slack.exceptions import SlackGatewayError
from .tools import ToolDispatcher
from src.mcp_transport.router import router as mcp_router

settings = get_settings()

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: check the token before serving; a failure aborts startup
    app.state.logger = configure_logging(settings.LOG_LEVEL)

    # timeouts=None: no gateway-side timeout on Slack calls
    app.state.http_client = create_http_client()
    try:
        slack = await connect_slack(settings, app.state.http_client, app.state.logger)
    except SlackGatewayError as exc:
        app.state.logger.error("startup_failed", code=exc.code, error=exc.message)
        await app.state.http_client.aclose()
        raise

    app.state.dispatcher = ToolDispatcher(slack, app.state.logger)

    yield

    # Shutdown: close HTTP client
    await app.state.http_client.aclose()

app = FastAPI(
    title=settings.APP_NAME,
    lifespan=lifespan,
    debug=settings.DEBUG
)

# Tool and Slack failures are answered inside the JSON-RPC envelope by
# mcp_transport.service, so no HTTP-level error mapping is registered.

@app.get("/health")
async def health_check():
    return {"status": "ok", "app": settings.APP_NAME}

# Include routers
app.include_router(mcp_router)
