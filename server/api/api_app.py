"""FastAPI application entry point for the Sovereign Explorer API."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import os
from server.api.routers.ExplorerRouter import explorer_router
from server.api.routers.InspectorRouter import inspector_router
from services.vault_explorer.ExplorerService import ExplorerService
from services.vault_explorer.notifications.Notifier import LoggingNotifier
from shared.clients.VaultRequestError import VaultRequestError
from shared.clients.vault.VaultClientManager import VaultClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown."""
    app.state.logging = setup_logging()
    app.state.helper_config = HelperConfig(logger=app.state.logging)

    # Initialise the vault client of the configured engine
    vault_client = VaultClientManager(helper_config=app.state.helper_config).get_client()
    await vault_client.boot()

    # Health check
    try:
        await vault_client.do_healthcheck()
    except VaultRequestError as e:
        app.state.logging.warning("Vault health check failed: %s", e)

    # Wire up services
    app.state.notifier = LoggingNotifier(helper_config=app.state.helper_config)
    app.state.explorer_service = ExplorerService(
        helper_config=app.state.helper_config,
        vault_client=vault_client,
        notifier=app.state.notifier,
    )

    # Initial load; an unreachable vault is reported but does not stop the server
    if not await app.state.explorer_service.do_refresh():
        app.state.logging.warning("Initial vault load incomplete, serving with partial data.")

    app.state.logging.info("Sovereign Explorer API ready.", color="green")
    yield

    # Shutdown
    await vault_client.close()
    app.state.logging.info("Sovereign Explorer API shut down.")


app = FastAPI(
    title="Sovereign Explorer",
    description="Browse, inspect and classify the documents of a remote vault.",
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(explorer_router)
app.include_router(inspector_router)


# Server Start
if __name__ == "__main__":
    # start server
    import uvicorn
    port = int(os.getenv("API_SERVER_PORT", "8000"))
    logging.info("Starting Sovereign Explorer API v%s on port %d...", app_version, port)
    uvicorn.run(app, host="0.0.0.0", port=port)
