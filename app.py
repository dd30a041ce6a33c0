import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from dotenv import load_dotenv
from contextlib import asynccontextmanager

from family_core.config import Settings
from family_core.datastore.registry import get_datastore
from family_core.firebase import initialize_firebase
from family_core.functions import (
    CallableError,
    CallableRequest,
    CallableService,
    FunctionsErrorCode,
    IdTokenVerifier,
    TriggerVerifier,
)
from family_core.messaging.fcm import FCMMessenger
from family_core.notifiers import DocumentEvent, NotificationService, TriggerRouter, build_router
from family_core.utils import setup_logging

# Load environment variables
load_dotenv()

CONFIG_PATH = os.getenv("FAMILYSYNC_CONFIG", "config.yaml")

logger = logging.getLogger("family_core.app")


@dataclass
class FamilySyncServices:
    callables: CallableService
    triggers: TriggerRouter
    verifier: IdTokenVerifier
    trigger_verifier: TriggerVerifier
    # bounds concurrently running handlers, like the platform's max instance count
    limiter: asyncio.Semaphore


# Global services
services: Optional[FamilySyncServices] = None


def build_services(settings: Settings) -> FamilySyncServices:
    service_logger = setup_logging(settings.log_level, settings.log_file)

    credentials_path = settings.credentials_path if settings.database.get("type") == "firestore" else None
    datastore = get_datastore(config=settings.database, credentials_path=credentials_path)

    firebase_app = initialize_firebase(settings.credentials_path, settings.database.get("project_id"))
    messenger = FCMMessenger(app=firebase_app, logger=service_logger.getChild("messaging"))
    notifications = NotificationService(datastore, messenger, logger=service_logger.getChild("notifiers"))

    return FamilySyncServices(
        callables=CallableService(datastore, logger=service_logger.getChild("functions")),
        triggers=build_router(notifications, logger=service_logger.getChild("triggers")),
        verifier=IdTokenVerifier(app=firebase_app, logger=service_logger.getChild("auth")),
        trigger_verifier=TriggerVerifier(
            audience=settings.trigger_audience,
            service_account=settings.trigger_service_account,
            secret=settings.trigger_secret,
            logger=service_logger.getChild("auth"),
        ),
        limiter=asyncio.Semaphore(settings.max_instances),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize FamilySync services on startup"""
    global services

    try:
        settings = Settings.from_yaml(CONFIG_PATH) if os.path.exists(CONFIG_PATH) else Settings.from_env()
        settings.validate()
        services = build_services(settings)
        if not services.trigger_verifier.configured:
            logger.warning("Trigger authentication is not configured; /triggers/firestore will reject every call")
        logger.info(f"FamilySync API started (datastore={settings.database.get('type')}, max_instances={settings.max_instances})")
    except (ValueError, FileNotFoundError) as e:
        logger.exception(f"Error during startup: {e}")

    yield
    logger.info("FamilySync API shutting down...")


# Initialize FastAPI app
app = FastAPI(
    title="FamilySync Functions",
    description="Validated writes and notification triggers for FamilySync",
    version="1.0.0",
    lifespan=lifespan,
)


def get_services() -> FamilySyncServices:
    if services is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="FamilySync services not initialized. Server may need restart.",
        )
    return services


class CallableBody(BaseModel):
    """Request body of a callable: `{"data": ...}`."""
    data: Any = None


def error_response(error: CallableError) -> JSONResponse:
    return JSONResponse(status_code=error.code.http_status, content=error.to_dict())


@app.exception_handler(RequestValidationError)
async def malformed_request(request, exc: RequestValidationError):
    return error_response(CallableError(FunctionsErrorCode.INVALID_ARGUMENT, "Malformed request body"))


@app.post("/triggers/firestore", tags=["Triggers"])
async def firestore_trigger(
    event: DocumentEvent,
    authorization: Optional[str] = Header(default=None),
    deps: FamilySyncServices = Depends(get_services),
):
    """
    Receive a Firestore document change and run the matching trigger.

    Only the platform delivering change events may call this route.
    """
    if not await asyncio.to_thread(deps.trigger_verifier.verify, authorization):
        logger.warning(f"[firestore_trigger] Rejected unauthenticated change event for {event.document}")
        return error_response(CallableError(FunctionsErrorCode.UNAUTHENTICATED, "Trigger caller must be authenticated"))

    async with deps.limiter:
        pattern = await deps.triggers.dispatch(event)
    return {"dispatched": pattern}


@app.post("/{name}", tags=["Callables"])
async def call_function(
    name: str,
    body: CallableBody,
    authorization: Optional[str] = Header(default=None),
    deps: FamilySyncServices = Depends(get_services),
):
    """
    Invoke a callable function with the caller identity taken from the Firebase ID token.
    """
    if name not in deps.callables.handlers:
        return error_response(CallableError(FunctionsErrorCode.NOT_FOUND, f"Function {name} not found"))

    async with deps.limiter:
        auth = await asyncio.to_thread(deps.verifier.verify, authorization)
        try:
            result = await asyncio.to_thread(deps.callables.call, name, CallableRequest(data=body.data, auth=auth))
        except CallableError as e:
            return error_response(e)

    return {"result": result}


if __name__ == "__main__":
    import uvicorn

    # Run the server
    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8080)),
        reload=True,
        log_level="info",
    )
