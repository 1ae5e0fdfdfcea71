"""FastAPI application for the MetaMech site: ROI calculator, checkout and lead forms."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from metamech.catalog.plans import get_all_plans
from metamech.config.settings import Settings
from metamech.engine.roi import ROIEngine, coerce_inputs
from metamech.models.enums import FormFlow, PaymentMethod
from metamech.models.errors import InvalidTransitionError, UnknownPlanError, WizardLockedError
from metamech.session import ViewSession
from metamech.storage.channels import AdminConfig, resolve_submission_endpoint
from metamech.storage.stores import JsonFileStore
from metamech.streaming import StreamManager

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

settings = Settings()


# Lifespan: sweep abandoned view sessions in the background
@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper = asyncio.create_task(_sweep_idle_sessions())
    logger.info("Starting MetaMech API")
    yield
    sweeper.cancel()
    for session_id in list(_sessions):
        await _sessions.pop(session_id).close()
    logger.info("MetaMech API stopped")


app = FastAPI(title="MetaMech API", version="0.1.0", lifespan=lifespan)

# CORS: allow the site's dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Singleton stream manager
stream_manager = StreamManager()

admin_config = AdminConfig(JsonFileStore(settings.admin_config_path))

# Open view sessions, one per browser page
_sessions: dict[str, ViewSession] = {}

_engine = ROIEngine()


# Raw calculator values arrive as typed by the user, so strings are allowed.
RawNumber = Optional[float | int | str]


class ROIRequest(BaseModel):
    engineer_count: RawNumber = None
    hours_saved_per_week: RawNumber = None
    hourly_cost: RawNumber = None
    working_weeks_per_year: RawNumber = None
    tool_cost_amount: RawNumber = None

    def raw_values(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class SessionROIRequest(ROIRequest):
    plan_id: Optional[str] = None


class CreateSessionResponse(BaseModel):
    session_id: str
    status: str


class DraftRequest(BaseModel):
    fields: dict[str, str] = Field(default_factory=dict)
    plan_id: Optional[str] = None


class PayRequest(BaseModel):
    payment_method: PaymentMethod


class EnquiryRequest(BaseModel):
    subject: str


class LeadFormRequest(BaseModel):
    fields: dict[str, str] = Field(default_factory=dict)


class AdminConfigRequest(BaseModel):
    submission_endpoint: str


def _get_session(session_id: str) -> ViewSession:
    session = _sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    session.touch()
    return session


async def expire_idle_sessions(now: Optional[float] = None) -> list[str]:
    """Close sessions with no open stream that have been idle past the timeout."""
    expired = [
        session_id
        for session_id, session in _sessions.items()
        if stream_manager.subscriber_count(session_id) == 0
        and session.idle_seconds(now) >= settings.session_idle_timeout
    ]
    for session_id in expired:
        session = _sessions.pop(session_id, None)
        if session is not None:
            await session.close()
    if expired:
        logger.info(f"Expired {len(expired)} idle view session(s)")
    return expired


async def _sweep_idle_sessions() -> None:
    while True:
        await asyncio.sleep(settings.session_sweep_interval)
        try:
            await expire_idle_sessions()
        except Exception:
            logger.exception("Idle session sweep failed")


async def _track_stream(session: ViewSession, events: AsyncGenerator[str, None]) -> AsyncGenerator[str, None]:
    try:
        async for chunk in events:
            yield chunk
    finally:
        await events.aclose()
        # Idle time counts from the moment the page disconnects.
        session.touch()


def _wizard_state(session: ViewSession) -> dict[str, Any]:
    wizard = session.wizard
    draft = wizard.draft
    return {
        "step": wizard.step.value,
        "submitting": wizard.is_submitting,
        "error": wizard.error,
        "missing_fields": wizard.missing_fields,
        "draft": {
            "fields": draft.contact_fields,
            "plan_id": draft.plan_id,
            "payment_method": draft.payment_method.value if draft.payment_method else None,
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/plans")
async def list_plans():
    return [plan.to_dict() for plan in get_all_plans()]


@app.post("/api/roi")
async def compute_roi(body: ROIRequest):
    """Stateless calculation from raw calculator inputs."""
    inputs = coerce_inputs(body.raw_values())
    return {"inputs": inputs.to_dict(), "result": _engine.compute(inputs).to_dict()}


@app.post("/api/sessions", response_model=CreateSessionResponse)
async def create_session():
    """Open a view session and start the counters from zero."""
    endpoint = resolve_submission_endpoint(settings, admin_config)
    session = ViewSession(
        settings=settings,
        stream_manager=stream_manager,
        submission_endpoint=endpoint,
    )
    _sessions[session.session_id] = session
    session.roi.start()
    return CreateSessionResponse(session_id=session.session_id, status="open")


@app.delete("/api/sessions/{session_id}")
async def close_session(session_id: str):
    session = _sessions.pop(session_id, None)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    await session.close()
    return {"session_id": session_id, "status": "closed"}


@app.get("/api/sessions/{session_id}/stream")
async def stream_session(session_id: str, request: Request):
    """SSE endpoint: counter frames and checkout events."""
    session = _get_session(session_id)
    last_event_id: int | None = None
    raw = request.headers.get("Last-Event-ID") or request.headers.get("last-event-id")
    if raw is not None:
        try:
            last_event_id = int(raw)
        except ValueError:
            pass

    generator = stream_manager.event_generator(session_id, last_event_id=last_event_id)
    return StreamingResponse(_track_stream(session, generator), media_type="text/event-stream")


@app.get("/api/sessions/{session_id}/roi")
async def get_session_roi(session_id: str):
    return _get_session(session_id).roi_snapshot()


@app.put("/api/sessions/{session_id}/roi")
async def update_session_roi(session_id: str, body: SessionROIRequest):
    session = _get_session(session_id)
    raw = body.raw_values()
    plan_id = raw.pop("plan_id", None)
    try:
        session.update_roi(plan_id=plan_id, **raw)
    except UnknownPlanError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return session.roi_snapshot()


@app.get("/api/sessions/{session_id}/checkout")
async def get_checkout(session_id: str):
    return _wizard_state(_get_session(session_id))


@app.put("/api/sessions/{session_id}/checkout/draft")
async def update_draft(session_id: str, body: DraftRequest):
    session = _get_session(session_id)
    try:
        if body.plan_id is not None:
            session.wizard.set_plan(body.plan_id)
        session.wizard.update_fields(**body.fields)
    except WizardLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (UnknownPlanError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e))
    return _wizard_state(session)


@app.post("/api/sessions/{session_id}/checkout/submit")
async def submit_checkout(session_id: str):
    """Submit order details. Remote failures come back as a recoverable state."""
    session = _get_session(session_id)
    advanced = await session.wizard.submit_details()
    return {"success": advanced, **_wizard_state(session)}


@app.post("/api/sessions/{session_id}/checkout/back")
async def checkout_back(session_id: str):
    session = _get_session(session_id)
    session.wizard.go_back()
    return _wizard_state(session)


@app.post("/api/sessions/{session_id}/checkout/pay")
async def checkout_pay(session_id: str, body: PayRequest):
    session = _get_session(session_id)
    try:
        action = session.wizard.pay(body.payment_method)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"action": action.to_dict(), **_wizard_state(session)}


@app.post("/api/sessions/{session_id}/enquiries")
async def create_enquiry(session_id: str, body: EnquiryRequest):
    """Services section: remember the enquiry subject for the contact form."""
    session = _get_session(session_id)
    session.prefill.write(body.subject)
    return {"status": "stored"}


@app.post("/api/sessions/{session_id}/contact/activate")
async def activate_contact(session_id: str):
    session = _get_session(session_id)
    message = session.contact_form.activate()
    return {"prefilled_message": message, "fields": session.contact_form.fields}


@app.post("/api/sessions/{session_id}/{form_name}/submit")
async def submit_lead_form(session_id: str, form_name: str, body: LeadFormRequest):
    flows = {"trial": FormFlow.TRIAL_REQUEST, "contact": FormFlow.CONTACT_REQUEST}
    if form_name not in flows:
        raise HTTPException(status_code=404, detail="Unknown form")
    session = _get_session(session_id)
    form = session.lead_form(flows[form_name])
    try:
        form.update_fields(**body.fields)
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    success = await form.submit()
    return {
        "success": success,
        "submitted": form.submitted,
        "error": form.error,
        "missing_fields": form.missing_fields,
    }


@app.get("/api/admin/config")
async def get_admin_config():
    if not settings.admin_enabled:
        raise HTTPException(status_code=404, detail="Not found")
    return {
        "submission_endpoint": admin_config.get_submission_endpoint(),
        "effective_endpoint": resolve_submission_endpoint(settings, admin_config),
    }


@app.put("/api/admin/config")
async def update_admin_config(body: AdminConfigRequest):
    if not settings.admin_enabled:
        raise HTTPException(status_code=404, detail="Not found")
    admin_config.set_submission_endpoint(body.submission_endpoint)
    logger.info("Admin updated the submission endpoint")
    return {"submission_endpoint": admin_config.get_submission_endpoint()}
