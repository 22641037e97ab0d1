import logging
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .config import LOG_FILE, LOG_JSON, LOG_LEVEL, is_debug, validate_config
from .errors import InvalidInput, SigningRejected
from .hashing import compute_signature_hash, resolve_hash_version
from .logging_config import audit_log, configure_logging, set_request_id
from .models import (
    RunFinalizeRequest,
    RunVerifyRequest,
    SignatureHashRequest,
    SignatureHashResponse,
    SignatureRecordModel,
    SignRequest,
)
from .records import ReportRun
from .signing import finalize_report_run, sign_report_run
from .verifier import verify_report_run, verify_signature

REQUEST_ID_HEADER = "X-Request-ID"

app = FastAPI(title="reportseal signature service", debug=is_debug())
logger = logging.getLogger(__name__)


@app.on_event("startup")
def _startup():
    configure_logging(level=LOG_LEVEL, json_format=LOG_JSON, log_file=LOG_FILE)
    for setting, problem in validate_config().items():
        logger.warning("config %s: %s", setting, problem)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER) or None)
    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


@app.exception_handler(InvalidInput)
async def _invalid_input(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(SigningRejected)
async def _signing_rejected(request: Request, exc: SigningRejected):
    return JSONResponse(status_code=409 if exc.conflict else 400, content=exc.to_dict())


@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/signatures/hash", response_model=SignatureHashResponse)
def hash_signature(req: SignatureHashRequest):
    version = resolve_hash_version(req.hash_version)
    fields = req.model_dump(exclude={"hash_version"})
    return SignatureHashResponse(
        signature_hash=compute_signature_hash(fields, version),
        hash_version=version.value,
    )


@app.post("/signatures/verify")
def verify_signature_record(record: SignatureRecordModel):
    result = verify_signature(record.model_dump())
    audit_log.signature_verified(
        report_run_id=record.report_run_id,
        signature_id=record.id,
        role=record.signature_role,
        valid=result.valid,
        reason=result.reason.value if result.reason else None,
    )
    return result.to_dict()


@app.post("/runs/{run_id}/signatures", status_code=201)
def create_signature(run_id: str, req: SignRequest):
    run = ReportRun(id=run_id, data_hash=req.run.data_hash, status=req.run.status)
    record = sign_report_run(
        run,
        signer_name=req.signer_name,
        signer_title=req.signer_title,
        signature_role=req.signature_role,
        signature_svg=req.signature_svg,
        attestation_text=req.attestation_text,
        attestation_accepted=req.attestation_accepted,
        existing_signatures=[s.model_dump() for s in req.existing_signatures],
        signer_user_id=req.signer_user_id,
    )
    return {"data": record.to_dict()}


@app.post("/runs/{run_id}/verify")
def verify_run(run_id: str, req: RunVerifyRequest):
    if not req.run.data_hash:
        raise HTTPException(400, "Report run has no data_hash")
    run = ReportRun(id=run_id, data_hash=req.run.data_hash, status=req.run.status)
    report = verify_report_run(run, [s.model_dump() for s in req.signatures])
    data = report.to_dict()
    data["verified_at"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return {"data": data}


@app.post("/runs/{run_id}/finalize")
def finalize_run(run_id: str, req: RunFinalizeRequest):
    run = ReportRun(id=run_id, data_hash=req.run.data_hash, status=req.run.status)
    finalized = finalize_report_run(
        run,
        [s.model_dump() for s in req.signatures],
        current_data_hash=req.current_data_hash,
    )
    return {"data": finalized.to_dict(), "message": "Report run finalized successfully"}
