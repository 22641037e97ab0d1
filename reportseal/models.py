from pydantic import BaseModel, Field
from typing import List, Optional


class SignatureHashRequest(BaseModel):
    data_hash: str
    report_run_id: str
    signature_svg: str
    signer_name: str
    signer_title: str
    signature_role: str
    attestation_text: Optional[str] = None
    hash_version: Optional[str] = None


class SignatureHashResponse(BaseModel):
    signature_hash: str
    hash_version: str


class SignatureRecordModel(BaseModel):
    report_run_id: str
    data_hash: str
    signature_svg: str
    signer_name: str
    signer_title: str
    signature_role: str
    attestation_text: Optional[str] = None
    signature_hash: Optional[str] = None
    # None means the current version; pre-versioning rows are stored as "v1"
    hash_version: Optional[str] = None
    id: Optional[str] = None
    signer_user_id: Optional[str] = None
    signed_at: Optional[str] = None
    revoked_at: Optional[str] = None
    revoked_by: Optional[str] = None
    revoked_reason: Optional[str] = None


class ReportRunModel(BaseModel):
    data_hash: Optional[str] = None
    status: str


class SignRequest(BaseModel):
    run: ReportRunModel
    signer_name: str
    signer_title: str
    signature_role: str
    signature_svg: str
    attestation_text: Optional[str] = None
    attestation_accepted: bool = False
    signer_user_id: Optional[str] = None
    existing_signatures: List[SignatureRecordModel] = Field(default_factory=list)


class RunVerifyRequest(BaseModel):
    run: ReportRunModel
    signatures: List[SignatureRecordModel] = Field(default_factory=list)


class RunFinalizeRequest(BaseModel):
    run: ReportRunModel
    signatures: List[SignatureRecordModel] = Field(default_factory=list)
    # data_hash recomputed from live report data, when the caller rebuilt it
    current_data_hash: Optional[str] = None
