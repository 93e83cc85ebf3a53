"""Session presentation helpers shared by the verification use cases"""

from datetime import datetime
from typing import Any, Dict, Optional
from src.domain.verification_session import SessionResult, SessionStatus, VerificationSession
from .dtos import SessionViewDTO

OCR_FIELDS = (
    "document_type",
    "name",
    "id_number",
    "address",
    "postcode",
    "city",
    "state",
    "nationality",
    "gender",
    "dob",
    "religion",
    "race",
)

# Base64 image fields the vendor may include; never persisted
IMAGE_FIELDS = frozenset({
    "front_document",
    "back_document",
    "face_image",
    "best_frame",
    "front_document_image",
    "back_document_image",
})

# Credentials echoed in callbacks
SECRET_FIELDS = frozenset({"api_key", "signature"})

EVENT_BY_STATUS = {
    SessionStatus.PENDING: "kyc.session.started",
    SessionStatus.PROCESSING: "kyc.session.processing",
    SessionStatus.COMPLETED: "kyc.session.completed",
    SessionStatus.EXPIRED: "kyc.session.expired",
}


def _value(enum_value) -> Optional[str]:
    if enum_value is None:
        return None
    return enum_value.value if hasattr(enum_value, "value") else str(enum_value)


def sanitize_vendor_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Copy of a vendor payload without images and credentials

    step1/step2 detail blocks are kept, minus their image fields.
    """
    cleaned = {}
    for key, value in data.items():
        if key in IMAGE_FIELDS or key in SECRET_FIELDS:
            continue
        if isinstance(value, dict):
            value = {k: v for k, v in value.items() if k not in IMAGE_FIELDS}
        cleaned[key] = value
    return cleaned


def extract_ocr(session: VerificationSession) -> Optional[Dict[str, Any]]:
    if SessionStatus(session.status) != SessionStatus.COMPLETED or not session.vendor_response:
        return None
    ocr = {name: session.vendor_response[name] for name in OCR_FIELDS if name in session.vendor_response}
    return ocr or None


def to_session_view(session: VerificationSession) -> SessionViewDTO:
    reject_message = session.reject_message if session.result == SessionResult.REJECTED else None
    return SessionViewDTO(
        id=session.id,
        ref_id=session.ref_id,
        status=_value(session.status),
        result=_value(session.result),
        reject_message=reject_message,
        document_name=session.document_name,
        document_number=session.document_number,
        document_type=session.document_type,
        metadata=session.client_metadata,
        ocr_result=extract_ocr(session),
        billed=session.billed,
        created_at=session.created_at,
        updated_at=session.updated_at,
        expires_at=session.expires_at,
    )


def event_for_status(status: SessionStatus) -> str:
    return EVENT_BY_STATUS.get(SessionStatus(status), "kyc.session.updated")


def build_event_payload(session: VerificationSession, event: str, now: datetime) -> Dict[str, Any]:
    """Body of the client webhook for a session event"""
    return {
        "event": event,
        "session_id": session.id,
        "ref_id": session.ref_id,
        "status": _value(session.status),
        "result": _value(session.result),
        "reject_message": session.reject_message,
        "document_name": session.document_name,
        "document_number": session.document_number,
        "metadata": session.client_metadata or {},
        "timestamp": now.isoformat(timespec="milliseconds") + "Z",
    }
