"""Response shaping shared by attendance routers."""

from services.attendance_service.models import AttendanceRecord
from services.attendance_service.schemas import (
    AttendanceDetail,
    QRCodeBatchItem,
    QRCodeResponse,
    SessionBrief,
)
from services.attendance_service.services.token_service import IssuedToken
from services.members_service.models import Member
from services.members_service.schemas import MemberBrief
from services.sessions_service.models import Session


def to_attendance_detail(
    record: AttendanceRecord, member: Member, session: Session
) -> AttendanceDetail:
    detail = AttendanceDetail.model_validate(record)
    detail.member = MemberBrief.model_validate(member)
    detail.session = SessionBrief.model_validate(session)
    return detail


def to_qr_response(issued: IssuedToken) -> QRCodeResponse:
    return QRCodeResponse(
        id=issued.token.id,
        token=issued.token.token,
        qr_code_image=issued.qr_code_image,
        member=MemberBrief.model_validate(issued.member),
        expires_at=issued.token.expires_at,
        created_at=issued.token.created_at,
    )


def to_batch_item(issued: IssuedToken) -> QRCodeBatchItem:
    return QRCodeBatchItem(
        member_id=issued.member.id,
        membership_id=issued.member.membership_id,
        name=issued.member.full_name,
        token=issued.token.token,
        qr_code_image=issued.qr_code_image,
    )
