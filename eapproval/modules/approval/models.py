"""
전자결재 모델 (결재선 템플릿, 기안 문서, 결재 진행).
"""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from eapproval.core.database import Base, JSONType

# 기안 문서 상태
DRAFT_STATUS_DRAFT = "DRAFT"
DRAFT_STATUS_IN_PROGRESS = "IN_PROGRESS"
DRAFT_STATUS_APPROVED = "APPROVED"
DRAFT_STATUS_REJECTED = "REJECTED"
DRAFT_STATUS_CANCELLED = "CANCELLED"

# 단계 / 결재자 상태
STAGE_WAITING = "WAITING"
STAGE_PENDING = "PENDING"
STAGE_APPROVED = "APPROVED"
STAGE_REJECTED = "REJECTED"
STAGE_NOTIFIED = "NOTIFIED"
STAGE_SKIPPED = "SKIPPED"

# 결재 이력
ACTION_SUBMIT = "SUBMIT"
ACTION_APPROVE = "APPROVE"
ACTION_REJECT = "REJECT"
ACTION_COMMENT = "COMMENT"
ACTION_CANCEL = "CANCEL"


class UserApprovalRoute(Base):
    """개인 결재선 템플릿"""

    __tablename__ = "user_approval_routes"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    # ApprovalStep 목록 (camelCase JSON)
    steps = Column(JSONType, default=list, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class ApprovalRouteTemplate(Base):
    """관리자 결재선 템플릿 (stages[].approvers[])"""

    __tablename__ = "approval_route_templates"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    stages = Column(JSONType, default=list, nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class ApprovalDraft(Base):
    """기안 문서"""

    __tablename__ = "approval_drafts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title = Column(String(500), nullable=False)
    # 자유 형식 본문. 상신 전 결재선은 content["__approvalRoute"] 에 들어간다.
    content = Column(JSONType, default=dict, nullable=False)
    status = Column(String(30), default=DRAFT_STATUS_DRAFT, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    stages = relationship(
        "ApprovalStage",
        back_populates="draft",
        cascade="all, delete-orphan",
        order_by="ApprovalStage.order_index",
    )
    actions = relationship(
        "ApprovalAction",
        back_populates="draft",
        cascade="all, delete-orphan",
        order_by="ApprovalAction.created_at",
    )


class ApprovalStage(Base):
    """결재 진행 단계 (상신 payload 의 customRoute 항목 하나)"""

    __tablename__ = "approval_stages"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    draft_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("approval_drafts.id", ondelete="CASCADE"),
        nullable=False,
    )
    type = Column(String(30), nullable=False)
    mode = Column(String(30), nullable=False)
    rule = Column(String(30), nullable=False)
    name = Column(String(255), nullable=True)
    order_index = Column(Integer, nullable=False)
    status = Column(String(30), default=STAGE_WAITING, nullable=False)

    draft = relationship("ApprovalDraft", back_populates="stages")
    approvers = relationship(
        "ApprovalStageApprover",
        back_populates="stage",
        cascade="all, delete-orphan",
        order_by="ApprovalStageApprover.order_index",
    )


class ApprovalStageApprover(Base):
    """단계별 결재자"""

    __tablename__ = "approval_stage_approvers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    stage_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("approval_stages.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    order_index = Column(Integer, default=0, nullable=False)
    is_required = Column(Boolean, default=True, nullable=False)
    status = Column(String(30), default=STAGE_WAITING, nullable=False)
    acted_at = Column(DateTime(timezone=True), nullable=True)
    comments = Column(Text, nullable=True)

    stage = relationship("ApprovalStage", back_populates="approvers")


class ApprovalAction(Base):
    """결재 이력 (상신/승인/반려/의견/회수)"""

    __tablename__ = "approval_actions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    draft_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("approval_drafts.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    action = Column(String(30), nullable=False)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    draft = relationship("ApprovalDraft", back_populates="actions")
