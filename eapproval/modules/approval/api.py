"""
전자결재 API.
접두사: /api/v1/approval
"""
from fastapi import APIRouter

from eapproval.core.config import settings

from .routes import approvals, builder, drafts, route_templates

router = APIRouter(prefix=f"{settings.api_v1_prefix}/approval", tags=["approval"])

router.include_router(route_templates.router)  # /routes/user, /admin/templates
router.include_router(builder.router)          # /routes/auto, /routes/apply
router.include_router(drafts.router)           # /drafts/*
router.include_router(approvals.router)        # /pending
