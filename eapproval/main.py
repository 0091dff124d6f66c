"""
전자결재 서비스 진입점
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eapproval.core.config import settings
from eapproval.core.database import Base, engine
from eapproval.modules.approval import api as approval_api
from eapproval.modules.directory import api as directory_api

# 로깅 설정
logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    description="전자결재 결재선 구성 및 상신 서비스",
    version="1.0.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(directory_api.router)
app.include_router(approval_api.router)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "eapproval"}


@app.on_event("startup")
async def on_startup():
    logger.info("전자결재 서비스 시작...")

    # 테이블이 없으면 만든다 (best-effort)
    try:
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.warning(f"테이블 생성에 실패했습니다: {e}")

    logger.info("전자결재 서비스 시작 완료")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
