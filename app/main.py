"""
FastAPI メインアプリケーション
BlissLearn - オンライン学習管理プラットフォーム
"""

from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from contextlib import asynccontextmanager
import logging
from datetime import datetime
from dotenv import load_dotenv

load_dotenv()

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.database import DatabaseClient, db_client, get_db_client
from app.exceptions import BlissLearnError
from app.rate_limiter import limiter
from app.resilience import with_retry
from app.auth import router as auth_router
from app.routers.user import router as user_router
from app.routers.notification import router as notification_router
from app.routers.progress import router as progress_router
from app.routers.course import router as course_router
from app.routers.certification import router as certification_router
from app.routers.onboarding import router as onboarding_router
from app.routers.dashboard import router as dashboard_router
from app.services.cache_service import catalog_cache
from app.services.scheduler_service import get_scheduler_status, start_scheduler, stop_scheduler

# ログ設定
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# ============================================
# ライフサイクル管理
# ============================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリケーションの起動・終了処理"""
    logger.info("🚀 BlissLearn Backend starting...")
    logger.info(f"Database engine: {db_client.engine.url.render_as_string(hide_password=True)}")

    # DB接続テスト（一時的な障害はリトライ）
    try:
        with_retry(db_client.ping, client=db_client)
        logger.info("✅ Database connection test successful")
    except Exception as e:
        logger.error(f"❌ Database connection test failed: {e}")

    if settings.SCHEDULER_ENABLED:
        start_scheduler()

    yield

    logger.info("👋 BlissLearn Backend shutting down...")
    stop_scheduler()
    db_client.dispose()


# ============================================
# FastAPI アプリケーション
# ============================================
app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="オンライン学習管理プラットフォーム - 認証・進捗・修了証・通知",
    version=settings.VERSION,
    lifespan=lifespan,
)

# レート制限
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    expose_headers=["*"],
    max_age=3600,
)


@app.exception_handler(BlissLearnError)
async def blisslearn_error_handler(request: Request, exc: BlissLearnError):
    """サービス層の例外をJSONレスポンスに変換"""
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__}: {exc.message} ({request.url.path})")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ルータ登録（/api/courses/progress を /api/courses/{id} より先に登録）
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(notification_router)
app.include_router(progress_router)
app.include_router(course_router)
app.include_router(certification_router)
app.include_router(onboarding_router)
app.include_router(dashboard_router)


# ============================================
# 基本エンドポイント
# ============================================
@app.get("/")
async def root():
    """ルートエンドポイント"""
    return {
        "message": "BlissLearn Backend API",
        "version": settings.VERSION,
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "health": "/api/health",
            "db_health": "/api/db/health",
            "courses": "/api/courses",
            "dashboard": "/api/dashboard",
            "notifications": "/api/notifications",
        },
    }


@app.get("/api/health")
async def health_check():
    """ヘルスチェックエンドポイント"""
    return {
        "status": "ok",
        "service": "BlissLearn Backend",
        "timestamp": datetime.now().isoformat(),
    }


# ============================================
# データベース関連エンドポイント
# ============================================
@app.get("/api/db/health")
def db_health_check(client: DatabaseClient = Depends(get_db_client)):
    """データベース接続確認エンドポイント"""

    def ping():
        with client.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar()

    try:
        with_retry(ping, client=client)
        return {
            "status": "connected",
            "dialect": client.engine.dialect.name,
            "timestamp": datetime.now().isoformat(),
        }
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "error", "message": "データベースに接続できません"},
        )


# ============================================
# 管理・モニタリング用エンドポイント
# ============================================
@app.get("/api/cache/stats")
async def get_cache_stats():
    """キャッシュ統計情報を取得（管理・モニタリング用）"""
    return {
        "status": "ok",
        "cache": catalog_cache.get_stats(),
    }


@app.get("/api/scheduler/status")
async def scheduler_status():
    """定期バッチの実行状態を取得"""
    return {
        "status": "ok",
        "scheduler": get_scheduler_status(),
    }


# ============================================
# 開発サーバー起動
# ============================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info"
    )
