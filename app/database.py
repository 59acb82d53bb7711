"""
DB接続管理

エンジンとセッションファクトリーを DatabaseClient にまとめ、
アプリ起動時に1つだけ生成して依存性注入で各リクエストに渡す。
"""

import logging
import os
import threading
from typing import Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from app.config import settings
from app.models.base import Base

logger = logging.getLogger(__name__)


def _build_connect_args(database_url: str) -> dict:
    """DB種別ごとの接続オプション"""
    if database_url.startswith("sqlite"):
        # FastAPIのスレッドプールから同じ接続を使うため
        return {"check_same_thread": False}

    # Azure MySQL っぽいホストなら SSL を有効化
    if "mysql.database.azure.com" in database_url:
        ssl_ca_path = os.getenv("SSL_CA_PATH")
        if ssl_ca_path and os.path.exists(ssl_ca_path):
            return {"ssl_ca": ssl_ca_path, "ssl_verify_cert": True}

        # Azure MySQLはSSL必須のため、システムのCA証明書を使用
        import certifi

        return {"ssl_ca": certifi.where(), "ssl_verify_cert": True}

    return {}


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """URLに応じたエンジンを生成"""
    connect_args = _build_connect_args(database_url)
    if database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, connect_args=connect_args)

    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=5,  # 同時接続
        max_overflow=10,  # プールがいっぱいの時の追加接続
        pool_recycle=3600,  # 1時間で接続をリサイクル
        pool_pre_ping=True,  # 接続の有効性を事前確認
        echo=echo,
        connect_args=connect_args,
    )


class DatabaseClient:
    """
    エンジン・セッションファクトリーを保持するDBクライアント

    再接続はロックで直列化し、世代番号で重複した再接続を抑止する。
    engine.dispose() はプール内の待機中接続だけを破棄するため、
    他リクエストが使用中の接続は返却時に破棄されるまでそのまま使われる。
    """

    def __init__(self, database_url: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None:
            if not database_url:
                raise ValueError("database_url か engine のどちらかが必要です")
            engine = build_engine(database_url, echo=settings.DB_ECHO)
        self.engine = engine
        self.session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=engine
        )
        self._reconnect_lock = threading.Lock()
        self._generation = 0

    @property
    def generation(self) -> int:
        """再接続が行われるたびに増える世代番号"""
        return self._generation

    def session(self) -> Session:
        return self.session_factory()

    def ping(self) -> None:
        """SELECT 1 で接続確認（失敗時は例外をそのまま送出）"""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def reconnect(self, seen_generation: Optional[int] = None) -> bool:
        """
        接続プールを作り直して疎通を確認する

        Args:
            seen_generation: 呼び出し側が失敗を観測した時点の世代番号。
                既に別スレッドが再接続済みなら何もしない。

        Returns:
            実際に再接続した場合True
        """
        with self._reconnect_lock:
            if seen_generation is not None and seen_generation != self._generation:
                logger.info("別のリクエストで再接続済みのためスキップ")
                return False

            self.engine.dispose()
            self._generation += 1
            logger.info(f"DB接続プールを再作成しました: generation={self._generation}")
            self.ping()
            return True

    def dispose(self) -> None:
        self.engine.dispose()


# アプリケーション全体で共有するクライアント
db_client = DatabaseClient(settings.DATABASE_URL)
engine = db_client.engine
SessionLocal = db_client.session_factory


def get_db_client() -> DatabaseClient:
    """DBクライアントの依存性注入"""
    return db_client


# 依存性注入用のジェネレータ
def get_db() -> Iterator[Session]:
    """
    FastAPIの依存性注入で使用するDBセッション

    使用例:
        from sqlalchemy.orm import Session
        from app.database import get_db

        @app.get("/users")
        def get_users(db: Session = Depends(get_db)):
            users = db.query(User).all()
            return users
    """

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


__all__ = [
    "Base",
    "DatabaseClient",
    "SessionLocal",
    "build_engine",
    "db_client",
    "engine",
    "get_db",
    "get_db_client",
]
