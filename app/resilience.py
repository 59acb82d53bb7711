"""
DB操作のリトライラッパー

一時的な接続障害のときだけ、線形バックオフ（delay × 試行回数）で待機し、
DBクライアントを再接続してから同じ操作をやり直す。
それ以外の例外やリトライ上限到達時は元の例外をそのまま送出する。
"""

import logging
import time
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from app.config import settings
from app.database import DatabaseClient
from app.exceptions import TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# 再接続で回復が見込める例外
# OperationalError: DBサーバーに到達できない
# PoolTimeoutError: プールからの接続取得タイムアウト
TRANSIENT_ERROR_TYPES: tuple[type[BaseException], ...] = (
    TransientStoreError,
    OperationalError,
    PoolTimeoutError,
    DisconnectionError,
)


def is_transient_error(error: BaseException) -> bool:
    """リトライ対象の一時的エラーか判定"""
    return isinstance(error, TRANSIENT_ERROR_TYPES)


def with_retry(
    operation: Callable[[], T],
    client: Optional[DatabaseClient] = None,
    max_retries: Optional[int] = None,
    delay: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    DB操作を一時的エラー時にリトライしながら実行

    Args:
        operation: 引数なしで呼び出すDB操作
        client: 再接続に使うDBクライアント（Noneなら再接続しない）
        max_retries: 最大試行回数（初回を含む）
        delay: バックオフの基本待機秒数
        sleep: 待機関数（テスト用に差し替え可能）

    Returns:
        operation の戻り値
    """
    max_retries = settings.DB_RETRY_MAX_ATTEMPTS if max_retries is None else max_retries
    delay = settings.DB_RETRY_DELAY_SECONDS if delay is None else delay

    # 失敗を観測した時点の世代番号
    observed = {"generation": client.generation if client else None}

    def _before_attempt(retry_state: RetryCallState) -> None:
        if retry_state.attempt_number == 1:
            if client is not None:
                observed["generation"] = client.generation
            return
        if client is None:
            return
        try:
            client.reconnect(seen_generation=observed["generation"])
        except Exception as e:
            # 再接続失敗は次の試行で表面化するので続行
            logger.error(f"再接続エラー: {e}")
        observed["generation"] = client.generation

    def _before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"試行 {retry_state.attempt_number}/{max_retries} 失敗、"
            f"{retry_state.upcoming_sleep:.1f}秒後に再接続して再試行: {error}"
        )

    retrying = Retrying(
        stop=stop_after_attempt(max_retries),
        wait=wait_incrementing(start=delay, increment=delay),
        retry=retry_if_exception(is_transient_error),
        before=_before_attempt,
        before_sleep=_before_sleep,
        sleep=sleep,
        reraise=True,
    )
    return retrying(operation)
