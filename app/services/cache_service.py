"""
コースカタログのキャッシュサービス
フィルタ候補（プラットフォーム・提供機関など）をTTL付きメモリキャッシュに保存
"""

import threading
from typing import Any, Callable, Dict, Optional
from cachetools import TTLCache

from app.config import settings


class CatalogCacheService:
    """カタログ集計結果のメモリキャッシュ"""

    # 最大キャッシュ数
    DEFAULT_MAX_SIZE = 32

    def __init__(self, ttl: Optional[int] = None, max_size: int = DEFAULT_MAX_SIZE):
        """
        Args:
            ttl: キャッシュ有効期限（秒）。Noneなら設定値
            max_size: 最大キャッシュ数
        """
        ttl = settings.COURSE_FILTERS_CACHE_TTL if ttl is None else ttl
        self._cache: TTLCache = TTLCache(maxsize=max_size, ttl=ttl)
        self._lock = threading.Lock()
        self._stats = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
        }

    def get(self, key: str) -> Optional[Any]:
        """キャッシュから取得（ミスならNone）"""
        with self._lock:
            result = self._cache.get(key)
            if result is not None:
                self._stats["hits"] += 1
                return result
            self._stats["misses"] += 1
            return None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._cache[key] = value
            self._stats["sets"] += 1

    def get_or_load(self, key: str, loader: Callable[[], Any]) -> Any:
        """
        キャッシュにあればそれを返し、なければ loader の結果を保存して返す

        loader はロック外で実行する（DBアクセス中に他のリクエストを止めない）。
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        value = loader()
        self.set(key, value)
        return value

    def clear(self) -> int:
        """
        全キャッシュをクリア

        Returns:
            クリアしたキャッシュ数
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count

    def get_stats(self) -> Dict[str, Any]:
        """キャッシュ統計を取得"""
        with self._lock:
            total_requests = self._stats["hits"] + self._stats["misses"]
            hit_rate = (
                self._stats["hits"] / total_requests * 100
                if total_requests > 0 else 0
            )
            return {
                "hits": self._stats["hits"],
                "misses": self._stats["misses"],
                "sets": self._stats["sets"],
                "hit_rate": round(hit_rate, 2),
                "current_size": len(self._cache),
                "max_size": self._cache.maxsize,
                "ttl_seconds": self._cache.ttl,
            }


# シングルトンインスタンス
catalog_cache = CatalogCacheService()
