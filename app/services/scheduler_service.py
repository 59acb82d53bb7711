"""
バッチスケジューラーサービス

APSchedulerを使用して定期バッチ処理を実行する
- 古い通知の削除: 24時間ごと（保持期間15日）
- メール未確認アカウントの削除: 24時間ごと（登録から7日）

同じジョブの多重実行を防ぐため、ジョブごとにロックで排他制御する
"""

import logging
import threading
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from datetime import datetime

from app.config import settings

logger = logging.getLogger(__name__)

# スケジューラーインスタンス（グローバル）
scheduler = BackgroundScheduler()

notification_cleanup_lock = threading.Lock()
unverified_cleanup_lock = threading.Lock()


def run_notification_cleanup_job():
    """古い通知の削除ジョブ"""
    acquired = notification_cleanup_lock.acquire(blocking=False)
    if not acquired:
        logger.warning("⏳ 通知クリーンアップ: 前回のジョブが実行中のためスキップ")
        return

    try:
        from app.scripts.run_notification_cleanup import run_notification_cleanup

        logger.info(f"🧹 通知クリーンアップ開始: {datetime.now().isoformat()}")
        result = run_notification_cleanup()
        logger.info(
            f"✅ 通知クリーンアップ完了: 削除={result['deleted_count']}件, "
            f"基準日時={result['deleted_before']}"
        )
    except Exception as e:
        logger.error(f"❌ 通知クリーンアップエラー: {str(e)}")
    finally:
        notification_cleanup_lock.release()


def run_unverified_cleanup_job():
    """メール未確認アカウントの削除ジョブ"""
    acquired = unverified_cleanup_lock.acquire(blocking=False)
    if not acquired:
        logger.warning("⏳ 未確認アカウント削除: 前回のジョブが実行中のためスキップ")
        return

    try:
        from app.services.user_service import run_unverified_cleanup

        logger.info(f"🧹 未確認アカウント削除開始: {datetime.now().isoformat()}")
        deleted = run_unverified_cleanup()
        logger.info(f"✅ 未確認アカウント削除完了: 削除={deleted}件")
    except Exception as e:
        logger.error(f"❌ 未確認アカウント削除エラー: {str(e)}")
    finally:
        unverified_cleanup_lock.release()


def start_scheduler():
    """スケジューラーを開始"""
    if scheduler.running:
        logger.warning("スケジューラーは既に実行中です")
        return

    scheduler.add_job(
        run_notification_cleanup_job,
        trigger=IntervalTrigger(hours=settings.NOTIFICATION_CLEANUP_INTERVAL_HOURS),
        id="notification_cleanup",
        name="古い通知の削除",
        replace_existing=True,
        max_instances=1,
    )

    scheduler.add_job(
        run_unverified_cleanup_job,
        trigger=IntervalTrigger(hours=settings.UNVERIFIED_CLEANUP_INTERVAL_HOURS),
        id="unverified_account_cleanup",
        name="メール未確認アカウントの削除",
        replace_existing=True,
        max_instances=1,
    )

    scheduler.start()
    logger.info("📅 スケジューラー開始")
    logger.info(f"   - 古い通知の削除: {settings.NOTIFICATION_CLEANUP_INTERVAL_HOURS}時間ごと")
    logger.info(f"   - 未確認アカウントの削除: {settings.UNVERIFIED_CLEANUP_INTERVAL_HOURS}時間ごと")


def stop_scheduler():
    """スケジューラーを停止"""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("📅 スケジューラー停止")


def get_scheduler_status() -> dict:
    """スケジューラーの状態を取得"""
    jobs = []
    if scheduler.running:
        for job in scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
            })

    return {
        "running": scheduler.running,
        "jobs": jobs,
    }
