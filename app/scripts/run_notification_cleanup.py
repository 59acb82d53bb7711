"""
古い通知の削除バッチ実行スクリプト

保持期間（デフォルト15日）を過ぎた通知を全ユーザー分削除する

使い方:
    python -m app.scripts.run_notification_cleanup

cronで定期実行する場合（毎日3:00）:
    0 3 * * * cd /path/to/project && python -m app.scripts.run_notification_cleanup >> /var/log/notification_cleanup.log 2>&1
"""
import sys
from datetime import datetime

from dotenv import load_dotenv
load_dotenv()

from app.database import SessionLocal, get_db_client
from app.resilience import with_retry
from app.services.notification_service import NotificationService


def run_notification_cleanup() -> dict:
    """
    古い通知の削除を実行

    Returns:
        削除件数と基準日時
    """
    db = SessionLocal()
    try:
        def sweep():
            try:
                return NotificationService(db).cleanup_old_notifications()
            except Exception:
                db.rollback()
                raise

        return with_retry(sweep, client=get_db_client())
    finally:
        db.close()


def main():
    """メイン処理"""
    print("=" * 60)
    print("🧹 古い通知の削除バッチ")
    print(f"   実行日時: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 60)

    try:
        result = run_notification_cleanup()
        print(f"   削除件数: {result['deleted_count']}")
        print(f"   基準日時: {result['deleted_before']}")
        print("\n✅ 削除が完了しました")
        return 0

    except Exception as e:
        print(f"\n❌ エラーが発生しました: {str(e)}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
