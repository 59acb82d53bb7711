"""
Azure Functions - 定期クリーンアップのタイマートリガー

アプリ内スケジューラーを無効にしてデプロイする場合に、
古い通知とメール未確認アカウントの削除をここから定期実行する
"""
import azure.functions as func
import logging
import json
import sys
import os

# プロジェクトルートをパスに追加
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

app = func.FunctionApp()


@app.timer_trigger(
    schedule="0 0 3 * * *",  # 毎日3:00に実行
    arg_name="myTimer",
    run_on_startup=False
)
def notification_cleanup_timer(myTimer: func.TimerRequest) -> None:
    """
    古い通知の削除タイマートリガー

    スケジュール: 毎日 3:00
    """
    logging.info('古い通知の削除バッチを開始します')

    try:
        from app.scripts.run_notification_cleanup import run_notification_cleanup

        result = run_notification_cleanup()
        logging.info(f"削除完了: {json.dumps(result, ensure_ascii=False, default=str)}")

    except Exception as e:
        logging.error(f"通知削除でエラーが発生: {str(e)}")
        raise


@app.timer_trigger(
    schedule="0 30 3 * * *",  # 毎日3:30に実行
    arg_name="myTimer",
    run_on_startup=False
)
def unverified_account_cleanup_timer(myTimer: func.TimerRequest) -> None:
    """メール未確認アカウントの削除タイマートリガー"""
    logging.info('メール未確認アカウントの削除を開始します')

    try:
        from app.services.user_service import run_unverified_cleanup

        deleted = run_unverified_cleanup()
        logging.info(f"削除件数: {deleted}")

    except Exception as e:
        logging.error(f"アカウント削除でエラーが発生: {str(e)}")
        raise


@app.route(route="health", methods=["GET"])
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """ヘルスチェックエンドポイント"""
    return func.HttpResponse(
        json.dumps({"status": "healthy", "service": "blisslearn-cleanup-function"}),
        mimetype="application/json"
    )


@app.route(route="trigger-notification-cleanup", methods=["POST"])
def manual_trigger(req: func.HttpRequest) -> func.HttpResponse:
    """
    手動トリガーエンドポイント

    テストや緊急時に手動で古い通知を削除する
    """
    logging.info('手動トリガーによる通知削除を開始')

    try:
        from app.scripts.run_notification_cleanup import run_notification_cleanup

        result = run_notification_cleanup()

        return func.HttpResponse(
            json.dumps(result, ensure_ascii=False, default=str),
            mimetype="application/json"
        )
    except Exception as e:
        logging.error(f"手動トリガーでエラー: {str(e)}")
        return func.HttpResponse(
            json.dumps({"error": str(e)}),
            mimetype="application/json",
            status_code=500
        )
