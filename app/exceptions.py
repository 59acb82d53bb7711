"""
アプリケーション共通の例外定義

サービス層はこれらの例外を送出し、ルーター側で HTTPException に変換する。
"""


class BlissLearnError(Exception):
    """アプリケーション例外の基底クラス"""

    status_code = 500
    default_message = "サーバーエラーが発生しました"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class TransientStoreError(BlissLearnError):
    """一時的な接続障害（再接続後のリトライで回復が見込めるもの）"""

    status_code = 503
    default_message = "データベースに一時的に接続できません"


class ValidationError(BlissLearnError):
    """入力値エラー（DBアクセス前に弾く）"""

    status_code = 400
    default_message = "入力内容が正しくありません"


class InvalidTokenError(BlissLearnError):
    """トークンが存在しない"""

    status_code = 400
    default_message = "トークンが無効です"


class ExpiredTokenError(BlissLearnError):
    """トークンの有効期限切れ（レコードは削除済み）"""

    status_code = 400
    default_message = "トークンの有効期限が切れています"


class DeliveryError(BlissLearnError):
    """メール送信失敗"""

    status_code = 500
    default_message = "メールの送信に失敗しました。しばらくしてから再度お試しください。"

    def __init__(self, message: str | None = None, reason: str | None = None):
        super().__init__(message)
        self.reason = reason
