"""
メール送信サービス
Resend APIを使用してメールを送信する
"""
import logging
from html import escape
from typing import Optional
import resend

from app.config import settings

logger = logging.getLogger(__name__)

# Resend API設定
resend.api_key = settings.RESEND_API_KEY or None


class EmailService:
    """メール送信サービスクラス"""

    def __init__(self, from_email: Optional[str] = None):
        self.from_email = from_email or settings.RESEND_FROM_EMAIL

        if not resend.api_key:
            logger.warning("RESEND_API_KEY が設定されていません")

    def send_email(
        self,
        to: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> dict:
        """メールを送信する"""
        try:
            params = {
                "from": self.from_email,
                "to": [to],
                "subject": subject,
                "html": html_content,
            }

            if text_content:
                params["text"] = text_content

            response = resend.Emails.send(params)

            logger.info(f"メール送信成功: to={to}, subject={subject}")
            return {"success": True, "id": response.get("id")}

        except Exception as e:
            logger.error(f"メール送信エラー: to={to}, error={e}")
            return {"success": False, "error": str(e)}

    def _wrap_html(self, title: str, body: str) -> str:
        """共通レイアウト"""
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="UTF-8">
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background: #1d4ed8; color: white; padding: 12px 24px; border-radius: 8px; display: inline-block; font-weight: bold;">
                BlissLearn
            </div>
            <h2 style="color: #1e293b;">{title}</h2>
            {body}
            <hr style="margin: 30px 0; border: none; border-top: 1px solid #eee;">
            <p style="color: #999; font-size: 12px;">
                このメールは BlissLearn から自動送信されています。
            </p>
        </body>
        </html>
        """

    def _button(self, url: str, label: str) -> str:
        return f"""
            <p style="margin: 30px 0;">
                <a href="{url}"
                   style="background-color: #3b82f6; color: white; padding: 12px 24px;
                          text-decoration: none; border-radius: 8px; display: inline-block;">
                    {label}
                </a>
            </p>
        """

    def send_password_reset_email(self, to: str, name: str, reset_url: str) -> dict:
        """パスワードリセットメールを送信"""
        body = f"""
            <p>{escape(name)} さん</p>
            <p>パスワードリセットのリクエストを受け付けました。</p>
            <p>以下のボタンをクリックして、新しいパスワードを設定してください。</p>
            {self._button(reset_url, "パスワードを再設定する")}
            <p style="color: #666; font-size: 14px;">このリンクは1時間で有効期限が切れます。</p>
            <p style="color: #666; font-size: 14px;">
                心当たりがない場合は、このメールを無視してください。
                アカウントのセキュリティは保たれています。
            </p>
        """
        return self.send_email(
            to=to,
            subject="【BlissLearn】パスワードリセットのご案内",
            html_content=self._wrap_html("パスワードリセット", body),
        )

    def send_verification_email(self, to: str, name: str, verify_url: str) -> dict:
        """メールアドレス確認メールを送信"""
        body = f"""
            <p>{escape(name)} さん、BlissLearn へようこそ！</p>
            <p>以下のボタンをクリックして、メールアドレスの確認を完了してください。</p>
            {self._button(verify_url, "メールアドレスを確認する")}
            <p style="color: #666; font-size: 14px;">このリンクは24時間で有効期限が切れます。</p>
        """
        return self.send_email(
            to=to,
            subject="【BlissLearn】メールアドレスの確認",
            html_content=self._wrap_html("メールアドレスの確認", body),
        )

    def send_password_changed_email(self, to: str, name: str) -> dict:
        """パスワード変更完了メールを送信"""
        body = f"""
            <p>{escape(name)} さん</p>
            <p>アカウントのパスワードが変更されました。</p>
            <p style="color: #666; font-size: 14px;">
                この操作に心当たりがない場合は、すぐにサポートまでご連絡ください。
            </p>
        """
        return self.send_email(
            to=to,
            subject="【BlissLearn】パスワードが変更されました",
            html_content=self._wrap_html("パスワード変更のお知らせ", body),
        )

    def send_certification_email(
        self,
        to: str,
        name: str,
        course_title: str,
        certificate_url: str
    ) -> dict:
        """修了証発行メールを送信"""
        body = f"""
            <p>{escape(name)} さん、おめでとうございます！</p>
            <p>「{escape(course_title)}」を修了し、修了証が発行されました。</p>
            {self._button(certificate_url, "修了証を見る")}
        """
        return self.send_email(
            to=to,
            subject=f"🎉【BlissLearn】「{course_title[:30]}」修了証発行",
            html_content=self._wrap_html("修了証が発行されました", body),
        )

    def send_test_email(self, to: str) -> dict:
        """テストメールを送信"""
        body = """
            <p>このメールが届いていれば、BlissLearn のメール送信機能は正常に動作しています。</p>
        """
        return self.send_email(
            to=to,
            subject="【テスト】BlissLearn メール送信テスト",
            html_content=self._wrap_html("✅ メール送信テスト成功！", body),
        )


# シングルトンインスタンス
email_service = EmailService()
