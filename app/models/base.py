"""
Declarative Base - 全モデル共通の基底クラス
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
