"""
入力フォームの必須チェック
"""

from typing import Dict, Iterable, List

REQUIRED_MESSAGE = "必須項目をすべて入力してください。"


class FormValidationError(ValueError):
    """必須項目の未入力（リクエスト送信前に中断）"""

    def __init__(self, messages):
        if isinstance(messages, str):
            messages = [messages]
        self.messages: List[str] = list(messages)
        super().__init__(" ".join(self.messages))


def is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def require_fields(values: Dict, fields: Iterable[str], message: str = REQUIRED_MESSAGE) -> None:
    """指定項目が1つでも空なら FormValidationError"""
    missing = [field for field in fields if is_blank(values.get(field))]
    if missing:
        raise FormValidationError(message)


def require(condition: bool, message: str) -> None:
    if not condition:
        raise FormValidationError(message)
