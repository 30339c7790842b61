"""
年・月・日の絞り込み
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Tuple


def parse_created_at(created_at: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    "yyyy/MM/dd" 形式の createdAt から (年, 月) を取り出す
    取り出せない場合は None
    """
    if not created_at or len(created_at) < 7:
        return None
    try:
        return int(created_at[0:4]), int(created_at[5:7])
    except ValueError:
        return None


def in_period(created_at: Optional[str], year: Optional[int], month: Optional[int]) -> bool:
    """createdAt が選択中の年月に含まれるか（None はその単位で全件）"""
    parsed = parse_created_at(created_at)
    if parsed is None:
        return False
    item_year, item_month = parsed
    if year is not None and item_year != year:
        return False
    if month is not None and item_month != month:
        return False
    return True


def format_created_at(day: date) -> str:
    return day.strftime("%Y/%m/%d")


def is_current_month(year: int, month: int, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return year == today.year and month == today.month


def rolling_months(year: int, month: int, count: int = 6) -> List[Tuple[int, int]]:
    """(year, month) を最終月とする count か月分（古い順）"""
    result = []
    index = year * 12 + (month - 1)
    for i in range(count - 1, -1, -1):
        y, m = divmod(index - i, 12)
        result.append((y, m + 1))
    return result


@dataclass
class PeriodSelection:
    """
    選択中の年・月・日
    年を選ぶと月・日、月を選ぶと日がリセットされる
    """

    year: Optional[int] = None
    month: Optional[int] = None
    day: Optional[int] = None

    @classmethod
    def current_month(cls, today: Optional[date] = None) -> "PeriodSelection":
        today = today or date.today()
        return cls(year=today.year, month=today.month)

    def select_year(self, year: Optional[int]) -> None:
        self.year = year
        self.month = None
        self.day = None

    def select_month(self, month: Optional[int]) -> None:
        self.month = month
        self.day = None

    def select_day(self, day: Optional[int]) -> None:
        self.day = day

    def as_dict(self) -> dict:
        return {"year": self.year, "month": self.month, "day": self.day}
