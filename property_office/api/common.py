"""
画面オブジェクトとHTTP応答の橋渡し
"""

from datetime import date
from typing import Optional

from fastapi import HTTPException

from property_office.core.periods import PeriodSelection
from property_office.core.screens import Screen


def joined_selection(
    year: Optional[int], month: Optional[int], today: Optional[date] = None
) -> PeriodSelection:
    """
    レントロール結合画面の期間
    年の指定がなければ当月、年のみ指定なら通年（month=0 も通年）
    """
    if year is None:
        selection = PeriodSelection.current_month(today)
        if month is not None:
            selection.select_month(month or None)
        return selection
    return PeriodSelection(year=year, month=month or None)


def drill_down_selection(
    year: Optional[int], month: Optional[int], day: Optional[int] = None
) -> PeriodSelection:
    """年・月・日の絞り込み（未指定は全件）"""
    selection = PeriodSelection()
    selection.select_year(year or None)
    if selection.year:
        selection.select_month(month or None)
        if selection.month:
            selection.select_day(day or None)
    return selection


def load_or_raise(screen: Screen) -> Screen:
    """取得失敗は502"""
    if not screen.load() and screen.error:
        raise HTTPException(status_code=502, detail=screen.error)
    return screen


def raise_for_alert(screen: Screen) -> None:
    """登録・更新・削除の失敗は502"""
    if screen.alert:
        raise HTTPException(status_code=502, detail=screen.alert)
