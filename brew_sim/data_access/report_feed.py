"""仿真状态报告流：按时间倒序保存的状态条目列表。

报告流只支持两种写操作：

- ``append``：在最前面插入一条新记录（最新的记录永远位于索引 0）；
- ``clear``：整体清空。

条目一旦写入便不会被单独修改或删除。新一轮仿真不会清空旧记录，
历史会跨运行累积，直到显式调用 ``clear``。每次写操作之后都会通知
已订阅的监听器，展示层据此刷新。
"""

from __future__ import annotations

import itertools
import logging
from datetime import datetime
from typing import Callable, Dict, List, Tuple

from .models import ReportType, StatusEntry

logger = logging.getLogger(__name__)

FeedListener = Callable[[Tuple[StatusEntry, ...]], None]

# classification -> (color, emphasis)
_PRESENTATION: Dict[ReportType, Dict[str, str]] = {
    ReportType.ERROR: {"color": "red", "emphasis": "normal"},
    ReportType.INFO: {"color": "blue", "emphasis": "normal"},
    ReportType.WARNING: {"color": "yellow", "emphasis": "normal"},
    ReportType.SUCCESS: {"color": "green", "emphasis": "normal"},
    ReportType.HEADING: {"color": "default", "emphasis": "bold-uppercase"},
    ReportType.PLAIN: {"color": "default", "emphasis": "normal"},
}


def present(report_type: ReportType) -> Dict[str, str]:
    """返回某一分类对应的展示意图（颜色与强调方式）。"""

    return dict(_PRESENTATION.get(report_type, _PRESENTATION[ReportType.PLAIN]))


class ReportFeed:
    """内存中的状态报告流。"""

    def __init__(self) -> None:
        self._entries: List[StatusEntry] = []
        self._seq = itertools.count(1)
        self._listeners: List[FeedListener] = []

    def append(
        self, message: str, report_type: ReportType = ReportType.PLAIN
    ) -> StatusEntry:
        """创建一条状态记录并插入到最前面。"""

        now = datetime.now()
        entry = StatusEntry(
            seq=next(self._seq),
            time=now.strftime("%X"),
            created_at=now,
            type=report_type,
            message=message,
        )
        self._entries.insert(0, entry)
        self._notify()
        return entry

    def clear(self) -> None:
        """清空全部记录；重复调用无副作用。"""

        self._entries = []
        self._notify()

    @property
    def entries(self) -> Tuple[StatusEntry, ...]:
        """只读快照，最新的记录在前。"""
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def subscribe(self, listener: FeedListener) -> Callable[[], None]:
        """注册刷新回调，返回用于取消订阅的函数。"""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def _notify(self) -> None:
        snapshot = self.entries
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                # a broken display must not break the writer
                logger.exception("Report feed listener failed")


__all__ = ["FeedListener", "ReportFeed", "present"]
