"""Where leave and holiday records come from.

The overlay does not care about the storage medium; anything implementing
``LeaveRecordSource`` can feed it.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from shift_board.models.leave import HolidayRecord, LeaveRecord, OverlayRecord

logger = logging.getLogger(__name__)

_OVERLAY_LIST = TypeAdapter(list[OverlayRecord])


@runtime_checkable
class LeaveRecordSource(Protocol):
    """Read/write access to leave and holiday records."""

    def leaves_between(self, start: date, end: date) -> list[LeaveRecord]: ...

    def holidays_between(self, start: date, end: date) -> list[HolidayRecord]: ...

    def put_leave(self, record: LeaveRecord) -> None: ...

    def put_holiday(self, record: HolidayRecord) -> None: ...

    def remove_for_date(self, d: date, employee_id: int | None = None) -> int: ...


class InMemoryLeaveSource:
    """Records held in memory, e.g. as fetched from the server."""

    def __init__(
        self,
        leaves: list[LeaveRecord] | None = None,
        holidays: list[HolidayRecord] | None = None,
    ) -> None:
        self._leaves: dict[tuple, LeaveRecord] = {}
        self._holidays: dict[date, HolidayRecord] = {}
        for record in leaves or []:
            self.put_leave(record)
        for holiday in holidays or []:
            self.put_holiday(holiday)

    def leaves_between(self, start: date, end: date) -> list[LeaveRecord]:
        return [r for r in self._leaves.values() if start <= r.date <= end]

    def holidays_between(self, start: date, end: date) -> list[HolidayRecord]:
        return [h for h in self._holidays.values() if start <= h.date <= end]

    def put_leave(self, record: LeaveRecord) -> None:
        if record.is_full_day:
            # A full-day record supersedes any half-day records of that day
            for key in [k for k in self._leaves if k[0] == record.employee_id and k[1] == record.date]:
                del self._leaves[key]
        else:
            # A half-day record supersedes the full-day record
            self._leaves.pop((record.employee_id, record.date, None), None)
        self._leaves[record.key] = record

    def put_holiday(self, record: HolidayRecord) -> None:
        self._holidays[record.date] = record

    def remove_for_date(self, d: date, employee_id: int | None = None) -> int:
        """Remove the date's records; all employees and the holiday when no id is given."""
        doomed = [
            k
            for k, r in self._leaves.items()
            if r.date == d and (employee_id is None or r.employee_id == employee_id)
        ]
        for key in doomed:
            del self._leaves[key]
        removed = len(doomed)
        if employee_id is None and self._holidays.pop(d, None) is not None:
            removed += 1
        return removed


class LocalOverlayStore:
    """Legacy JSON file store of overlay records.

    Keeps one record per ``(employeeId, date)``; holidays are stored under
    employee id -1. A missing or unreadable file reads as empty; a single
    record that does not make a valid leave is skipped.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def records(self) -> list[OverlayRecord]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return _OVERLAY_LIST.validate_python(raw)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("Ignoring unreadable overlay store %s: %s", self.path, e)
            return []

    def leaves_between(self, start: date, end: date) -> list[LeaveRecord]:
        leaves: list[LeaveRecord] = []
        for r in self.records():
            if not start <= r.date <= end:
                continue
            try:
                leave = r.to_leave()
            except ValidationError as e:
                logger.warning(
                    "Skipping invalid leave of employee %s on %s in %s: %s",
                    r.employee_id, r.date.isoformat(), self.path, e,
                )
                continue
            if leave is not None:
                leaves.append(leave)
        return leaves

    def holidays_between(self, start: date, end: date) -> list[HolidayRecord]:
        holidays = [r.to_holiday() for r in self.records() if start <= r.date <= end]
        return [h for h in holidays if h is not None]

    def put_leave(self, record: LeaveRecord) -> None:
        self._put(OverlayRecord.from_leave(record))

    def put_holiday(self, record: HolidayRecord) -> None:
        self._put(OverlayRecord.from_holiday(record))

    def remove_for_date(self, d: date, employee_id: int | None = None) -> int:
        records = self.records()
        kept = [
            r
            for r in records
            if not (r.date == d and (employee_id is None or r.employee_id == employee_id))
        ]
        self._write(kept)
        return len(records) - len(kept)

    def _put(self, record: OverlayRecord) -> None:
        records = [r for r in self.records() if r.key != record.key]
        records.append(record)
        self._write(records)

    def _write(self, records: list[OverlayRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in records]
        self.path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
