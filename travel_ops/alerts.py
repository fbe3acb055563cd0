"""Deadline alerts over a departure's cost lines and suppliers."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Literal, Optional

from .domain.models import CostLine, Departure, SupplierLink

CostLineStatus = Literal["paid", "due", "overdue"]
SupplierStatus = Literal["ok", "overdue"]


@dataclass(frozen=True, slots=True)
class DepartureAlerts:
    """Counts of overdue items on a departure."""

    overdue_costs: int = 0
    overdue_suppliers: int = 0

    @property
    def has_alerts(self) -> bool:
        return bool(self.overdue_costs or self.overdue_suppliers)


def parse_moment(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO date or timestamp; ``None`` if absent or unparseable.

    Naive values are taken as UTC. A bare calendar date means midnight.
    """
    if not value:
        return None
    try:
        moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        try:
            moment = datetime.combine(date.fromisoformat(value), datetime.min.time())
        except ValueError:
            return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def _now(now: Optional[datetime]) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now if now.tzinfo else now.replace(tzinfo=timezone.utc)


def days_until(value: Optional[str], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days from ``now`` to ``value``, rounded up; negative when past."""
    moment = parse_moment(value)
    if moment is None:
        return None
    return math.ceil((moment - _now(now)).total_seconds() / 86400)


def is_overdue(value: Optional[str], now: Optional[datetime] = None) -> bool:
    moment = parse_moment(value)
    return moment is not None and moment < _now(now)


def cost_line_status(line: CostLine, now: Optional[datetime] = None) -> CostLineStatus:
    if line.paid:
        return "paid"
    if is_overdue(line.due_date, now):
        return "overdue"
    return "due"


def supplier_deadline_status(
    supplier: SupplierLink, now: Optional[datetime] = None
) -> SupplierStatus:
    return "overdue" if is_overdue(supplier.deadline, now) else "ok"


def departure_alerts(departure: Departure, now: Optional[datetime] = None) -> DepartureAlerts:
    """Count unpaid overdue cost lines and suppliers past their deadline."""
    now = _now(now)
    return DepartureAlerts(
        overdue_costs=sum(
            1 for line in departure.cost_lines if cost_line_status(line, now) == "overdue"
        ),
        overdue_suppliers=sum(
            1
            for supplier in departure.supplier_links
            if supplier_deadline_status(supplier, now) == "overdue"
        ),
    )
