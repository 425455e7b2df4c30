from datetime import date, datetime, time

from workday.attendance.factory import AttendanceStrategyFactory
from workday.attendance.strategies.late_strategy import LateStrategy
from workday.attendance.strategies.on_time_strategy import OnTimeStrategy
from workday.core.enums import AttendanceStatus


def test_factory_checkin_exactly_at_threshold_is_on_time():
    today = date(2025, 1, 1)
    now = datetime(2025, 1, 1, 10, 0, 0)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, today=today)

    assert isinstance(strategy, OnTimeStrategy)
    assert strategy.decide_checkin(now=now).status == AttendanceStatus.PRESENT


def test_factory_checkin_one_second_after_threshold_is_late():
    today = date(2025, 1, 1)
    now = datetime(2025, 1, 1, 10, 0, 1)

    strategy = AttendanceStrategyFactory().for_checkin(now=now, today=today)
    decision = strategy.decide_checkin(now=now)

    assert isinstance(strategy, LateStrategy)
    assert decision.status == AttendanceStatus.LATE
    assert decision.is_late is True


def test_factory_uses_configured_threshold():
    factory = AttendanceStrategyFactory(late_threshold=time(9, 30))
    now = datetime(2025, 1, 1, 9, 45)

    assert isinstance(factory.for_checkin(now=now, today=now.date()), LateStrategy)
