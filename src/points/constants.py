"""
Gamification point values and the reasons recorded with each award.
"""
from enum import Enum


class PointReason(str, Enum):
    START_TEST = "start_test"
    COMPLETE_TEST = "complete_test"
    REGISTRATION = "registration"
    DAILY_LOGIN = "daily_login"
    READ_CONTENT = "read_content"


POINTS = {
    PointReason.START_TEST: 100,
    PointReason.COMPLETE_TEST: 500, # bonus for finishing the whole assessment
    PointReason.REGISTRATION: 200,
    PointReason.DAILY_LOGIN: 100,
    PointReason.READ_CONTENT: 100, # per article, once
}
