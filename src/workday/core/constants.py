"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

DEFAULT_LATE_THRESHOLD = time(10, 0)
DEFAULT_STATS_DAYS = 30
DEFAULT_PAGE_SIZE = 10
DEFAULT_EMPLOYEE_PAGE_SIZE = 30
UPCOMING_BIRTHDAY_DAYS = 7
TEAM_STATS_DAYS = 30

NOTES_MAX = 500
WORK_DONE_MIN = 20
WORK_DONE_MAX = 2000
CHALLENGES_MAX = 1000
PLAN_MAX = 1000
MANAGER_COMMENT_MAX = 500
MAX_HOURS_PER_DAY = 24

TASK_TITLE_MAX = 200
TASK_DESCRIPTION_MAX = 2000
COMMENT_MAX = 1000

NAME_MIN = 2
NAME_MAX = 50
PASSWORD_MIN = 6
