from .scheduler import Scheduler
from .timer import TIME_EPSILON, ElapsedTime, Timer, reached

__all__ = ["Scheduler", "Timer", "ElapsedTime", "TIME_EPSILON", "reached"]
