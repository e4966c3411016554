from twig.core.time.abc import Time
from twig.core.time.real import RealTime

__all__ = ["RealTime", "Time"]
