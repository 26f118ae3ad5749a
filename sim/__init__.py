"""Demo scenario driver."""

from .sim import DEFAULT_USER_ID, SCENARIO, ISim, Sim

__all__ = ["DEFAULT_USER_ID", "ISim", "SCENARIO", "Sim"]
