"""
realtime_env.py

SimPy environment paced against the wall clock, so a demo run shows the car
moving at a watchable speed instead of finishing instantly.
"""

import simpy
import time


class RealtimeEnvironment(simpy.Environment):
    """
    SimPy environment that sleeps between steps to follow real time.

    Args:
        speed_factor (float): Simulated seconds per real second.
            - 1.0 = real-time
            - 2.0 = twice as fast as real-time
            - 0.0 = no pacing (plain simpy.Environment behaviour)
    """

    def __init__(self, speed_factor=1.0, initial_time=0):
        super().__init__(initial_time=initial_time)
        if speed_factor < 0:
            raise ValueError("speed_factor cannot be negative")
        self.speed_factor = speed_factor
        self._anchor()

    def _anchor(self):
        self.real_start_time = time.monotonic()
        self.sim_start_time = self.now

    def step(self):
        """Process the next event, then sleep until the wall clock catches up."""
        super().step()

        if self.speed_factor > 0:
            sim_elapsed = self.now - self.sim_start_time
            due = self.real_start_time + sim_elapsed / self.speed_factor
            lag = due - time.monotonic()
            if lag > 0:
                time.sleep(lag)

    def set_speed(self, speed_factor):
        """
        Change the pacing mid-run. Timing references are re-anchored so the
        new factor applies from the current instant.
        """
        if speed_factor < 0:
            raise ValueError("speed_factor cannot be negative")
        self.speed_factor = speed_factor
        self._anchor()

    def get_speed(self):
        return self.speed_factor


def create_environment(realtime_factor: float = 0.0) -> simpy.Environment:
    """
    Build the environment for a run.

    A factor of 0 gives a plain simpy.Environment (as fast as possible);
    anything positive gives a RealtimeEnvironment paced by that factor.
    """
    if realtime_factor > 0:
        return RealtimeEnvironment(speed_factor=realtime_factor)
    return simpy.Environment()
