"""Time parametrisation of waypoint/speed/wait-time trajectories.

Within a segment the speed changes linearly in time between the speeds of its
end waypoints, so each segment is travelled with constant acceleration. The
actor pauses at each waypoint for its wait time before leaving it.
"""

import math

import numpy as np

from aeb_variants.data import ActorState, Trajectory
from aeb_variants.geometry import heading

_EPS = 1e-9


class TrajectoryTimeline:
    """Evaluate where an actor following a trajectory is at a given time."""

    def __init__(self, trajectory: Trajectory, actor_id: int = 0) -> None:
        """Initialize timeline.

        Args:
            trajectory: Trajectory definition
            actor_id: Actor ID reported in returned states

        Raises:
            ValueError: If a segment of positive length cannot be travelled
                because both of its end speeds are zero
        """
        self.trajectory = trajectory
        self.actor_id = actor_id

        points = np.asarray([(p[0], p[1]) for p in trajectory.waypoints], dtype=float)
        speeds = np.asarray(trajectory.speed, dtype=float)
        waits = np.asarray(trajectory.wait_time, dtype=float)

        self.points = points
        self.speeds = speeds
        self.seg_lengths = np.hypot(*np.diff(points, axis=0).T)
        self.seg_durations = np.zeros(len(self.seg_lengths))
        self.seg_headings: list[float] = []

        for i, length in enumerate(self.seg_lengths):
            v_sum = speeds[i] + speeds[i + 1]
            if length > _EPS:
                if v_sum <= _EPS:
                    msg = (
                        f"Segment {i} of actor {actor_id} has length {length:.3f} m "
                        "but zero speed at both ends"
                    )
                    raise ValueError(msg)
                self.seg_durations[i] = 2.0 * length / v_sum
            self.seg_headings.append(heading(*points[i], *points[i + 1]))

        # Repeated waypoints inherit the neighbouring heading
        for i in range(len(self.seg_headings)):
            if self.seg_lengths[i] <= _EPS:
                self.seg_headings[i] = self.seg_headings[i - 1] if i > 0 else 0.0

        n = len(points)
        self.arrivals = np.zeros(n)
        self.departures = np.zeros(n)
        for i in range(n):
            if i > 0:
                self.arrivals[i] = self.departures[i - 1] + self.seg_durations[i - 1]
            self.departures[i] = self.arrivals[i] + waits[i]
        self.stations = np.concatenate([[0.0], np.cumsum(self.seg_lengths)])

    @property
    def total_length(self) -> float:
        """Path length [m]."""
        return float(self.stations[-1])

    @property
    def end_time(self) -> float:
        """Time at which the actor leaves its final waypoint [s]."""
        return float(self.departures[-1])

    def _segment_motion(self, i: int, tau: float) -> tuple[float, float]:
        """Distance and speed ``tau`` seconds after leaving waypoint ``i``."""
        v0 = self.speeds[i]
        duration = self.seg_durations[i]
        if duration <= _EPS:
            return 0.0, float(v0)
        accel = (self.speeds[i + 1] - v0) / duration
        ds = v0 * tau + 0.5 * accel * tau * tau
        return float(min(ds, self.seg_lengths[i])), float(v0 + accel * tau)

    def _locate(self, t: float) -> tuple[int, float, float, bool]:
        """Return (segment or waypoint index, distance, speed, moving)."""
        t = max(t, 0.0)
        last = len(self.points) - 1
        if t >= self.departures[last]:
            return last, self.total_length, 0.0, False

        i = int(np.searchsorted(self.departures, t, side="right"))
        # t < departures[i]; either waiting at waypoint i or travelling segment i - 1
        if t >= self.arrivals[i]:
            return i, float(self.stations[i]), 0.0, False
        seg = i - 1
        ds, v = self._segment_motion(seg, t - self.departures[seg])
        return seg, float(self.stations[seg]) + ds, v, True

    def distance_at(self, t: float) -> float:
        """Arc length travelled at time ``t`` [m]."""
        return self._locate(t)[1]

    def speed_at(self, t: float) -> float:
        """Speed at time ``t`` [m/s]."""
        return self._locate(t)[2]

    def position_at_distance(self, s: float) -> tuple[float, float, float, int]:
        """Point at arc length ``s``.

        Returns:
            (x, y, heading, segment index)
        """
        s = min(max(s, 0.0), self.total_length)
        seg = int(np.searchsorted(self.stations, s, side="right")) - 1
        seg = min(max(seg, 0), len(self.seg_lengths) - 1)
        length = self.seg_lengths[seg]
        alpha = (s - self.stations[seg]) / length if length > _EPS else 0.0
        p, q = self.points[seg], self.points[seg + 1]
        x = p[0] + alpha * (q[0] - p[0])
        y = p[1] + alpha * (q[1] - p[1])
        return float(x), float(y), self.seg_headings[seg], seg

    def state_at(self, t: float) -> ActorState:
        """Actor state at time ``t``."""
        index, s, v, moving = self._locate(t)
        x, y, yaw, seg = self.position_at_distance(s)
        if not moving:
            # Keep the heading of the segment about to be (or last) travelled
            yaw = self.seg_headings[min(index, len(self.seg_headings) - 1)]
        return ActorState(
            actor_id=self.actor_id,
            x=x,
            y=y,
            yaw=yaw,
            speed=v,
            vx=v * math.cos(yaw),
            vy=v * math.sin(yaw),
            timestamp=t,
        )

    def time_at_distance(self, s: float) -> float:
        """First time at which the arc length reaches ``s`` [s].

        Raises:
            ValueError: If ``s`` lies beyond the end of the path
        """
        if s <= 0.0:
            return 0.0
        if s > self.total_length + 1e-6:
            msg = f"Distance {s:.3f} m exceeds path length {self.total_length:.3f} m"
            raise ValueError(msg)

        seg = int(np.searchsorted(self.stations, s, side="left")) - 1
        seg = min(max(seg, 0), len(self.seg_lengths) - 1)
        ds = min(s - self.stations[seg], self.seg_lengths[seg])
        v0 = float(self.speeds[seg])
        duration = self.seg_durations[seg]
        accel = (self.speeds[seg + 1] - v0) / duration if duration > _EPS else 0.0

        if abs(accel) < _EPS:
            tau = ds / v0 if v0 > _EPS else 0.0
        else:
            disc = max(v0 * v0 + 2.0 * accel * ds, 0.0)
            tau = (-v0 + math.sqrt(disc)) / accel
        return float(self.departures[seg] + tau)
