"""Longitudinal ego dynamics along a fixed path."""

from dataclasses import dataclass


@dataclass
class LongitudinalState:
    """Ego state along its path."""

    station: float  # Arc length along the path [m]
    velocity: float  # [m/s]
    acceleration: float = 0.0  # Actual acceleration [m/s^2]
    timestamp: float = 0.0  # [s]


def update_longitudinal(
    state: LongitudinalState,
    acceleration_cmd: float,
    dt: float,
    time_constant: float,
) -> LongitudinalState:
    """Advance the ego along its path.

    The commanded acceleration passes through a first-order lag and the
    vehicle cannot reverse.

    Args:
        state: Current state
        acceleration_cmd: Commanded acceleration [m/s^2]
        dt: Time step [s]
        time_constant: Actuator time constant [s] (0 applies the command directly)

    Returns:
        Updated state
    """
    if time_constant > 0.0:
        alpha = min(dt / time_constant, 1.0)
        accel = state.acceleration + alpha * (acceleration_cmd - state.acceleration)
    else:
        accel = acceleration_cmd

    v_next = state.velocity + accel * dt
    if v_next <= 0.0:
        # Stop within the step instead of reversing
        if accel < 0.0:
            t_stop = state.velocity / -accel
            station = state.station + 0.5 * state.velocity * t_stop
        else:
            station = state.station
        return LongitudinalState(
            station=station,
            velocity=0.0,
            acceleration=0.0,
            timestamp=state.timestamp + dt,
        )

    # Use average velocity for position update
    v_avg = (state.velocity + v_next) / 2.0
    return LongitudinalState(
        station=state.station + v_avg * dt,
        velocity=v_next,
        acceleration=accel,
        timestamp=state.timestamp + dt,
    )
