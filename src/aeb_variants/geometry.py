"""Geometry utility functions."""

import math
from typing import TYPE_CHECKING

import numpy as np
from shapely.geometry import LineString, Polygon

if TYPE_CHECKING:
    from aeb_variants.data import ActorSpec, Trajectory


def normalize_angle(angle: float) -> float:
    """Normalize an angle to [-pi, pi].

    Args:
        angle: Angle [rad]

    Returns:
        Normalized angle [rad]
    """
    while angle > np.pi:
        angle -= 2.0 * np.pi
    while angle < -np.pi:
        angle += 2.0 * np.pi
    return angle


def heading(x1: float, y1: float, x2: float, y2: float) -> float:
    """Heading of the direction from point 1 to point 2 [rad]."""
    return math.atan2(y2 - y1, x2 - x1)


def to_local(
    x: float, y: float, origin_x: float, origin_y: float, yaw: float
) -> tuple[float, float]:
    """Express a global point in a frame at ``origin`` rotated by ``yaw``.

    Returns:
        (longitudinal, lateral) coordinates, lateral positive to the left
    """
    dx = x - origin_x
    dy = y - origin_y
    cos_yaw = math.cos(yaw)
    sin_yaw = math.sin(yaw)
    return dx * cos_yaw + dy * sin_yaw, -dx * sin_yaw + dy * cos_yaw


def project_on_segment(
    px: float, py: float, x1: float, y1: float, x2: float, y2: float
) -> tuple[float, float]:
    """Project a point onto the line through a segment.

    Args:
        px, py: Point coordinates
        x1, y1: Segment start
        x2, y2: Segment end

    Returns:
        Unclamped station along the segment from its start [m] and signed
        lateral offset (positive to the left of the segment direction) [m]
    """
    return to_local(px, py, x1, y1, heading(x1, y1, x2, y2))


def create_actor_polygon(
    x: float,
    y: float,
    yaw: float,
    front_edge_dist: float,
    rear_edge_dist: float,
    half_width: float,
) -> Polygon:
    """Create an oriented rectangular footprint.

    Args:
        x: Reference point X
        y: Reference point Y
        yaw: Yaw angle
        front_edge_dist: Distance to front edge from reference
        rear_edge_dist: Distance to rear edge from reference (negative behind)
        half_width: Half width of the actor

    Returns:
        Shapely Polygon
    """
    # Actor frame coordinates (x forward, y left)
    corners = [
        (front_edge_dist, half_width),
        (front_edge_dist, -half_width),
        (rear_edge_dist, -half_width),
        (rear_edge_dist, half_width),
    ]

    cos_yaw = math.cos(yaw)
    sin_yaw = math.sin(yaw)

    points = []
    for px, py in corners:
        rx = px * cos_yaw - py * sin_yaw
        ry = px * sin_yaw + py * cos_yaw
        points.append((rx + x, ry + y))

    return Polygon(points)


def get_actor_polygon(spec: "ActorSpec", x: float, y: float, yaw: float) -> Polygon:
    """Footprint of an actor whose origin is at (x, y) with heading ``yaw``."""
    return create_actor_polygon(
        x=x,
        y=y,
        yaw=yaw,
        front_edge_dist=spec.front_edge,
        rear_edge_dist=-spec.rear_edge,
        half_width=spec.width / 2.0,
    )


def path_line(trajectory: "Trajectory") -> LineString:
    """2D polyline through the waypoints of a trajectory."""
    return LineString([(p[0], p[1]) for p in trajectory.waypoints])


def half_extent_along(spec: "ActorSpec", relative_yaw: float) -> float:
    """Half of the footprint extent projected on a direction.

    Args:
        spec: Actor whose footprint is projected
        relative_yaw: Angle between the actor heading and the direction [rad]

    Returns:
        Half extent [m]
    """
    return 0.5 * (
        abs(math.cos(relative_yaw)) * spec.length + abs(math.sin(relative_yaw)) * spec.width
    )


__all__ = [
    "create_actor_polygon",
    "get_actor_polygon",
    "half_extent_along",
    "heading",
    "normalize_angle",
    "path_line",
    "project_on_segment",
    "to_local",
]
