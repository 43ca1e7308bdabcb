"""Scenario and variant result plots."""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.patches import Patch
from matplotlib.patches import Polygon as PolygonPatch
from shapely.geometry import LineString

from aeb_variants.assessment import SpeedReductionTable
from aeb_variants.data import ActorClass, ActorSpec
from aeb_variants.runner import RunSummary
from aeb_variants.scenario import DrivingScenario

ACTOR_COLORS = {
    ActorClass.CAR: "tab:blue",
    ActorClass.TRUCK: "tab:purple",
    ActorClass.BICYCLE: "tab:orange",
    ActorClass.PEDESTRIAN: "tab:red",
    ActorClass.BARRIER: "tab:gray",
}
EGO_COLOR = "tab:green"


class BasePlotter:
    """Base class for plotters."""

    def __init__(self, figsize: tuple[float, float] = (10, 8)) -> None:
        self.fig: Figure
        self.ax: Axes
        self.fig, self.ax = plt.subplots(figsize=figsize)

    def save(self, filename: str | Path) -> Path:
        """Save the figure to file.

        Args:
            filename: Output filename

        Returns:
            Path written
        """
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.fig.savefig(path, bbox_inches="tight")
        return path

    def close(self) -> None:
        """Close the figure."""
        plt.close(self.fig)


class ScenarioPlotter(BasePlotter):
    """Bird's-eye plot of a driving scenario."""

    def __init__(self, scenario: DrivingScenario) -> None:
        """Initialize plotter.

        Args:
            scenario: Scenario to draw
        """
        super().__init__()
        self.scenario = scenario

    def _color(self, spec: ActorSpec) -> str:
        if spec.actor_id == self.scenario.descriptor.ego_id:
            return EGO_COLOR
        return ACTOR_COLORS.get(spec.class_id, "k")

    def _plot_roads(self) -> None:
        for road in self.scenario.descriptor.roads:
            centers = [(c[0], c[1]) for c in road.centers]
            outline = LineString(centers).buffer(road.width / 2.0, cap_style="flat")
            x, y = outline.exterior.xy
            self.ax.fill(x, y, color="0.85", zorder=0)
            cx, cy = zip(*centers, strict=True)
            self.ax.plot(cx, cy, color="0.6", linestyle="--", linewidth=0.8, zorder=1)

    def _plot_footprint(self, spec: ActorSpec, time: float, **kwargs) -> None:
        polygon = self.scenario.actor_polygon(spec.actor_id, time)
        patch = PolygonPatch(np.asarray(polygon.exterior.coords), closed=True, **kwargs)
        self.ax.add_patch(patch)

    def _plot_actors(self) -> None:
        for spec in self.scenario.descriptor.actors:
            color = self._color(spec)
            self._plot_footprint(spec, 0.0, facecolor=color, edgecolor="k", alpha=0.8, zorder=3)
            if spec.trajectory is not None:
                x = [p[0] for p in spec.trajectory.waypoints]
                y = [p[1] for p in spec.trajectory.waypoints]
                self.ax.plot(x, y, "o-", color=color, markersize=3, label=spec.name, zorder=2)

    def _plot_collision(self, target_id: int) -> float | None:
        ego_id = self.scenario.descriptor.ego_id
        collision_time = self.scenario.first_collision(ego_id, target_id)
        if collision_time is None:
            return None
        for actor_id in (ego_id, target_id):
            spec = self.scenario.descriptor.actor(actor_id)
            self._plot_footprint(
                spec,
                collision_time,
                fill=False,
                edgecolor=self._color(spec),
                linestyle="--",
                linewidth=1.5,
                zorder=4,
            )
        return collision_time

    def plot(self, target_id: int | None = None) -> Figure:
        """Draw roads, actors, trajectories and the ego/target collision.

        Args:
            target_id: Target actor whose collision with the ego is drawn

        Returns:
            Figure
        """
        self._plot_roads()
        self._plot_actors()
        title = self.scenario.name
        if target_id is not None:
            collision_time = self._plot_collision(target_id)
            if collision_time is not None:
                title += f" (collision at {collision_time:.2f} s)"
        self.ax.set_aspect("equal")
        self.ax.grid(True)
        self.ax.set_xlabel("X [m]")
        self.ax.set_ylabel("Y [m]")
        self.ax.set_title(title)
        self.ax.legend(loc="best")
        return self.fig


class VariantResultPlotter(BasePlotter):
    """Colour grid of graded variant results."""

    def __init__(self, summary: RunSummary, table: SpeedReductionTable | None = None) -> None:
        """Initialize plotter.

        Args:
            summary: Results of a variant test run
            table: Lookup table providing band colours
        """
        super().__init__(figsize=(8, 8))
        self.summary = summary
        self.table = table or SpeedReductionTable()

    def plot(self) -> Figure:
        """Draw the grid, annotated with impact speeds in km/h.

        Returns:
            Figure
        """
        grid = self.summary.grid
        rows, cols = grid.shape
        bands = self.summary.band_matrix()
        impacts = self.summary.impact_speed_matrix()

        for row in range(rows):
            for col in range(cols):
                name = bands[row][col]
                color = self.table.band(name).color if name is not None else "white"
                self.ax.add_patch(
                    plt.Rectangle((col, row), 1, 1, facecolor=color, edgecolor="k", linewidth=0.5)
                )
                impact = impacts[row, col]
                text = "error" if np.isnan(impact) else f"{impact * 3.6:.1f}"
                self.ax.text(col + 0.5, row + 0.5, text, ha="center", va="center", fontsize=9)

        self.ax.set_xlim(0, cols)
        self.ax.set_ylim(0, rows)
        self.ax.set_xticks(np.arange(cols) + 0.5)
        self.ax.set_xticklabels([f"{cp:g}" for cp in grid.collision_points])
        self.ax.set_yticks(np.arange(rows) + 0.5)
        self.ax.set_yticklabels([f"{v * 3.6:.0f}" for v in grid.speeds])
        self.ax.set_xlabel("Collision point")
        self.ax.set_ylabel("Test speed [km/h]")
        self.ax.set_title(
            f"Impact speed [km/h]: {self.summary.passed}/{self.summary.total} passed"
        )

        handles = [
            Patch(
                facecolor=band.color,
                edgecolor="k",
                label=f"{band.name} (>= {band.min_reduction:.0%})",
            )
            for band in self.table.bands
        ]
        self.ax.legend(handles=handles, loc="upper left", bbox_to_anchor=(1.02, 1.0))
        return self.fig


def plot_scenario(
    scenario: DrivingScenario,
    target_id: int | None = None,
    filename: str | Path | None = None,
) -> Figure:
    """Plot a driving scenario.

    Args:
        scenario: Scenario to draw
        target_id: Target actor whose collision with the ego is drawn
        filename: Optional output file

    Returns:
        Figure
    """
    plotter = ScenarioPlotter(scenario)
    fig = plotter.plot(target_id=target_id)
    if filename is not None:
        plotter.save(filename)
    return fig


def plot_variant_results(
    summary: RunSummary,
    table: SpeedReductionTable | None = None,
    filename: str | Path | None = None,
) -> Figure:
    """Plot graded variant results as a (test speed x collision point) grid."""
    plotter = VariantResultPlotter(summary, table)
    fig = plotter.plot()
    if filename is not None:
        plotter.save(filename)
    return fig
