"""
Run EKF-SLAM on a Simulated Fiducial World.

This script drives the SLAM cycle driver (SLAMNode) at a fixed rate with
velocity commands, ground truth and fiducial detections from a synthetic
landmark world, then reports trajectory / map errors and NEES consistency.

Key Learning Objectives:
    - See the robot covariance grow during prediction and shrink when known
      landmarks are re-observed
    - Watch the joint state grow by one 3-DOF block per new landmark
    - Compare filter tuning presets by their NEES

Usage:
    python scripts/run_ekf_slam_simulation.py --preset baseline --plot
"""

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from ekfslam.estimators import PRESETS, EKFSLAMConfig, load_config
from ekfslam.eval import (
    compute_landmark_errors,
    compute_nees,
    compute_trajectory_stats,
    nees_bounds,
)
from ekfslam.node import SLAMConfig, SLAMNode, StaticFrameResolver
from ekfslam.sim import SensorSpec, generate_landmarks, simulate_run
from ekfslam.slam import Pose2, se2_relative

logger = logging.getLogger(__name__)


def run_simulation(
    technique_config: EKFSLAMConfig,
    n_landmarks: int = 12,
    n_steps: int = 600,
    dt: float = 0.1,
    v: float = 0.5,
    w: float = 0.15,
    max_range: float = 5.0,
    seed: int = 42,
    resolve_sensor_frame: bool = True,
) -> Dict[str, Any]:
    """
    Simulate one run and filter it with EKF-SLAM.

    Args:
        technique_config: Filter configuration.
        n_landmarks: Number of landmarks in the world.
        n_steps: Number of 1/dt Hz cycles.
        dt: Cycle period (s).
        v, w: Commanded linear (m/s) / angular (rad/s) velocity.
        max_range: Fiducial detection range (m).
        seed: Random seed.
        resolve_sensor_frame: If False the driver has no frame resolver and
            uses its fallback sensor pose.

    Returns:
        Dictionary with the simulated run, estimated poses and covariances,
        the final published output and error metrics.
    """
    world = generate_landmarks(n_landmarks=n_landmarks, seed=seed)
    sensor = SensorSpec(range_max=max_range)
    run = simulate_run(world, sensor, v=v, w=w, dt=dt, n_steps=n_steps, seed=seed)

    resolver = None
    if resolve_sensor_frame:
        resolver = StaticFrameResolver({("base_link", sensor.frame_id): sensor.mounting})

    start = Pose2.from_array(run.true_poses[0])
    node = SLAMNode(
        config=SLAMConfig(reset=True),
        technique_config=technique_config,
        frame_resolver=resolver,
        reference=start,
    )

    est_poses = np.zeros_like(run.true_poses)
    est_cov = np.zeros((len(run.t), 3, 3))
    n_rejected = 0
    for k, stamp in enumerate(run.t):
        node.on_command(*run.commands[k])
        node.on_ground_truth(Pose2.from_array(run.true_poses[k]))
        node.on_fiducial(run.detections[k])
        _, result = node.cycle(stamp)
        if result is not None:
            n_rejected += len(result.rejected)

        estimate = node.slam.current_estimate()
        est_poses[k] = estimate.robot_pose.to_array()
        est_cov[k] = estimate.robot_covariance

    # The map frame is anchored at the reference pose of the reset
    origin = node.origin.to_array()
    truth_map = np.array([se2_relative(origin, pose) for pose in run.true_poses])
    true_landmarks = {
        int(lid): se2_relative(origin, pose) for lid, pose in zip(world.ids, world.poses)
    }

    output = node.publish()
    estimated_landmarks = {lm.id: lm.pose.to_array() for lm in output.landmarks}

    nees = compute_nees(truth_map, est_poses, est_cov)
    landmark_errors = compute_landmark_errors(true_landmarks, estimated_landmarks)

    return {
        "run": run,
        "world": world,
        "truth_map": truth_map,
        "true_landmarks_map": np.array([true_landmarks[i] for i in sorted(true_landmarks)]),
        "est_poses": est_poses,
        "est_cov": est_cov,
        "output": output,
        "nees": nees,
        "trajectory_stats": compute_trajectory_stats(truth_map, est_poses),
        "landmark_errors": landmark_errors,
        "n_rejected": n_rejected,
        "sensor_lookup_failures": node.sensor_lookup_failures,
    }


def summarize(results: Dict[str, Any], preset: Optional[str]) -> Dict[str, Any]:
    """Build the JSON-serializable summary of a run."""
    stats = results["trajectory_stats"]
    landmark_errors = results["landmark_errors"]
    mean_nees = float(np.nanmean(results["nees"]))
    lower, upper = nees_bounds(dof=3, n_runs=len(results["nees"]))

    return {
        "preset": preset,
        "n_cycles": int(len(results["run"].t)),
        "n_landmarks_mapped": len(results["output"].landmarks),
        "n_landmarks_world": int(len(results["world"].ids)),
        "n_rejected_observations": int(results["n_rejected"]),
        "sensor_lookup_failures": int(results["sensor_lookup_failures"]),
        "trajectory": stats,
        "landmark_rmse": (
            float(np.sqrt(np.mean(np.square(list(landmark_errors.values())))))
            if landmark_errors else None
        ),
        "mean_nees": mean_nees,
        "nees_bounds_95": [lower, upper],
    }


def print_summary(summary: Dict[str, Any]) -> None:
    print("\n" + "=" * 70)
    print("EKF-SLAM Simulation Results")
    print("=" * 70)
    print(f"  Preset: {summary['preset'] or 'custom'}")
    print(f"  Cycles: {summary['n_cycles']}")
    print(
        f"  Landmarks mapped: {summary['n_landmarks_mapped']} / "
        f"{summary['n_landmarks_world']}"
    )
    print(f"  Rejected observations: {summary['n_rejected_observations']}")

    traj = summary["trajectory"]
    print("\n  Robot trajectory:")
    print(f"    Position RMSE:  {traj['position_rmse']:.3f} m")
    print(f"    Position max:   {traj['position_max']:.3f} m")
    print(f"    Final error:    {traj['position_final']:.3f} m")
    print(f"    Heading RMSE:   {np.degrees(traj['yaw_rmse']):.2f} deg")

    if summary["landmark_rmse"] is not None:
        print(f"\n  Landmark position RMSE: {summary['landmark_rmse']:.3f} m")

    lower, upper = summary["nees_bounds_95"]
    print(f"\n  Mean NEES: {summary['mean_nees']:.2f} (95% bounds [{lower:.2f}, {upper:.2f}])")
    print("=" * 70)


def main():
    """Main CLI entry point."""
    preset_lines = "\n".join(
        f"  {name:<12}  {values['description']}" for name, values in PRESETS.items()
    )
    parser = argparse.ArgumentParser(
        description="Run EKF-SLAM on a simulated fiducial world",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Presets:
{preset_lines}

Examples:
  # Baseline filter tuning
  python scripts/run_ekf_slam_simulation.py --preset baseline

  # Tuning from a JSON file, with plots
  python scripts/run_ekf_slam_simulation.py --config my_tuning.json --plot

  # Exercise the sensor-frame fallback
  python scripts/run_ekf_slam_simulation.py --no-frame-resolver
        """,
    )

    config_group = parser.add_mutually_exclusive_group()
    config_group.add_argument(
        "--preset",
        type=str,
        choices=sorted(PRESETS),
        help="Filter tuning preset (default: baseline)",
    )
    config_group.add_argument(
        "--config", type=str, help="JSON file with filter configuration"
    )
    parser.add_argument(
        "--output",
        type=str,
        default="results/ekf_slam",
        help="Output directory (default: results/ekf_slam)",
    )

    sim_group = parser.add_argument_group("Simulation Parameters")
    sim_group.add_argument(
        "--n-landmarks", type=int, default=12, help="Number of landmarks (default: 12)"
    )
    sim_group.add_argument(
        "--n-steps", type=int, default=600, help="Number of cycles (default: 600)"
    )
    sim_group.add_argument(
        "--dt", type=float, default=0.1, help="Cycle period in seconds (default: 0.1)"
    )
    sim_group.add_argument(
        "--linear-velocity", type=float, default=0.5, help="Linear velocity command m/s (default: 0.5)"
    )
    sim_group.add_argument(
        "--angular-velocity", type=float, default=0.15, help="Angular velocity command rad/s (default: 0.15)"
    )
    sim_group.add_argument(
        "--max-range", type=float, default=5.0, help="Sensor max range in meters (default: 5.0)"
    )
    sim_group.add_argument(
        "--no-frame-resolver",
        action="store_true",
        help="Run without a frame resolver (uses the fallback sensor pose)",
    )

    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--plot", action="store_true", help="Save map and NEES figures")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.config:
        technique_config = load_config(args.config)
        preset = None
    else:
        preset = args.preset or "baseline"
        technique_config = EKFSLAMConfig.from_preset(preset)
    logger.info("Filter configuration: %s", technique_config)

    results = run_simulation(
        technique_config,
        n_landmarks=args.n_landmarks,
        n_steps=args.n_steps,
        dt=args.dt,
        v=args.linear_velocity,
        w=args.angular_velocity,
        max_range=args.max_range,
        seed=args.seed,
        resolve_sensor_frame=not args.no_frame_resolver,
    )

    summary = summarize(results, preset)
    summary["config"] = technique_config.to_dict()
    print_summary(summary)

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)
    with open(output_dir / "summary.json", "w") as f:
        json.dump(summary, f, indent=2)
    print(f"\nSaved: {output_dir / 'summary.json'}")

    if args.plot:
        # matplotlib is only imported with --plot
        from ekfslam.eval.plots import plot_nees, plot_slam_map, save_figure

        fig = plot_slam_map(
            results["truth_map"],
            results["est_poses"],
            true_landmarks=results["true_landmarks_map"],
            output=results["output"],
            title=f"EKF-SLAM ({preset or 'custom'})",
        )
        for path in save_figure(fig, output_dir, "ekf_slam_map"):
            print(f"Saved: {path}")

        fig = plot_nees(
            results["run"].t,
            results["nees"],
            bounds=nees_bounds(dof=3),
        )
        for path in save_figure(fig, output_dir, "ekf_slam_nees"):
            print(f"Saved: {path}")


if __name__ == "__main__":
    main()
