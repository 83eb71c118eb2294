"""
EV Demand - Main Entry Point
Run this file to simulate the charging demand of a commuter population.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import pandas as pd

from ev_demand.simulation import Simulation, SimulationParameters
from ev_demand.visualization import plot_demand, plot_hourly_profile


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="EV Commuter Charging Demand Simulation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    # Data
    parser.add_argument(
        "--data-path", type=str, default=None,
        help="Directory holding the distances, recharge behaviors, cars, start times and agents CSV files (default: ./data)"
    )
    parser.add_argument(
        "--config", type=str, default=None,
        help="JSON file of simulation parameters (command line flags override it)"
    )
    parser.add_argument(
        "--distance-factor", type=float, default=None,
        help="Factor applied to every distance read"
    )

    # Clock
    parser.add_argument(
        "--start-date", type=str, default=None,
        help="ISO start date, UTC unless an offset is given (default: now)"
    )
    parser.add_argument(
        "--time-step", type=float, default=None,
        help="Step length in seconds (default: 360)"
    )
    parser.add_argument(
        "--steps", type=int, default=None,
        help="Number of steps to run"
    )
    parser.add_argument(
        "--duration", type=float, default=None,
        help="Simulated time to run, in --unit"
    )
    parser.add_argument(
        "--unit", type=str, default="h", choices=["s", "m", "h"],
        help="Unit of --duration"
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Random seed for reproducibility"
    )

    # Agents
    parser.add_argument(
        "--initial-charge-method", type=str, default=None, choices=["fixed", "random"],
        help="How the initial charge of each car is set"
    )
    parser.add_argument(
        "--recharge-decision", type=str, default=None, choices=["threshold", "probabilistic"],
        help="How a recharge desire becomes a decision"
    )

    # Output
    parser.add_argument(
        "--output-dir", type=str, default="./simulation_output",
        help="Directory to save results and visualizations"
    )
    parser.add_argument(
        "--no-visualize", action="store_true",
        help="Skip generating visualizations"
    )
    parser.add_argument(
        "--show-agents", action="store_true",
        help="Print the final log of every agent"
    )
    parser.add_argument(
        "--progress-interval", type=int, default=None,
        help="Log progress every N steps"
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet", action="store_true",
        help="Only log warnings and errors"
    )
    verbosity.add_argument(
        "--verbose", action="store_true",
        help="Log every step and agent state change"
    )

    return parser.parse_args(argv)


def build_parameters(args) -> SimulationParameters:
    """Merge the JSON config file and command line flags."""
    values = {}
    if args.config:
        with open(args.config) as f:
            values.update(json.load(f))

    overrides = {
        'data_path': args.data_path,
        'distance_factor': args.distance_factor,
        'start_date': args.start_date,
        'time_step_s': args.time_step,
        'random_seed': args.seed,
        'initial_charge_method': args.initial_charge_method,
        'recharge_decision': args.recharge_decision,
        'progress_interval': args.progress_interval,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    values.setdefault('data_path', './data')
    return SimulationParameters.from_dict(values)


def main(argv=None):
    """Main entry point for the demand simulation."""
    args = parse_args(argv)

    if args.quiet:
        level = logging.WARNING
    elif args.verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.steps is None and args.duration is None:
        args.duration = 24.0
        args.unit = "h"

    params = build_parameters(args)

    print("=" * 70)
    print("EV COMMUTER CHARGING DEMAND SIMULATION")
    print("=" * 70)
    print(f"Data: {params.data_path}")
    print(f"Start: {params.start_date or 'now'} (UTC)")
    print(f"Time step: {params.time_step_s:.0f} s")
    if args.steps is not None:
        print(f"Steps: {args.steps}")
    if args.duration is not None:
        print(f"Duration: {args.duration} {args.unit}")
    if params.random_seed is not None:
        print(f"Random seed: {params.random_seed}")
    print(f"Recharge decision: {params.recharge_decision}")
    print("=" * 70)
    print()

    sim = Simulation(params)
    result = sim.run(steps=args.steps, duration=args.duration, unit=args.unit)

    # Save results
    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"\nSaving results to {output_dir}...")
    base_path = result.save(str(output_dir))

    # Generate visualizations
    if not args.no_visualize and not result.demand_dataframe.empty:
        print("Generating visualizations...")
        plot_demand(result.demand_dataframe, f"{base_path}_demand.png")
        plot_hourly_profile(sim.demand.get_hourly_profile(), f"{base_path}_hourly.png")

    # Print summary
    print("\n" + "=" * 70)
    print("SIMULATION SUMMARY")
    print("=" * 70)

    stats = result.summary_statistics
    print(f"Simulated: {result.start_time:%Y-%m-%d %H:%M} -> {result.end_time:%Y-%m-%d %H:%M} UTC")
    print(f"Steps completed: {result.steps}")
    print(f"Wall clock time: {result.wall_clock_time_seconds:.2f} seconds")

    print(f"\nAgents:")
    print(f"  Total: {stats.get('agents', len(sim.agents))}")
    print(f"  Max recharging at once: {stats.get('max_recharging', 0)}")
    print(f"  Max stranded: {stats.get('max_stranded', 0)}")
    print(f"  Final mean charge: {stats.get('final_mean_charge', 0):.1f}%")

    print(f"\nDemand:")
    print(f"  Total energy recharged: {stats.get('total_energy_kwh', 0):.1f} kWh")
    print(f"  Mean power: {stats.get('mean_power_kw', 0):.1f} kW")
    print(f"  Peak power: {stats.get('peak_power_kw', 0):.1f} kW at {stats.get('peak_time', '-')}")

    if args.show_agents:
        print(f"\nAgent logs:")
        with pd.option_context('display.max_rows', None, 'display.width', 200):
            print(sim.get_agent_logs().to_string(index=False))

    print("=" * 70)
    print(f"Results saved to: {output_dir}")
    print("=" * 70)

    return 0


if __name__ == "__main__":
    sys.exit(main())
