#!/usr/bin/env python3
"""
Drop a saved voxel model in ragdoll mode and report how it settles.

Usage:
    python scripts/simulate_ragdoll.py --model <model-id> --stiffness 0.2
    python scripts/simulate_ragdoll.py --model <model-id> --gui
"""
import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from model_store import DEFAULT_STORE_PATH, ModelStore
from part_aggregator import aggregate_parts
from ragdoll import RagdollConfig, build_ragdoll_bodies
from ragdoll_simulator import RagdollSimulator


def main():
    parser = argparse.ArgumentParser(description="Run ragdoll physics on a saved voxel model")
    parser.add_argument("--model", type=str, required=True, help="Saved model id")
    parser.add_argument(
        "--store", type=str, default=DEFAULT_STORE_PATH,
        help=f"Saved-model file (default: {DEFAULT_STORE_PATH})",
    )
    parser.add_argument(
        "--stiffness", type=float, default=0.5, help="Joint stiffness 0-1 (default: 0.5)",
    )
    parser.add_argument(
        "--duration", type=float, default=3.0, help="Simulated seconds (default: 3.0)",
    )
    parser.add_argument("--gui", action="store_true", help="Show the PyBullet GUI")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    model = ModelStore(args.store).get(args.model)
    if model is None:
        print(f"Error: No saved model with id '{args.model}' in {args.store}")
        sys.exit(1)

    config = RagdollConfig()
    layout = aggregate_parts(model.voxels)
    bodies = build_ragdoll_bodies(model.voxels, layout.center_offset, args.stiffness, config)

    sim = RagdollSimulator(stiffness=args.stiffness, config=config, gui=args.gui)
    try:
        result = sim.settle(bodies, duration=args.duration)
    finally:
        sim.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return

    print(f"Ragdoll: {model.name} ({len(bodies)} bodies)")
    print("=" * 50)
    print(f"   Damping:            {sim.params.damping:.2f}")
    print(f"   Gravity:            {sim.params.gravity:.2f} (x{sim.params.gravity_multiplier:.1f})")
    print(f"   Max displacement:   {result.max_displacement:.3f}")
    print(f"   Mean final height:  {result.mean_final_height:.3f}")
    print(f"   Wall time:          {result.wall_time:.2f} s")


if __name__ == "__main__":
    main()
