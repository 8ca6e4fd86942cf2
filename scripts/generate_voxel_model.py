#!/usr/bin/env python3
"""
Generate animatable voxel models from text prompts or reference images.

Usage:
    # From text (requires API key)
    python scripts/generate_voxel_model.py --text "a knight with a red cape"
    python scripts/generate_voxel_model.py --text "a small dragon" --category animal --concept

    # From a reference image
    python scripts/generate_voxel_model.py --image sketch.png --text "robot"

    # Inspect or export a saved model (no API key needed)
    python scripts/generate_voxel_model.py --load <model-id> --export knight.glb

The API key is read from GEMINI_API_KEY, or passed via --api-key.
"""
import argparse
import asyncio
import base64
import logging
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from model_store import DEFAULT_STORE_PATH, ModelStore
from pose_engine import compute_pose
from voxel_provider import STYLE_DESCRIPTIONS, GenerationOptions, ProviderError
from voxels import AnimationType, ModelCategory
from studio import GenerationStatus, StudioSession


def image_to_data_uri(image_path):
    """Read a local image into a data URI."""
    with open(image_path, "rb") as f:
        data = base64.b64encode(f.read()).decode()
    ext = os.path.splitext(image_path)[1].lstrip(".").lower()
    mime = {"jpg": "jpeg", "jpeg": "jpeg", "png": "png", "webp": "webp"}.get(ext, "png")
    return f"data:image/{mime};base64,{data}"


def print_summary(session):
    model = session.current_model
    layout = session.layout
    print(f"   Name:       {model.name}")
    print(f"   Id:         {model.id}")
    print(f"   Category:   {model.category.value}")
    print(f"   Animation:  {model.animation.value}")
    print(f"   Voxels:     {len(model.voxels)}")
    print(f"   Offset:     {layout.center_offset.round(2).tolist()}")
    for part, group in layout.groups.items():
        print(f"   {part.value:<10}  {len(group):>5} voxels  pivot {group.pivot.round(2).tolist()}")


def main():
    parser = argparse.ArgumentParser(
        description="Generate animatable voxel models from text or images"
    )

    input_group = parser.add_mutually_exclusive_group(required=True)
    input_group.add_argument("--text", type=str, help="Text prompt describing the subject")
    input_group.add_argument("--image", type=str, help="Path to a reference image")
    input_group.add_argument("--load", type=str, help="Id of a saved model (skip generation)")

    parser.add_argument(
        "--category", type=str, default="character",
        choices=[c.value for c in ModelCategory],
        help="Subject category (default: character)",
    )
    parser.add_argument(
        "--style", type=str, default="Modern", choices=list(STYLE_DESCRIPTIONS.keys()),
        help="Visual style (default: Modern)",
    )
    parser.add_argument(
        "--complexity", type=str, default="Detailed",
        help="Detail level passed to the model (default: Detailed)",
    )
    parser.add_argument(
        "--concept", action="store_true",
        help="Generate a reference sheet first and build the model from it",
    )
    parser.add_argument(
        "--prompt", type=str, default="",
        help="Text prompt to accompany --image",
    )
    parser.add_argument("--api-key", type=str, default=None, help="API key override")
    parser.add_argument(
        "--store", type=str, default=DEFAULT_STORE_PATH,
        help=f"Saved-model file (default: {DEFAULT_STORE_PATH})",
    )
    parser.add_argument("--no-save", action="store_true", help="Do not save the result")
    parser.add_argument(
        "--animation", type=str, default=None, choices=[a.value for a in AnimationType],
        help="Override the selected animation before saving/exporting",
    )
    parser.add_argument(
        "--stiffness", type=float, default=0.5, help="Joint stiffness 0-1 (default: 0.5)",
    )
    parser.add_argument(
        "--export", type=str, default=None,
        help="Export the model as a mesh (.glb/.obj/.stl/.ply)",
    )
    parser.add_argument(
        "--export-time", type=float, default=0.0,
        help="Animation time (s) of the pose baked into --export (default: 0)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    store = ModelStore(args.store)
    provider = None
    if not args.load:
        from gemini_provider import create_provider
        try:
            provider = create_provider(args.api_key)
        except ProviderError as e:
            print(f"Error: {e}")
            sys.exit(1)

    session = StudioSession(provider=provider, store=store)
    session.category = ModelCategory(args.category)
    session.options = GenerationOptions(style=args.style, complexity=args.complexity)
    session.set_stiffness(args.stiffness)

    if args.load:
        model = next((m for m in session.library if m.id == args.load), None)
        if model is None:
            print(f"Error: No saved model with id '{args.load}' in {args.store}")
            sys.exit(1)
        session.load(model)
    else:
        session.prompt = args.text or args.prompt
        image = image_to_data_uri(args.image) if args.image else None

        if args.concept and image is None:
            print("Generating concept sheet...")
            asyncio.run(session.generate_concept())
            if session.status is GenerationStatus.ERROR:
                print(f"Error: {session.error}")
                sys.exit(1)

        print("Generating voxel model...")
        asyncio.run(session.generate_model(image))
        if session.status is GenerationStatus.ERROR:
            print(f"Error: {session.error}")
            sys.exit(1)

    if args.animation:
        session.set_animation(AnimationType(args.animation))

    print("=" * 50)
    print_summary(session)

    if not args.no_save:
        session.save()
        print(f"\nSaved to {args.store}")

    if args.export:
        from mesh_export import export_model
        model = session.current_model
        pose = compute_pose(
            session.layout, model.animation, model.category, args.export_time, session.stiffness
        )
        export_model(model, args.export, pose=pose)
        print(f"Exported mesh to {args.export}")


if __name__ == "__main__":
    main()
