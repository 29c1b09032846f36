"""
CLI entry point for the splatflow scenes.

Usage:
    splatflow vortex [options]
    splatflow wind --pointer 0.3 -0.2 --perspective 3 -o wind.mp4
    python -m splatflow wind --frames-dir frames/
"""

import argparse
import sys
import time
from pathlib import Path

from splatflow.experiment.encoder import encode_video, ffmpeg_available, save_frames
from splatflow.experiment.vortex import VortexConfig, VortexScene
from splatflow.experiment.wind import WindConfig, WindScene

SCENES = {
    "vortex": (VortexScene, VortexConfig),
    "wind": (WindScene, WindConfig),
}

PROFILES = {
    "low": {"width": 320, "height": 320, "fps": 30, "quality": "fast"},
    "medium": {"width": 512, "height": 512, "fps": 60, "quality": "medium"},
    "high": {"width": 1080, "height": 1080, "fps": 60, "quality": "high"},
}


def _progress_bar(current: int, total: int, width: int = 35):
    """Print a progress bar to stdout."""
    pct = current / max(total, 1) * 100
    filled = int(width * current / max(total, 1))
    bar = "#" * filled + "-" * (width - filled)
    if sys.stdout.isatty():
        sys.stdout.write(f"\r[{bar}] {pct:5.1f}%  frame {current}/{total}")
        sys.stdout.flush()
        if current >= total:
            sys.stdout.write("\n")
    else:
        if current % max(1, total // 20) == 0 or current >= total:
            print(f"{pct:5.1f}%  frame {current}/{total}", flush=True)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="splatflow",
        description="Noise-driven particle smoke rendered as deforming splats",
    )
    parser.add_argument("scene", choices=sorted(SCENES), help="Scene to render")

    # Output
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Output MP4 path (default: <scene>.mp4)",
    )
    parser.add_argument(
        "--frames-dir", type=Path, default=None,
        help="Write a PNG sequence here instead of encoding a video",
    )
    parser.add_argument("--audio", type=Path, default=None, help="Optional soundtrack to mux in")

    # Resolution & Profile
    parser.add_argument(
        "-p", "--profile", type=str, default="medium",
        choices=sorted(PROFILES),
        help="Target profile (low: 320px 30fps, medium: 512px 60fps, high: 1080px 60fps)",
    )
    parser.add_argument("--width", type=int, default=None, help="Frame width (overrides profile)")
    parser.add_argument("--height", type=int, default=None, help="Frame height (overrides profile)")
    parser.add_argument("-f", "--fps", type=int, default=None, help="Frames per second (overrides profile)")
    parser.add_argument("-n", "--frames", type=int, default=300, help="Number of frames (default: 300)")

    # Simulation
    parser.add_argument("--particles", type=int, default=None, help="Particle count")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for noise and spawning")
    parser.add_argument(
        "--pointer", type=float, nargs=2, default=(0.0, 0.0), metavar=("X", "Y"),
        help="Pointer offset in [-1, 1] (clamped to +/-0.9)",
    )
    parser.add_argument(
        "--perspective", type=float, default=None, metavar="DISTANCE",
        help="Camera distance for perspective (wind scene only)",
    )

    # Post-processing
    parser.add_argument("--no-glow", action="store_true", help="Disable glow")
    parser.add_argument("--no-vignette", action="store_true", help="Disable vignette")

    # Quality
    parser.add_argument(
        "-q", "--quality", type=str, default=None,
        choices=["high", "medium", "fast"],
        help="Encoding quality (defaults to profile quality)",
    )
    return parser


def build_scene(args: argparse.Namespace):
    """Instantiate the requested scene from parsed arguments."""
    scene_cls, config_cls = SCENES[args.scene]
    p_cfg = PROFILES[args.profile]

    options = dict(
        width=args.width or p_cfg["width"],
        height=args.height or p_cfg["height"],
        fps=args.fps or p_cfg["fps"],
        pointer=tuple(args.pointer),
        glow_enabled=not args.no_glow,
        vignette_strength=0.0 if args.no_vignette else 0.2,
    )
    if args.particles is not None:
        options["n_particles"] = args.particles
    if args.perspective is not None:
        if args.scene != "wind":
            raise ValueError("--perspective is only supported by the wind scene")
        options["projection_distance"] = args.perspective

    return scene_cls(config_cls(**options), seed=args.seed)


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.frames < 1:
        print("Error: --frames must be at least 1", file=sys.stderr)
        sys.exit(1)
    if args.audio is not None and not args.audio.exists():
        print(f"Error: Audio file not found: {args.audio}", file=sys.stderr)
        sys.exit(1)
    if args.frames_dir is None and not ffmpeg_available():
        print("Error: ffmpeg not found on PATH (use --frames-dir for PNG output)", file=sys.stderr)
        sys.exit(1)

    # Step 1: Build noise fields and spawn particles
    print(f"Building scene: {args.scene}")
    t0 = time.time()
    try:
        scene = build_scene(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    cfg = scene.cfg
    print(f"  Particles: {cfg.n_particles}")
    print(f"  Pointer: ({scene.system.pointer[0]:.2f}, {scene.system.pointer[1]:.2f})")
    print(f"  Setup took {time.time() - t0:.1f}s")

    # Step 2: Render
    total_frames = args.frames
    print(f"\nRendering {total_frames} frames at {cfg.width}x{cfg.height} @ {cfg.fps}fps")
    frame_gen = scene.render(total_frames)
    t1 = time.time()

    if args.frames_dir is not None:
        paths = save_frames(
            frame_gen, args.frames_dir,
            total_frames=total_frames, progress_callback=_progress_bar,
        )
        elapsed = time.time() - t1
        print(f"\nDone! {len(paths)} frames")
        print(f"  Render took {elapsed:.1f}s ({total_frames / max(elapsed, 0.01):.1f} fps)")
        print(f"  Output: {args.frames_dir}")
        return

    # Step 3: Encode
    output = args.output or Path(f"{args.scene}.mp4")
    quality = args.quality or PROFILES[args.profile]["quality"]
    encode_video(
        frame_iterator=frame_gen,
        output_path=output,
        width=cfg.width,
        height=cfg.height,
        fps=cfg.fps,
        quality=quality,
        audio_path=args.audio,
        total_frames=total_frames,
        progress_callback=_progress_bar,
    )

    elapsed = time.time() - t1
    file_size_mb = output.stat().st_size / 1024 / 1024

    print(f"\nDone! {file_size_mb:.1f} MB")
    print(f"  Render+encode took {elapsed:.1f}s ({total_frames / max(elapsed, 0.01):.1f} fps)")
    print(f"  Output: {output}")


if __name__ == "__main__":
    main()
