"""
Frame sinks: FFmpeg video encoder and PNG sequence writer.

Raw RGB frames are piped to ffmpeg over stdin, so no intermediate files
are written. An optional audio track can be muxed in.
"""

import shutil
import subprocess
from pathlib import Path
from typing import Callable, Iterator, Optional

from PIL import Image


# Quality presets: (preset, crf, pix_fmt)
QUALITY_PRESETS = {
    "high": ("slow", "18", "yuv444p"),
    "medium": ("medium", "23", "yuv420p"),
    "fast": ("ultrafast", "28", "yuv420p"),
}


def ffmpeg_available() -> bool:
    return shutil.which("ffmpeg") is not None


def build_ffmpeg_command(
    output_path: Path,
    width: int,
    height: int,
    fps: int,
    quality: str = "medium",
    audio_path: Optional[Path] = None,
) -> list:
    """Assemble the ffmpeg argument list for a raw rgb24 stdin stream."""
    preset, crf, pix_fmt = QUALITY_PRESETS.get(quality, QUALITY_PRESETS["medium"])

    cmd = [
        "ffmpeg", "-y",
        # keep stderr small; it is only drained after the last frame
        "-loglevel", "error",
        "-f", "rawvideo",
        "-pix_fmt", "rgb24",
        "-s", f"{width}x{height}",
        "-r", str(fps),
        "-i", "pipe:0",
    ]
    if audio_path is not None:
        cmd += ["-i", str(audio_path)]

    cmd += [
        "-c:v", "libx264",
        "-preset", preset,
        "-crf", crf,
        "-pix_fmt", pix_fmt,
    ]
    if audio_path is not None:
        cmd += ["-c:a", "aac", "-b:a", "192k", "-shortest"]

    cmd.append(str(output_path))
    return cmd


def _error_summary(stderr: str) -> str:
    """Last few error-looking lines of ffmpeg's stderr, or its tail."""
    keep = [
        line for line in stderr.splitlines()
        if "error" in line.lower() or "invalid" in line.lower()
    ]
    return "\n".join(keep[-5:]) if keep else stderr[-500:]


def encode_video(
    frame_iterator: Iterator,
    output_path: Path,
    width: int = 512,
    height: int = 512,
    fps: int = 60,
    quality: str = "medium",
    audio_path: Optional[Path] = None,
    total_frames: Optional[int] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> Path:
    """
    Encode frames to MP4.

    Args:
        frame_iterator: Yields (H, W, 3) uint8 numpy arrays.
        output_path: Output MP4 path.
        width: Frame width.
        height: Frame height.
        fps: Frames per second.
        quality: "high", "medium", or "fast".
        audio_path: Optional soundtrack to mux in.
        total_frames: Total frame count for progress reporting.
        progress_callback: Optional callback(current_frame, total_frames).

    Returns:
        Path to the output file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    cmd = build_ffmpeg_command(output_path, width, height, fps, quality, audio_path)
    proc = subprocess.Popen(
        cmd,
        stdin=subprocess.PIPE,
        stdout=subprocess.DEVNULL,
        stderr=subprocess.PIPE,
    )

    frame_count = 0
    try:
        for frame in frame_iterator:
            proc.stdin.write(frame.tobytes())
            frame_count += 1

            if progress_callback and total_frames:
                progress_callback(frame_count, total_frames)

    except BrokenPipeError:
        # ffmpeg died early; its stderr is reported below
        pass
    finally:
        if proc.stdin:
            proc.stdin.close()

    stderr = proc.stderr.read().decode("utf-8", errors="replace")
    proc.wait()

    if proc.returncode != 0:
        raise RuntimeError(f"ffmpeg exited with code {proc.returncode}: {_error_summary(stderr)}")

    return output_path


def save_frames(
    frame_iterator: Iterator,
    directory: Path,
    prefix: str = "frame",
    total_frames: Optional[int] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> list:
    """Write frames as numbered PNGs. Returns the written paths."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    paths = []
    for i, frame in enumerate(frame_iterator):
        path = directory / f"{prefix}_{i:05d}.png"
        Image.fromarray(frame).save(path)
        paths.append(path)
        if progress_callback and total_frames:
            progress_callback(i + 1, total_frames)
    return paths
