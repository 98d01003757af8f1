import argparse
import logging
import math
import sys
from pathlib import Path

from wallscan.checks.thickness import LOCAL_MIN_THICKNESS, check_local_wall_thickness
from wallscan.config import ThicknessConfig
from wallscan.errors import WallScanError
from wallscan.loader import load_mesh
from wallscan.logging_config import configure_logging

logger = logging.getLogger("wallscan.main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Per-vertex wall thickness check for triangle meshes.")
    parser.add_argument("path", help="mesh file (STL, OBJ, PLY, ...)")
    parser.add_argument("--threshold", type=float, default=LOCAL_MIN_THICKNESS,
                        help="minimum allowed wall thickness (model units)")
    parser.add_argument("--max-distance", type=float, default=math.inf,
                        help="longest ray searched for the opposing wall")
    parser.add_argument("--no-auto-normals", action="store_true",
                        help="fail instead of computing normals when the file has none")
    parser.add_argument("--file-normals", action="store_true",
                        help="use the normals trimesh reports instead of computing them")
    parser.add_argument("--workers", type=int, default=None, help="worker thread count")
    parser.add_argument("--show", action="store_true", help="open a PyVista window")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def run_cli(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else "INFO", args.log_file)

    config = ThicknessConfig(
        auto_compute_normals=not args.no_auto_normals,
        max_distance=args.max_distance,
        max_workers=args.workers,
    )

    try:
        mesh = load_mesh(args.path, include_normals=args.file_normals)
        result = check_local_wall_thickness(mesh, min_thickness=args.threshold, config=config)
    except (FileNotFoundError, WallScanError) as exc:
        logger.error(str(exc))
        return 2

    stats = result["statistics"]
    print(f"{Path(args.path).name}: {result['status']}")
    print(f"  {result['message']}")
    print(f"  measured vertices:   {stats['valid_vertex_count']}")
    print(f"  unmeasured vertices: {stats['invalid_vertex_count']}")
    if stats["valid_vertex_count"]:
        print(f"  min / avg / max:     {stats['min_thickness']:.3f} / "
              f"{stats['average_thickness']:.3f} / {stats['max_thickness']:.3f}")

    if args.show:
        from visualization.pv_display import show_thickness
        show_thickness(mesh, result["per_vertex_thickness"], threshold=args.threshold,
                       title=f"wallscan – {Path(args.path).name}")

    return 1 if result["status"] == "WARNING" else 0


if __name__ == "__main__":
    sys.exit(run_cli())
