"""Remap icosahedral DWD output onto a regular lat/lon grid with ``cdo``.

Needs a grid description and precomputed weights per model, looked up as
``<weights_dir>/<model>_description.txt`` and ``<weights_dir>/<model>_weights.nc``.
Any failure keeps the original file; regridding never fails a download.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

REGRID_SUFFIX = "_regrid"


class Regridder:
    def __init__(self, model: str, weights_dir: Path | str, command: str = "cdo"):
        weights_dir = Path(weights_dir)
        self.description_file = weights_dir / f"{model}_description.txt"
        self.weights_file = weights_dir / f"{model}_weights.nc"
        self.command = command

    def build_command(self, src: Path, dst: Path) -> list[str]:
        return [
            self.command, "-f", "grb2",
            f"remap,{self.description_file},{self.weights_file}",
            str(src), str(dst),
        ]

    def regrid(self, path: Path) -> Path:
        """Return the remapped file, or ``path`` unchanged if remapping failed."""
        path = Path(path)
        target = path.with_name(f"{path.stem}{REGRID_SUFFIX}{path.suffix}")
        try:
            subprocess.run(
                self.build_command(path, target),
                check=True,
                capture_output=True,
            )
        except (OSError, subprocess.CalledProcessError) as e:
            logger.warning("[REGRID] %s: %s, keeping original grid", path.name, e)
            return path

        try:
            path.unlink()
        except OSError as e:
            logger.warning("[REGRID] could not remove %s: %s", path, e)
        return target
