# ABOUTME: Copies finished Sankey artifacts into a shared output folder.
# ABOUTME: Overwrites any previous copy so the shared location always holds the latest build.

import shutil
from pathlib import Path


def publish_artifact(source: Path, dest_dir: Path) -> Path:
    """Copy ``source`` into ``dest_dir`` under the same file name, replacing any existing copy."""

    source = Path(source)
    if not source.is_file():
        raise FileNotFoundError(f"Nothing to publish at {source}")
    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    destination = dest_dir / source.name
    shutil.copyfile(source, destination)
    return destination
