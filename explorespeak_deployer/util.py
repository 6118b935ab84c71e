"""
Utility Functions - Lambda packaging.

This module zips Lambda source directories into deployment archives.
Archives are written to the system temp directory, never into the source
tree, and are removed once the upload finished or failed.
"""

import os
import shutil
import subprocess
import tempfile
import zipfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

import explorespeak_deployer.constants as CONSTANTS
from explorespeak_deployer.logger import logger


def resolve_folder_path(folder_path: Union[str, Path]) -> Path:
    """Resolve a folder path to an absolute path.

    Raises:
        FileNotFoundError: If the folder doesn't exist or is not a directory
    """
    path = Path(folder_path).resolve()
    if not path.is_dir():
        raise FileNotFoundError(f"Folder '{folder_path}' does not exist.")
    return path


def zip_directory(folder_path: Union[str, Path], output_path: Union[str, Path]) -> str:
    """Zip a directory's contents.

    Paths inside the archive are relative to folder_path, so index.js ends
    up at the archive root where the Lambda handler expects it.

    Args:
        folder_path: Path to the directory to zip
        output_path: Where to write the archive

    Returns:
        Path to the created zip file
    """
    folder_path = resolve_folder_path(folder_path)
    output_path = os.path.realpath(output_path)

    with zipfile.ZipFile(output_path, 'w', zipfile.ZIP_DEFLATED) as zf:
        for root, dirs, files in os.walk(folder_path):
            dirs.sort()
            for file in sorted(files):
                full_path = os.path.join(root, file)
                if os.path.realpath(full_path) == output_path:
                    continue
                arcname = os.path.relpath(full_path, start=folder_path)
                zf.write(full_path, arcname)

    return output_path


def install_node_dependencies(folder_path: Union[str, Path]) -> bool:
    """Run `npm install` in a function directory that has a package.json.

    Returns:
        True if npm ran, False if there is no package.json to install from

    Raises:
        FileNotFoundError: If npm is not on PATH
        subprocess.CalledProcessError: If npm exits non-zero
    """
    folder_path = resolve_folder_path(folder_path)
    if not (folder_path / CONSTANTS.NPM_MANIFEST_FILE).exists():
        logger.debug(f"No {CONSTANTS.NPM_MANIFEST_FILE} in {folder_path}, skipping npm install")
        return False

    npm = shutil.which("npm")
    if npm is None:
        raise FileNotFoundError("npm not found. Install Node.js to build function dependencies.")

    logger.info(f"Installing dependencies in {folder_path}...")
    result = subprocess.run(
        [npm, "install", "--omit=dev"],
        cwd=folder_path,
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        logger.error(result.stderr)
        raise subprocess.CalledProcessError(result.returncode, result.args, result.stdout, result.stderr)
    return True


def build_deployment_package(folder_path: Union[str, Path], install_dependencies: bool = False) -> Path:
    """Zip a function directory into a new temporary archive.

    The caller owns the returned file and must remove it.

    Raises:
        FileNotFoundError: If the folder is missing, or npm is needed but absent
        subprocess.CalledProcessError: If npm install fails
    """
    folder_path = resolve_folder_path(folder_path)
    if install_dependencies:
        install_node_dependencies(folder_path)

    fd, archive_path = tempfile.mkstemp(prefix=f"{folder_path.name}-", suffix=CONSTANTS.PACKAGE_ARCHIVE_SUFFIX)
    os.close(fd)
    try:
        zip_directory(folder_path, archive_path)
    except Exception:
        os.remove(archive_path)
        raise
    return Path(archive_path)


@contextmanager
def deployment_package(folder_path: Union[str, Path], install_dependencies: bool = False) -> Iterator[bytes]:
    """Build a Lambda deployment archive and yield its bytes.

    The temporary archive is removed when the block exits, whether the
    upload inside it succeeded or raised.

    Example:
        with deployment_package(spec.source_dir) as zip_bytes:
            lambda_client.update_function_code(FunctionName=name, ZipFile=zip_bytes)
    """
    archive_path = build_deployment_package(folder_path, install_dependencies=install_dependencies)
    try:
        with open(archive_path, "rb") as f:
            zip_code = f.read()
        logger.debug(f"Packaged {folder_path} ({len(zip_code)} bytes) into {archive_path}")
        yield zip_code
    finally:
        if archive_path.exists():
            archive_path.unlink()
            logger.debug(f"Removed temporary archive {archive_path}")
