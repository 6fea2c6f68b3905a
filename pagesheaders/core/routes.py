"""Discovery of built HTML files and their attribution to routes."""

import os
from typing import List

HTML_EXTENSION = ".html"
INDEX_FILE = "index.html"


def _raise_walk_error(error: OSError) -> None:
    raise error


def collect_html_files(root_dir: str) -> List[str]:
    """Recursively list every ``.html`` file under ``root_dir``.

    Directory read errors propagate to the caller.

    Args:
        root_dir (str): The build output directory.

    Returns:
        List[str]: File paths joined onto ``root_dir``, sorted per directory.
    """
    html_files: List[str] = []
    for root, dirs, files in os.walk(root_dir, onerror=_raise_walk_error):
        dirs.sort()
        for file in sorted(files):
            if file.endswith(HTML_EXTENSION):
                html_files.append(os.path.join(root, file))
    return html_files


def map_html_file_to_route(build_dir: str, html_file: str) -> str:
    """Convert a built HTML file path into its canonical route.

    ``index.html`` maps to ``/``, ``docs/index.html`` to ``/docs/`` and
    ``about.html`` to ``/about``.

    Args:
        build_dir (str): The build output directory.
        html_file (str): Path of a file inside ``build_dir``.

    Returns:
        str: The route the file is served under.
    """
    relative_path = "/".join(os.path.relpath(html_file, build_dir).split(os.sep))

    if relative_path == INDEX_FILE:
        return "/"
    if relative_path.endswith(f"/{INDEX_FILE}"):
        return f"/{relative_path[: -len(INDEX_FILE) - 1]}/"
    if relative_path.endswith(HTML_EXTENSION):
        return f"/{relative_path[: -len(HTML_EXTENSION)]}"
    return f"/{relative_path}"
