"""
Datasets Module - 固定資料集

提供：
1. GO_TOUR_PAGES - 以 http://golang.org/ 為根的示範資料集
2. load_dataset - 從 JSON 檔案載入資料集
"""

import json
from pathlib import Path

from linkcrawl.fetcher import FetchResult

GO_TOUR_ROOT = "http://golang.org/"

GO_TOUR_PAGES: dict[str, FetchResult] = {
    "http://golang.org/": FetchResult(
        "The Go Programming Language",
        (
            "http://golang.org/pkg/",
            "http://golang.org/cmd/",
        ),
    ),
    "http://golang.org/pkg/": FetchResult(
        "Packages",
        (
            "http://golang.org/",
            "http://golang.org/cmd/",
            "http://golang.org/pkg/fmt/",
            "http://golang.org/pkg/os/",
        ),
    ),
    "http://golang.org/pkg/fmt/": FetchResult(
        "Package fmt",
        (
            "http://golang.org/",
            "http://golang.org/pkg/",
        ),
    ),
    "http://golang.org/pkg/os/": FetchResult(
        "Package os",
        (
            "http://golang.org/",
            "http://golang.org/pkg/",
        ),
    ),
}


def load_dataset(file_path: str) -> dict[str, FetchResult]:
    """從 JSON 檔案載入資料集

    格式：{"<key>": {"body": "...", "links": ["<key>", ...]}, ...}
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset file not found: {file_path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Dataset must be a JSON object keyed by URL: {file_path}")

    pages = {
        key: FetchResult(
            content=entry.get("body", ""),
            links=tuple(entry.get("links", [])),
        )
        for key, entry in data.items()
    }

    if not pages:
        raise ValueError(f"Dataset is empty: {file_path}")

    return pages
