import sys
from pathlib import Path

import pytest

# Ensure src package is importable without installation
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if SRC.exists():
    sys.path.insert(0, str(SRC))


MIT_TEXT = """MIT License

Copyright (c) 2021 Example Authors

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software").

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.
"""


@pytest.fixture
def module_cache(tmp_path: Path) -> Path:
    cache = tmp_path / "pkg" / "mod"
    cache.mkdir(parents=True)
    return cache
