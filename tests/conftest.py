from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for entry in (ROOT, ROOT / "src"):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))


import pytest

from crossbind.config import AnalyzerConfig
from crossbind.analysis.functions import FunctionAnalyzer


@pytest.fixture
def widget_config() -> AnalyzerConfig:
    return AnalyzerConfig(allowlist=frozenset({"Widget", "Gadget", "ui::Widget"}))


@pytest.fixture
def analyzer(widget_config: AnalyzerConfig) -> FunctionAnalyzer:
    return FunctionAnalyzer(widget_config)
