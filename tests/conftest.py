from __future__ import annotations

from pathlib import Path

import pytest

from plexify.config import Settings

_BLANK_KEYS = {
    "vite_anthropic_api_key": "",
    "anthropic_api_key": "",
    "anthropic_apikey": "",
    "vite_anthropic_model": "",
    "anthropic_model": "",
    "anthropic_model_id": "",
    "openai_api_key": "",
    "elevenlabs_api_key": "",
    "vite_elevenlabs_api_key": "",
}


@pytest.fixture
def make_settings(tmp_path: Path):
    """Settings isolated from .env files and the process environment."""

    def _make(**overrides) -> Settings:
        values = {
            **_BLANK_KEYS,
            "real_docs_dir": str(tmp_path / "real-docs"),
            "demo_data_dir": str(tmp_path / "demo-data"),
            "audio_output_dir": str(tmp_path / "audio"),
            "podcast_output_dir": str(tmp_path / "podcasts"),
            **overrides,
        }
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def demo_data_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "demo-data"
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "Golden_Triangle_BID_Annual_Report_2024.txt").write_text(
        "Golden Triangle BID collected $2.30M of $2.44M billed in FY 2024.", encoding="utf-8"
    )
    (directory / "Q3_Assessment_Collection_Summary.txt").write_text(
        "Commercial 96%, Retail 91%, Residential 88%.", encoding="utf-8"
    )
    (directory / "Board_Meeting_Minutes_October_2024.txt").write_text(
        "The board approved the wayfinding signage RFP.", encoding="utf-8"
    )
    return directory
