"""Tests for pipeline/progress.py."""
from __future__ import annotations

import pytest

from launch_forge.core.constants import BuildStage
from launch_forge.pipeline.progress import STAGE_BANDS, STAGE_MESSAGES, percent_complete


@pytest.mark.parametrize(
    "stage,expected",
    [
        (BuildStage.QUEUED, 0),
        (BuildStage.RESEARCH, 0),
        (BuildStage.PLANNING, 30),
        (BuildStage.CODE_GENERATION, 50),
        (BuildStage.QUALITY_ASSURANCE, 85),
        (BuildStage.PACKAGING, 95),
        (BuildStage.DONE, 100),
        (BuildStage.FAILED, 0),
        (BuildStage.CANCELLED, 0),
    ],
)
def test_stage_start_values(stage: BuildStage, expected: int) -> None:
    assert percent_complete(stage) == expected


def test_fraction_interpolates_within_band() -> None:
    assert percent_complete(BuildStage.RESEARCH, 0.5) == 15
    assert percent_complete(BuildStage.CODE_GENERATION, 1.0) == 85


def test_fraction_clamped() -> None:
    assert percent_complete(BuildStage.PLANNING, -1) == 30
    assert percent_complete(BuildStage.PLANNING, 7) == 50


def test_bands_never_go_backwards() -> None:
    order = [
        BuildStage.RESEARCH,
        BuildStage.PLANNING,
        BuildStage.CODE_GENERATION,
        BuildStage.QUALITY_ASSURANCE,
        BuildStage.PACKAGING,
        BuildStage.DONE,
    ]
    starts = [STAGE_BANDS[s][0] for s in order]
    assert starts == sorted(starts)
    for earlier, later in zip(order, order[1:]):
        assert STAGE_BANDS[earlier][1] == STAGE_BANDS[later][0]


def test_every_stage_has_a_message() -> None:
    assert set(STAGE_MESSAGES) == set(BuildStage)
