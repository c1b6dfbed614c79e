"""Tests for synthesized-to-script line mapping."""

from __future__ import annotations

import pytest

from cargoscript.features.synthesis import LineMap


def test_every_body_line_round_trips() -> None:
    line_map = LineMap(offset=16, body_lines=40)

    for k in range(1, 41):
        synthesized = line_map.to_synthesized(k)
        assert synthesized == 16 + k
        assert line_map.to_original(synthesized) == k


@pytest.mark.parametrize("synthesized", [1, 16, 57, 100])
def test_boilerplate_lines_have_no_mapping(synthesized: int) -> None:
    line_map = LineMap(offset=16, body_lines=40)

    assert line_map.to_original(synthesized) is None


def test_identity_map() -> None:
    line_map = LineMap.identity(3)

    assert list(line_map.pairs()) == [(1, 1), (2, 2), (3, 3)]
    assert line_map.to_original(4) is None


def test_dict_serialization() -> None:
    line_map = LineMap(offset=1, body_lines=2)

    assert LineMap.from_dict(line_map.to_dict()) == line_map


def test_negative_values_rejected() -> None:
    with pytest.raises(ValueError):
        _ = LineMap(offset=-1, body_lines=0)
