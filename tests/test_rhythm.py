import math

import pytest

import cellsequence.rhythm


def test_strong_beat_is_maximum () -> None:

	"""Column 0 is a strong beat with bias exactly 1.0."""

	field = cellsequence.rhythm.RhythmicBiasField(16)

	assert field.bias(0) == 1.0
	assert max(field.values()) == 1.0


def test_default_period_shape () -> None:

	"""Every 4th column is strongest, other even columns moderate, odd columns weakest."""

	field = cellsequence.rhythm.RhythmicBiasField(16)

	assert field.values()[:4] == pytest.approx((1.0, 0.25, 0.5, 0.25))


def test_bias_is_periodic_with_columns () -> None:

	"""Bias repeats every measure."""

	field = cellsequence.rhythm.RhythmicBiasField(16)

	for column in range(16):
		assert field(column) == field(column + 16)
		assert field(column) == field(column - 32)


def test_bias_within_unit_interval () -> None:

	"""Bias stays in [0, 1] for every column and period."""

	for period in (1, 2, 4, 8, 16):
		field = cellsequence.rhythm.RhythmicBiasField(16, period)
		assert all(0.0 <= value <= 1.0 for value in field.values())


def test_period_two_alternates () -> None:

	"""A period of 2 gives full bias on even columns and half on odd ones."""

	field = cellsequence.rhythm.RhythmicBiasField(16, strong_beat_period=2)

	assert field.values() == tuple(1.0 if column % 2 == 0 else 0.5 for column in range(16))


def test_bias_symmetric_about_strong_beat () -> None:

	"""The field is symmetric around column 0."""

	field = cellsequence.rhythm.RhythmicBiasField(16)

	for column in range(1, 8):
		assert field(column) == pytest.approx(field(-column))


def test_rhythmic_bias_formula () -> None:

	"""The free function follows the two-cosine formula."""

	x = 2.0 * 3 / 8
	expected = (math.cos(math.pi * x) + 1) / 4 + (math.cos(2 * math.pi * x) + 1) / 4

	assert cellsequence.rhythm.rhythmic_bias(3, strong_beat_period=8) == pytest.approx(expected)


def test_period_must_divide_columns () -> None:

	"""A period that does not fit the measure is rejected."""

	with pytest.raises(ValueError):
		cellsequence.rhythm.RhythmicBiasField(16, strong_beat_period=3)

	with pytest.raises(ValueError):
		cellsequence.rhythm.RhythmicBiasField(16, strong_beat_period=0)
