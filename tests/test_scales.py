from __future__ import annotations

import numpy as np
import pytest

from activity_stats.errors import ComputeError, ConfigError
from activity_stats.primitives.scales import ContinuousScale, ScaleKind


def test_linear_scale_maps_and_inverts() -> None:
    scale = ContinuousScale.build(ScaleKind.LINEAR, (0.0, 100.0), (470.0, 80.0))

    np.testing.assert_allclose(scale([0.0, 50.0, 100.0]), [470.0, 275.0, 80.0])
    np.testing.assert_allclose(scale.invert([470.0, 275.0]), [0.0, 50.0])


def test_log_thresholds_are_even_in_log_space() -> None:
    scale = ContinuousScale.build(ScaleKind.LOG, (1.0, 1000.0), (0.0, 300.0))

    np.testing.assert_allclose(scale.thresholds(3), [1.0, 10.0, 100.0, 1000.0])
    np.testing.assert_allclose(scale([10.0, 100.0]), [100.0, 200.0])


def test_sqrt_scale_is_signed() -> None:
    np.testing.assert_allclose(ScaleKind.SQRT.transform([-4.0, 9.0]), [-2.0, 3.0])
    np.testing.assert_allclose(ScaleKind.SQRT.untransform([-2.0, 3.0]), [-4.0, 9.0])


def test_scale_rejects_degenerate_domains() -> None:
    with pytest.raises(ComputeError, match="empty scale domain"):
        ContinuousScale.build(ScaleKind.LINEAR, (5.0, 5.0), (0.0, 1.0))
    with pytest.raises(ComputeError, match="empty scale domain"):
        ContinuousScale.build(ScaleKind.LINEAR, (0.0, np.nan), (0.0, 1.0))
    with pytest.raises(ConfigError, match="strictly positive"):
        ContinuousScale.build(ScaleKind.LOG, (0.0, 10.0), (0.0, 1.0))
    with pytest.raises(ConfigError, match="bin count"):
        ContinuousScale.build(ScaleKind.LINEAR, (0.0, 1.0), (0.0, 1.0)).thresholds(0)
