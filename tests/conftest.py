import pytest

from planetbuilder.erosion import ErosionParams
from planetbuilder.heightfield import HeightField


@pytest.fixture
def flat_field():
    """4x4 grid of bedrock 1.0, dry and still."""
    return HeightField.new(4, 4, 1.0)


@pytest.fixture
def peak_field():
    """3x3 grid with a raised, wet centre cell already flowing outwards."""
    field = HeightField.new(3, 3, 1.0)
    field.bedrock[1, 1] = 2.0
    field.water[1, 1] = 1.0
    field.outflow[:, 1, 1] = 1.0
    field.flow_speed[:, 1, 1] = 1.0
    return field


@pytest.fixture
def dry_params():
    return ErosionParams(precipitation_rate=0.0)


@pytest.fixture
def rainy_params():
    return ErosionParams(precipitation_rate=0.1)
