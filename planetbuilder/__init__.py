"""PlanetBuilder package: globe meshes and hydraulic erosion on a lat/long grid.

Import constants FIRST so .env overrides are loaded before any module reads
its defaults.
"""

from planetbuilder import constants as _constants  # noqa: F401

from planetbuilder.erosion import ErosionParams, ErosionStepper, step
from planetbuilder.errors import ConfigurationError, DegenerateVectorError
from planetbuilder.globe import build_rect_mesh
from planetbuilder.heightfield import Direction, HeightField
from planetbuilder.icosphere import build_icosphere
from planetbuilder.models import MeshBuffer
from planetbuilder.session import AppState, Session
