"""Mesh buffer container handed to renderers and exporters."""

from dataclasses import dataclass

import numpy as np
import trimesh


@dataclass
class MeshBuffer:
    """Triangle-list geometry: per-vertex positions and normals plus indices.

    positions : float32 (N, 3)
    normals   : float32 (N, 3)
    indices   : uint32 (M,) — every 3 consecutive entries form a triangle
    """
    positions: np.ndarray
    normals: np.ndarray
    indices: np.ndarray

    def __post_init__(self):
        self.positions = np.ascontiguousarray(self.positions, dtype=np.float32).reshape(-1, 3)
        self.normals = np.ascontiguousarray(self.normals, dtype=np.float32).reshape(-1, 3)
        self.indices = np.ascontiguousarray(self.indices, dtype=np.uint32).ravel()
        if len(self.normals) != len(self.positions):
            raise ValueError(f"{len(self.normals)} normals for "
                             f"{len(self.positions)} positions")
        if len(self.indices) % 3:
            raise ValueError(f"Index count {len(self.indices)} is not a multiple of 3")

    @property
    def vertex_count(self) -> int:
        return len(self.positions)

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def faces(self) -> np.ndarray:
        """Indices reshaped to (triangles, 3)."""
        return self.indices.reshape(-1, 3)

    def to_trimesh(self) -> trimesh.Trimesh:
        """Wrap as a trimesh without merging the duplicated soup vertices."""
        return trimesh.Trimesh(vertices=self.positions.astype(np.float64),
                               faces=self.faces.astype(np.int64),
                               vertex_normals=self.normals.astype(np.float64),
                               process=False)
