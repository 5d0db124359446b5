"""
ocpkit - Tessellator
====================

Shape -> Mesh mittels BRepMesh_IncrementalMesh.

Die Triangulierung darf im Kernel parallel laufen (Feature-Flag
"parallel_meshing"); das Zusammensetzen ist seriell in Face-Reihenfolge:
jedes Dreieck bekommt 3 eigene Vertices (keine Deduplizierung), Koordinaten
im globalen System, Windung bei REVERSED Faces umgedreht.
"""

from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import numpy as np
from loguru import logger

from OCP.BRep import BRep_Tool
from OCP.BRepMesh import BRepMesh_IncrementalMesh
from OCP.TopAbs import TopAbs_REVERSED
from OCP.TopLoc import TopLoc_Location

from ocpkit.config.feature_flags import is_enabled
from ocpkit.config.tolerances import Tolerances
from ocpkit.errors import DegenerateGeometry
from ocpkit.geom import Point
from ocpkit.iterators import FaceIterator


@dataclass(frozen=True)
class Mesh:
    """
    Unveränderlicher Mesh-Snapshot.

    indices: flache Folge, je 3 Indizes bilden ein Dreieck
    vertices: Punkte im globalen Koordinatensystem
    """
    indices: Tuple[int, ...]
    vertices: Tuple[Point, ...]

    @property
    def triangle_count(self) -> int:
        return len(self.indices) // 3

    @property
    def is_empty(self) -> bool:
        return not self.indices

    def triangles(self) -> Iterator[Tuple[Point, Point, Point]]:
        idx, verts = self.indices, self.vertices
        for i in range(0, len(idx), 3):
            yield verts[idx[i]], verts[idx[i + 1]], verts[idx[i + 2]]

    def to_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """(points [N, 3] float64, triangles [M, 3] int32) für Renderer/Exporter."""
        points = np.array([v.coordinates() for v in self.vertices], dtype=np.float64).reshape(-1, 3)
        triangles = np.array(self.indices, dtype=np.int32).reshape(-1, 3)
        return points, triangles

    def to_polydata(self):
        """PyVista PolyData (Faces im VTK-Format: [3, i, j, k, ...])."""
        import pyvista as pv

        points, triangles = self.to_arrays()
        padding = np.full((triangles.shape[0], 1), 3, dtype=np.int32)
        faces_combined = np.hstack((padding, triangles)).flatten()
        return pv.PolyData(points, faces_combined)

    def __repr__(self):
        return f"Mesh(triangles={self.triangle_count}, vertices={len(self.vertices)})"


class Tessellator:
    """Deflection-begrenzte Triangulierung eines Shapes."""

    @staticmethod
    def mesh(shape, linear_deflection: Optional[float] = None,
             angular_deflection: Optional[float] = None) -> Mesh:
        """
        Trianguliert alle Faces von ``shape``.

        Args:
            linear_deflection: Chord Height (Default: Tolerances.TESSELLATION_QUALITY)
            angular_deflection: Winkel in Radians (Default: Tolerances.TESSELLATION_ANGULAR)
        """
        shape = shape.as_shape()
        shape._require()

        if linear_deflection is None:
            linear_deflection = Tolerances.TESSELLATION_QUALITY
        if angular_deflection is None:
            angular_deflection = Tolerances.TESSELLATION_ANGULAR
        if linear_deflection <= 0 or angular_deflection <= 0:
            raise DegenerateGeometry(
                f"Deflection muss positiv sein (linear={linear_deflection}, angular={angular_deflection})"
            )

        # 1. Triangulierung im Kernel (ggf. parallel über Faces)
        BRepMesh_IncrementalMesh(
            shape.wrapped, linear_deflection, False, angular_deflection,
            is_enabled("parallel_meshing")
        )

        # 2. Serielles Zusammensetzen in Face-Reihenfolge
        indices = []
        vertices = []
        face_count = 0

        for face in FaceIterator(shape):
            face_count += 1
            loc = TopLoc_Location()
            triangulation = BRep_Tool.Triangulation_s(face.wrapped, loc)
            if triangulation is None:
                logger.debug(f"Face {face_count - 1} hat keine Triangulierung")
                continue

            transform = loc.Transformation()
            reversed_face = face.wrapped.Orientation() == TopAbs_REVERSED

            for i in range(1, triangulation.NbTriangles() + 1):
                n1, n2, n3 = triangulation.Triangle(i).Get()
                if reversed_face:
                    n2, n3 = n3, n2
                for node in (n1, n2, n3):
                    p = triangulation.Node(node)
                    if not loc.IsIdentity():
                        p = p.Transformed(transform)
                    indices.append(len(vertices))
                    vertices.append(Point(p.X(), p.Y(), p.Z()))

        mesh = Mesh(indices=tuple(indices), vertices=tuple(vertices))
        logger.info(f"Tessellated: {mesh.triangle_count} triangles, {face_count} faces")
        return mesh
