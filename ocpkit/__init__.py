"""
ocpkit - B-Rep Modeling Facade over OpenCASCADE (OCP)
=====================================================

Primitive -> Topologie -> Builder -> Shape -> Boolean -> Iteratoren -> Mesh.

    from ocpkit import Point, Direction, Shape

    cyl = Shape.cylinder(Point.origin().plane_axis_with(Direction.z()), 1.0, 2.0)
    cyl.mass()          # ~6.283185
    cyl.mesh().indices  # Vielfaches von 3
"""

from ocpkit.config.version import VERSION as __version__

from .errors import (
    KernelError, ErrorCategory, NullEntity, DegenerateGeometry,
    InvalidParametrization, TypeMismatch, NonPlanarOrSelfIntersecting,
    DisconnectedWire, FilletFailure, ShellFailure, LoftFailure,
    BooleanOpFailure, IteratorExhausted, BuilderConsumed,
)
from .result_types import OperationResult, ResultStatus, BooleanResult
from .geom import (
    Point, Point2D, Vector, Direction, Direction2D,
    Axis, Axis2D, PlaneAxis, SpaceAxis,
    TrimmedCurve, Curve2D, TrimmedCurve2D, Ellipse2D,
    SurfaceKind, Surface, Plane, CylindricalSurface, Transformation,
)
from .shape import ShapeType, Vertex, Edge, Wire, Face, Shape
from .builders import (
    BuilderState, WireBuilder, FilletBuilder, ShellBuilder, Loft, CompoundBuilder,
)
from .boolean_engine import BooleanEngine
from .iterators import EdgeIterator, FaceIterator, VertexIterator
from .tessellator import Mesh, Tessellator
from .bottle import make_bottle
