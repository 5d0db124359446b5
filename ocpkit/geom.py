"""
ocpkit - Geometrische Primitive
===============================

Unveränderliche Werte-Typen über OCP:
- gp_* Werte (Point, Vector, Direction, Achsen, Transformation)
- Geom_* / Geom2d_* Handles (TrimmedCurve, Curve2D, Ellipse2D, Surface)

Geometrie-Handles werden nach der Konstruktion nie mutiert und deshalb bei
clone() geteilt. Einzige Ausnahme: Transformation.mirror() mutiert in-place.

Usage:
    from ocpkit.geom import Point, Direction, TrimmedCurve

    arc = TrimmedCurve.arc_of_circle(Point(-1, 0, 0), Point(0, -1, 0), Point(1, 0, 0))
    arc.start_point().is_equal(Point(-1, 0, 0))   # True
"""

import math
from enum import Enum
from typing import Tuple

from loguru import logger

from OCP.gp import (
    gp_Pnt, gp_Pnt2d, gp_Vec, gp_Dir, gp_Dir2d,
    gp_Ax1, gp_Ax2, gp_Ax2d, gp_Ax3, gp_Trsf,
)
from OCP.GC import GC_MakeArcOfCircle, GC_MakeSegment
from OCP.GCE2d import GCE2d_MakeSegment
from OCP.Geom import (
    Geom_Plane, Geom_CylindricalSurface, Geom_RectangularTrimmedSurface,
)
from OCP.Geom2d import Geom2d_Ellipse, Geom2d_TrimmedCurve

from ocpkit.config.tolerances import Tolerances
from ocpkit.errors import DegenerateGeometry, NullEntity, TypeMismatch


def _require_handle(handle, what: str):
    if handle is None:
        raise NullEntity(f"{what}: Handle referenziert keine Geometrie")
    return handle


# =============================================================================
# Punkte, Vektoren, Richtungen
# =============================================================================

class Point:
    """3D-Punkt (gp_Pnt)."""

    __slots__ = ("wrapped",)

    def __init__(self, x: float, y: float, z: float):
        self.wrapped = gp_Pnt(float(x), float(y), float(z))

    @classmethod
    def origin(cls) -> "Point":
        return cls(0.0, 0.0, 0.0)

    @classmethod
    def from_gp(cls, pnt: gp_Pnt) -> "Point":
        return cls(pnt.X(), pnt.Y(), pnt.Z())

    @property
    def x(self) -> float:
        return self.wrapped.X()

    @property
    def y(self) -> float:
        return self.wrapped.Y()

    @property
    def z(self) -> float:
        return self.wrapped.Z()

    def coordinates(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def distance(self, other: "Point") -> float:
        return self.wrapped.Distance(other.wrapped)

    def is_equal(self, other: "Point", tolerance: float = Tolerances.COMPARE_POINT) -> bool:
        return self.wrapped.IsEqual(other.wrapped, tolerance)

    def axis_with(self, direction: "Direction") -> "Axis":
        return Axis(self, direction)

    def plane_axis_with(self, direction: "Direction") -> "PlaneAxis":
        return PlaneAxis(self, direction)

    def transform(self, transformation: "Transformation") -> "Point":
        return Point.from_gp(self.wrapped.Transformed(transformation.wrapped))

    def clone(self) -> "Point":
        return Point(*self.coordinates())

    def __repr__(self):
        return f"Point({self.x:g}, {self.y:g}, {self.z:g})"


class Point2D:
    """2D-Punkt im Parameterraum einer Fläche (gp_Pnt2d)."""

    __slots__ = ("wrapped",)

    def __init__(self, x: float, y: float):
        self.wrapped = gp_Pnt2d(float(x), float(y))

    @classmethod
    def origin(cls) -> "Point2D":
        return cls(0.0, 0.0)

    @classmethod
    def from_gp(cls, pnt: gp_Pnt2d) -> "Point2D":
        return cls(pnt.X(), pnt.Y())

    @property
    def x(self) -> float:
        return self.wrapped.X()

    @property
    def y(self) -> float:
        return self.wrapped.Y()

    def coordinates(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def distance(self, other: "Point2D") -> float:
        return self.wrapped.Distance(other.wrapped)

    def axis2d_with(self, direction: "Direction2D") -> "Axis2D":
        return Axis2D(self, direction)

    def clone(self) -> "Point2D":
        return Point2D(*self.coordinates())

    def __repr__(self):
        return f"Point2D({self.x:g}, {self.y:g})"


class Vector:
    """3D-Vektor (gp_Vec)."""

    __slots__ = ("wrapped",)

    def __init__(self, x: float, y: float, z: float):
        self.wrapped = gp_Vec(float(x), float(y), float(z))

    @property
    def x(self) -> float:
        return self.wrapped.X()

    @property
    def y(self) -> float:
        return self.wrapped.Y()

    @property
    def z(self) -> float:
        return self.wrapped.Z()

    def components(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def magnitude(self) -> float:
        return self.wrapped.Magnitude()

    def is_zero(self) -> bool:
        return self.magnitude() <= Tolerances.EPSILON_MATH

    def clone(self) -> "Vector":
        return Vector(*self.components())

    def __repr__(self):
        return f"Vector({self.x:g}, {self.y:g}, {self.z:g})"


class Direction:
    """
    Normierte 3D-Richtung (gp_Dir).

    gp_Dir wirft bei Null-Länge eine Standard_ConstructionError; wir prüfen
    vorher und melden DegenerateGeometry.
    """

    __slots__ = ("wrapped",)

    def __init__(self, x: float, y: float, z: float):
        if math.sqrt(x * x + y * y + z * z) <= Tolerances.EPSILON_MATH:
            raise DegenerateGeometry(
                f"Richtung ({x}, {y}, {z}) hat Länge 0",
                context={"components": (x, y, z)},
            )
        self.wrapped = gp_Dir(float(x), float(y), float(z))

    @classmethod
    def x(cls) -> "Direction":
        return cls(1.0, 0.0, 0.0)

    @classmethod
    def y(cls) -> "Direction":
        return cls(0.0, 1.0, 0.0)

    @classmethod
    def z(cls) -> "Direction":
        return cls(0.0, 0.0, 1.0)

    @classmethod
    def from_gp(cls, direction: gp_Dir) -> "Direction":
        return cls(direction.X(), direction.Y(), direction.Z())

    def components(self) -> Tuple[float, float, float]:
        return (self.wrapped.X(), self.wrapped.Y(), self.wrapped.Z())

    def clone(self) -> "Direction":
        return Direction(*self.components())

    def __repr__(self):
        return "Direction({:g}, {:g}, {:g})".format(*self.components())


class Direction2D:
    """Normierte 2D-Richtung (gp_Dir2d)."""

    __slots__ = ("wrapped",)

    def __init__(self, x: float, y: float):
        if math.hypot(x, y) <= Tolerances.EPSILON_MATH:
            raise DegenerateGeometry(f"2D-Richtung ({x}, {y}) hat Länge 0")
        self.wrapped = gp_Dir2d(float(x), float(y))

    @classmethod
    def x(cls) -> "Direction2D":
        return cls(1.0, 0.0)

    @classmethod
    def y(cls) -> "Direction2D":
        return cls(0.0, 1.0)

    def components(self) -> Tuple[float, float]:
        return (self.wrapped.X(), self.wrapped.Y())

    def clone(self) -> "Direction2D":
        return Direction2D(*self.components())

    def __repr__(self):
        return "Direction2D({:g}, {:g})".format(*self.components())


# =============================================================================
# Achsen
# =============================================================================

class _AxisBase:
    """Gemeinsame Accessoren für gp_Ax1 / gp_Ax2 / gp_Ax3."""

    __slots__ = ("wrapped",)
    _gp_type = None

    def __init__(self, location: Point, direction: Direction):
        self.wrapped = self._gp_type(location.wrapped, direction.wrapped)

    def location(self) -> Point:
        return Point.from_gp(self.wrapped.Location())

    def direction(self) -> Direction:
        return Direction.from_gp(self.wrapped.Direction())

    def clone(self):
        return type(self)(self.location(), self.direction())

    def __repr__(self):
        return f"{type(self).__name__}({self.location()!r}, {self.direction()!r})"


class Axis(_AxisBase):
    """Achse im Raum: Ursprung + Richtung (gp_Ax1). Spiegelachse für Transformation.mirror()."""
    _gp_type = gp_Ax1


class PlaneAxis(_AxisBase):
    """Rechtshändiges Koordinatensystem (gp_Ax2), z.B. für Zylinder."""
    _gp_type = gp_Ax2


class SpaceAxis(_AxisBase):
    """Koordinatensystem mit freier Händigkeit (gp_Ax3), Träger für Flächen."""
    _gp_type = gp_Ax3

    @classmethod
    def from_plane_axis(cls, plane_axis: PlaneAxis) -> "SpaceAxis":
        return cls(plane_axis.location(), plane_axis.direction())


class Axis2D:
    """2D-Achse im Parameterraum (gp_Ax2d)."""

    __slots__ = ("wrapped",)

    def __init__(self, location: Point2D, direction: Direction2D):
        self.wrapped = gp_Ax2d(location.wrapped, direction.wrapped)

    def location(self) -> Point2D:
        return Point2D.from_gp(self.wrapped.Location())

    def direction(self) -> Direction2D:
        d = self.wrapped.Direction()
        return Direction2D(d.X(), d.Y())

    def clone(self) -> "Axis2D":
        return Axis2D(self.location(), self.direction())

    def __repr__(self):
        return f"Axis2D({self.location()!r}, {self.direction()!r})"


# =============================================================================
# Kurven
# =============================================================================

def _is_collinear(p1: Point, p2: Point, p3: Point) -> bool:
    v1 = gp_Vec(p1.wrapped, p2.wrapped)
    v2 = gp_Vec(p1.wrapped, p3.wrapped)
    # Fläche des aufgespannten Parallelogramms relativ zur Punktspanne
    scale = max(v1.Magnitude(), v2.Magnitude(), 1.0)
    return v1.Crossed(v2).Magnitude() <= Tolerances.KERNEL_PRECISION * scale


class TrimmedCurve:
    """Begrenzte 3D-Kurve (Geom_TrimmedCurve)."""

    __slots__ = ("wrapped",)

    def __init__(self, handle):
        self.wrapped = _require_handle(handle, "TrimmedCurve")

    @classmethod
    def arc_of_circle(cls, p1: Point, p2: Point, p3: Point) -> "TrimmedCurve":
        """
        Kreisbogen durch drei Punkte, von p1 über p2 nach p3.

        Raises:
            DegenerateGeometry: Punkte fallen zusammen oder sind kollinear
        """
        tol = Tolerances.COMPARE_POINT
        if p1.is_equal(p2, tol) or p2.is_equal(p3, tol) or p1.is_equal(p3, tol):
            raise DegenerateGeometry(
                f"Kreisbogen: zusammenfallende Punkte {p1!r}, {p2!r}, {p3!r}"
            )
        if _is_collinear(p1, p2, p3):
            raise DegenerateGeometry(
                f"Kreisbogen: kollineare Punkte {p1!r}, {p2!r}, {p3!r}"
            )

        maker = GC_MakeArcOfCircle(p1.wrapped, p2.wrapped, p3.wrapped)
        if not maker.IsDone():
            raise DegenerateGeometry(f"GC_MakeArcOfCircle fehlgeschlagen (Status {maker.Status()})")
        return cls(maker.Value())

    @classmethod
    def line(cls, p1: Point, p2: Point) -> "TrimmedCurve":
        """Strecke von p1 nach p2; DegenerateGeometry bei zusammenfallenden Punkten."""
        if p1.is_equal(p2, Tolerances.COMPARE_POINT):
            raise DegenerateGeometry(f"Strecke: zusammenfallende Punkte {p1!r}")

        maker = GC_MakeSegment(p1.wrapped, p2.wrapped)
        if not maker.IsDone():
            raise DegenerateGeometry(f"GC_MakeSegment fehlgeschlagen (Status {maker.Status()})")
        return cls(maker.Value())

    # Alias, wie im OCCT-Sprachgebrauch
    segment = line

    def start_point(self) -> Point:
        return Point.from_gp(self.wrapped.StartPoint())

    def end_point(self) -> Point:
        return Point.from_gp(self.wrapped.EndPoint())

    def value(self, u: float) -> Point:
        return Point.from_gp(self.wrapped.Value(u))

    def first_parameter(self) -> float:
        return self.wrapped.FirstParameter()

    def last_parameter(self) -> float:
        return self.wrapped.LastParameter()

    def clone(self) -> "TrimmedCurve":
        return TrimmedCurve(self.wrapped)

    def __repr__(self):
        return f"TrimmedCurve({self.start_point()!r} -> {self.end_point()!r})"


class Curve2D:
    """Beliebige 2D-Kurve im Parameterraum (Geom2d_Curve)."""

    __slots__ = ("wrapped",)

    def __init__(self, handle):
        self.wrapped = _require_handle(handle, "Curve2D")

    @classmethod
    def from_trimmed(cls, trimmed: "TrimmedCurve2D") -> "Curve2D":
        return cls(trimmed.wrapped)

    def trim(self, u1: float, u2: float) -> "TrimmedCurve2D":
        """Beschränkt die Kurve auf [u1, u2]."""
        if abs(u2 - u1) <= Tolerances.EPSILON_MATH:
            raise DegenerateGeometry(f"Curve2D.trim: leeres Intervall [{u1}, {u2}]")
        return TrimmedCurve2D(Geom2d_TrimmedCurve(self.wrapped, u1, u2))

    def value(self, u: float) -> Point2D:
        return Point2D.from_gp(self.wrapped.Value(u))

    def first_parameter(self) -> float:
        return self.wrapped.FirstParameter()

    def last_parameter(self) -> float:
        return self.wrapped.LastParameter()

    def clone(self):
        return type(self)(self.wrapped)

    def __repr__(self):
        return f"{type(self).__name__}([{self.first_parameter():g}, {self.last_parameter():g}])"


class TrimmedCurve2D(Curve2D):
    """Begrenzte 2D-Kurve (Geom2d_TrimmedCurve)."""

    __slots__ = ()

    @classmethod
    def line(cls, p1: Point2D, p2: Point2D) -> "TrimmedCurve2D":
        if p1.distance(p2) <= Tolerances.COMPARE_POINT:
            raise DegenerateGeometry(f"2D-Strecke: zusammenfallende Punkte {p1!r}")

        maker = GCE2d_MakeSegment(p1.wrapped, p2.wrapped)
        if not maker.IsDone():
            raise DegenerateGeometry(f"GCE2d_MakeSegment fehlgeschlagen (Status {maker.Status()})")
        return cls(maker.Value())

    segment = line

    def start_point(self) -> Point2D:
        return Point2D.from_gp(self.wrapped.StartPoint())

    def end_point(self) -> Point2D:
        return Point2D.from_gp(self.wrapped.EndPoint())


class Ellipse2D:
    """
    Ellipse im Parameterraum (Geom2d_Ellipse).

    Die Kurve ist periodisch; value(u) wertet ohne Bereichs-Einschränkung aus.
    """

    __slots__ = ("wrapped",)

    def __init__(self, axis: Axis2D, major_radius: float, minor_radius: float):
        if minor_radius <= 0 or major_radius <= 0:
            raise DegenerateGeometry(
                f"Ellipse2D: Radien müssen positiv sein (major={major_radius}, minor={minor_radius})"
            )
        if major_radius < minor_radius:
            raise DegenerateGeometry(
                f"Ellipse2D: major_radius ({major_radius}) < minor_radius ({minor_radius})"
            )
        self.wrapped = Geom2d_Ellipse(axis.wrapped, float(major_radius), float(minor_radius))

    def major_radius(self) -> float:
        return self.wrapped.MajorRadius()

    def minor_radius(self) -> float:
        return self.wrapped.MinorRadius()

    def value(self, u: float) -> Point2D:
        return Point2D.from_gp(self.wrapped.Value(u))

    def first_parameter(self) -> float:
        return self.wrapped.FirstParameter()

    def last_parameter(self) -> float:
        return self.wrapped.LastParameter()

    def curve(self) -> Curve2D:
        return Curve2D(self.wrapped)

    def trim(self, u1: float, u2: float) -> TrimmedCurve2D:
        return self.curve().trim(u1, u2)

    def clone(self) -> "Ellipse2D":
        twin = Ellipse2D.__new__(Ellipse2D)
        twin.wrapped = self.wrapped
        return twin

    def __repr__(self):
        return f"Ellipse2D(major={self.major_radius():g}, minor={self.minor_radius():g})"


# =============================================================================
# Flächen
# =============================================================================

class SurfaceKind(Enum):
    """Geschlossene Menge der unterschiedenen Flächen-Varianten."""
    PLANE = "plane"
    CYLINDRICAL = "cylindrical"
    OTHER = "other"


def _basis_surface(handle):
    # Getrimmte Flächen auf ihre Trägerfläche zurückführen
    while isinstance(handle, Geom_RectangularTrimmedSurface):
        handle = handle.BasisSurface()
    return handle


class Surface:
    """
    Parametrische Fläche (Geom_Surface) als Tagged Union.

    Pattern-Matching über narrow():

        match face.surface().narrow():
            case Plane() as plane: ...
            case CylindricalSurface() as cyl: ...
            case _: ...
    """

    __slots__ = ("wrapped",)

    def __init__(self, handle):
        self.wrapped = _require_handle(handle, "Surface")

    @classmethod
    def from_cylindrical(cls, surface: "CylindricalSurface") -> "Surface":
        return cls(surface.wrapped)

    @property
    def kind(self) -> SurfaceKind:
        basis = _basis_surface(self.wrapped)
        if isinstance(basis, Geom_Plane):
            return SurfaceKind.PLANE
        if isinstance(basis, Geom_CylindricalSurface):
            return SurfaceKind.CYLINDRICAL
        return SurfaceKind.OTHER

    def is_plane(self) -> bool:
        return self.kind is SurfaceKind.PLANE

    def is_cylindrical(self) -> bool:
        return self.kind is SurfaceKind.CYLINDRICAL

    def as_plane(self) -> "Plane":
        """Narrowing auf Plane; teilt das Kernel-Handle der Quelle."""
        if not self.is_plane():
            raise TypeMismatch(f"as_plane() auf Fläche vom Typ {self.kind.value}")
        return Plane(_basis_surface(self.wrapped))

    def as_cylindrical(self) -> "CylindricalSurface":
        if not self.is_cylindrical():
            raise TypeMismatch(f"as_cylindrical() auf Fläche vom Typ {self.kind.value}")
        return CylindricalSurface.from_handle(_basis_surface(self.wrapped))

    def narrow(self) -> "Surface":
        kind = self.kind
        if kind is SurfaceKind.PLANE:
            return self.as_plane()
        if kind is SurfaceKind.CYLINDRICAL:
            return self.as_cylindrical()
        return self

    def clone(self):
        return type(self)(self.wrapped)

    def __repr__(self):
        return f"Surface(kind={self.kind.value})"


class Plane(Surface):
    """Ebene (Geom_Plane)."""

    __slots__ = ()

    def location(self) -> Point:
        return Point.from_gp(self.wrapped.Location())

    def normal(self) -> Direction:
        return Direction.from_gp(self.wrapped.Position().Direction())

    def __repr__(self):
        return f"Plane({self.location()!r}, {self.normal()!r})"


class CylindricalSurface(Surface):
    """Zylinderfläche (Geom_CylindricalSurface)."""

    __slots__ = ()

    def __init__(self, axis: PlaneAxis, radius: float):
        if radius <= 0:
            raise DegenerateGeometry(f"CylindricalSurface: Radius muss positiv sein ({radius})")
        super().__init__(Geom_CylindricalSurface(gp_Ax3(axis.wrapped), float(radius)))

    @classmethod
    def from_handle(cls, handle) -> "CylindricalSurface":
        surface = cls.__new__(cls)
        Surface.__init__(surface, handle)
        return surface

    def radius(self) -> float:
        return self.wrapped.Radius()

    def axis(self) -> Axis:
        ax1 = self.wrapped.Axis()
        return Axis(Point.from_gp(ax1.Location()), Direction.from_gp(ax1.Direction()))

    def clone(self) -> "CylindricalSurface":
        return CylindricalSurface.from_handle(self.wrapped)

    def __repr__(self):
        return f"CylindricalSurface(radius={self.radius():g})"


# =============================================================================
# Transformation
# =============================================================================

class Transformation:
    """
    Starre Transformation (gp_Trsf), initial die Identität.

    mirror() ist die einzige mutierende Operation aller Primitive.
    """

    __slots__ = ("wrapped",)

    def __init__(self):
        self.wrapped = gp_Trsf()

    @classmethod
    def mirrored(cls, axis: Axis) -> "Transformation":
        return cls().mirror(axis)

    def mirror(self, axis: Axis) -> "Transformation":
        """Setzt die Transformation in-place auf die Spiegelung an ``axis``."""
        self.wrapped.SetMirror(axis.wrapped)
        logger.debug(f"Transformation: Spiegelung an {axis!r}")
        return self

    def apply(self, obj):
        """Wendet die Transformation nicht-mutierend auf ``obj`` an (obj.transform(t))."""
        transform = getattr(obj, "transform", None)
        if transform is None:
            raise TypeMismatch(f"{type(obj).__name__} unterstützt keine Transformation")
        return transform(self)

    def clone(self) -> "Transformation":
        twin = Transformation()
        twin.wrapped = self.wrapped.Multiplied(gp_Trsf())
        return twin

    def __repr__(self):
        return f"Transformation(form={self.wrapped.Form()})"
