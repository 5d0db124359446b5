"""
ocpkit - Topologische Entitäten
===============================

Vertex, Edge, Wire, Face und Shape über TopoDS_*.

Jede Entität hält genau einen TopoDS-Wert. Ein TopoDS-Wert teilt sein TShape
mit Kopien, wird aber nie in-place verändert: jede Operation liefert eine
neue Entität zurück. Über as_shape() wird jede Entität zum universellen Shape.

Builder, Boolean-Engine, Iteratoren und Tessellator werden lazy importiert
(die Module importieren ihrerseits shape.py).
"""

from enum import Enum
from typing import Optional

from loguru import logger

from OCP.BRep import BRep_Tool
from OCP.BRepBuilderAPI import (
    BRepBuilderAPI_MakeEdge, BRepBuilderAPI_MakeFace,
    BRepBuilderAPI_MakeVertex, BRepBuilderAPI_Transform,
)
from OCP.BRepCheck import BRepCheck_Analyzer
from OCP.BRepGProp import BRepGProp
from OCP.BRepLib import BRepLib
from OCP.BRepPrimAPI import (
    BRepPrimAPI_MakeBox, BRepPrimAPI_MakeCylinder, BRepPrimAPI_MakePrism,
)
from OCP.GeomAdaptor import GeomAdaptor_Surface
from OCP.GProp import GProp_GProps
from OCP.TopAbs import (
    TopAbs_COMPOUND, TopAbs_COMPSOLID, TopAbs_SOLID, TopAbs_SHELL,
    TopAbs_FACE, TopAbs_WIRE, TopAbs_EDGE, TopAbs_VERTEX,
)
from OCP.TopExp import TopExp, TopExp_Explorer
from OCP.TopoDS import TopoDS, TopoDS_Shape

from ocpkit.config.feature_flags import is_enabled
from ocpkit.config.tolerances import Tolerances
from ocpkit.errors import (
    DegenerateGeometry, InvalidParametrization, NonPlanarOrSelfIntersecting,
    NullEntity, TypeMismatch,
)
from ocpkit.geom import Point, Surface, TrimmedCurve, Vector


class ShapeType(Enum):
    """Tag eines Shapes für host-seitiges Dispatching."""
    COMPOUND = "compound"
    COMPOUND_SOLID = "compound_solid"
    SOLID = "solid"
    SHELL = "shell"
    FACE = "face"
    WIRE = "wire"
    EDGE = "edge"
    VERTEX = "vertex"

    @property
    def topabs(self):
        return _TYPE_TO_TOPABS[self]


_TYPE_TO_TOPABS = {
    ShapeType.COMPOUND: TopAbs_COMPOUND,
    ShapeType.COMPOUND_SOLID: TopAbs_COMPSOLID,
    ShapeType.SOLID: TopAbs_SOLID,
    ShapeType.SHELL: TopAbs_SHELL,
    ShapeType.FACE: TopAbs_FACE,
    ShapeType.WIRE: TopAbs_WIRE,
    ShapeType.EDGE: TopAbs_EDGE,
    ShapeType.VERTEX: TopAbs_VERTEX,
}
_TOPABS_TO_TYPE = {v: k for k, v in _TYPE_TO_TOPABS.items()}


def _contains(topods: TopoDS_Shape, topabs) -> bool:
    return TopExp_Explorer(topods, topabs).More()


def _transformed(topods: TopoDS_Shape, transformation) -> TopoDS_Shape:
    # copy=True: Geometrie wird kopiert, das Original bleibt unberührt
    return BRepBuilderAPI_Transform(topods, transformation.wrapped, True).Shape()


def _linear_length(topods: TopoDS_Shape) -> float:
    props = GProp_GProps()
    BRepGProp.LinearProperties_s(topods, props)
    return props.Mass()


class _TopoEntity:
    """Basis aller Entitäten mit festem TopoDS-Untertyp."""

    __slots__ = ("wrapped",)

    _topabs = None
    _downcast = None

    def __init__(self, topods):
        if topods is None or topods.IsNull():
            raise NullEntity(f"{type(self).__name__}: TopoDS-Wert ist null")
        if topods.ShapeType() != self._topabs:
            raise TypeMismatch(
                f"{type(self).__name__} erwartet {_TOPABS_TO_TYPE[self._topabs].value}, "
                f"bekam {_TOPABS_TO_TYPE[topods.ShapeType()].value}"
            )
        self.wrapped = type(self)._downcast(topods)

    def as_shape(self) -> "Shape":
        return Shape(self.wrapped)

    def clone(self):
        # Neuer TopoDS-Wert, gleiches (unveränderliches) TShape
        return type(self)(self.wrapped.Oriented(self.wrapped.Orientation()))

    def is_same(self, other) -> bool:
        return self.wrapped.IsSame(other.wrapped)

    def transform(self, transformation):
        return type(self)(_transformed(self.wrapped, transformation))

    def __repr__(self):
        return f"{type(self).__name__}()"


# =============================================================================
# Vertex
# =============================================================================

class Vertex(_TopoEntity):
    _topabs = TopAbs_VERTEX
    _downcast = staticmethod(TopoDS.Vertex_s)

    @classmethod
    def from_point(cls, point: Point) -> "Vertex":
        return cls(BRepBuilderAPI_MakeVertex(point.wrapped).Vertex())

    def point(self) -> Point:
        return Point.from_gp(BRep_Tool.Pnt_s(self.wrapped))

    @property
    def x(self) -> float:
        return self.point().x

    @property
    def y(self) -> float:
        return self.point().y

    @property
    def z(self) -> float:
        return self.point().z

    def coordinates(self):
        return self.point().coordinates()

    def __repr__(self):
        return f"Vertex{self.coordinates()}"


# =============================================================================
# Edge
# =============================================================================

def _check_pcurve_domain(curve2d, surface) -> None:
    """
    Prüft ob die Spur der 2D-Kurve im gültigen Parameterbereich der Fläche liegt.

    Periodische Richtungen sind unbeschränkt. Unendliche Kurven (z.B. eine
    ungetrimmte Gerade) können nicht abgetastet werden und gelten als ungültig.
    """
    adaptor = GeomAdaptor_Surface(surface.wrapped)
    u_first, u_last = adaptor.FirstUParameter(), adaptor.LastUParameter()
    v_first, v_last = adaptor.FirstVParameter(), adaptor.LastVParameter()
    u_periodic, v_periodic = adaptor.IsUPeriodic(), adaptor.IsVPeriodic()
    tol = Tolerances.COMPARE_POINT

    t0 = curve2d.first_parameter()
    t1 = curve2d.last_parameter()
    if abs(t0) > 1e100 or abs(t1) > 1e100:
        raise InvalidParametrization(
            f"2D-Kurve ist unbeschränkt ([{t0:g}, {t1:g}]) und kann nicht auf eine Fläche gelegt werden"
        )

    samples = Tolerances.PCURVE_SAMPLES
    for i in range(samples + 1):
        t = t0 + (t1 - t0) * i / samples
        uv = curve2d.wrapped.Value(t)
        u, v = uv.X(), uv.Y()
        if not u_periodic and not (u_first - tol <= u <= u_last + tol):
            raise InvalidParametrization(
                f"2D-Kurve verlässt den U-Bereich [{u_first:g}, {u_last:g}] bei t={t:g} (u={u:g})",
                context={"t": t, "u": u, "v": v},
            )
        if not v_periodic and not (v_first - tol <= v <= v_last + tol):
            raise InvalidParametrization(
                f"2D-Kurve verlässt den V-Bereich [{v_first:g}, {v_last:g}] bei t={t:g} (v={v:g})",
                context={"t": t, "u": u, "v": v},
            )


class Edge(_TopoEntity):
    """Kante: begrenzte Kurve, optional mit 2D-Spur auf einer Fläche."""

    _topabs = TopAbs_EDGE
    _downcast = staticmethod(TopoDS.Edge_s)

    @classmethod
    def from_curve(cls, curve) -> "Edge":
        """
        Kante aus einer begrenzten 3D-Kurve (TrimmedCurve).

        Raises:
            DegenerateGeometry: Kurve kollabiert auf einen Punkt
        """
        maker = BRepBuilderAPI_MakeEdge(curve.wrapped)
        if not maker.IsDone():
            raise DegenerateGeometry(f"BRepBuilderAPI_MakeEdge fehlgeschlagen (Error {maker.Error()})")

        edge = cls(maker.Edge())
        if edge.length() <= Tolerances.COMPARE_LENGTH:
            raise DegenerateGeometry("Kante hat Länge 0", context={"length": edge.length()})
        return edge

    @classmethod
    def line(cls, p1: Point, p2: Point) -> "Edge":
        return cls.from_curve(TrimmedCurve.line(p1, p2))

    @classmethod
    def arc_of_circle(cls, p1: Point, p2: Point, p3: Point) -> "Edge":
        return cls.from_curve(TrimmedCurve.arc_of_circle(p1, p2, p3))

    @classmethod
    def from_2d_curve(cls, curve2d, surface: Surface) -> "Edge":
        """
        Kante aus einer 2D-Kurve im Parameterraum von ``surface``.

        Die 3D-Kurve wird sofort aufgebaut; die Kante ist direkt für Wires,
        Faces und Lofts verwendbar.

        Raises:
            InvalidParametrization: Kurve liegt nicht im gültigen Bereich der Fläche
        """
        _check_pcurve_domain(curve2d, surface)

        try:
            maker = BRepBuilderAPI_MakeEdge(curve2d.wrapped, surface.wrapped)
        except Exception as e:
            logger.error(f"MakeEdge(2D-Kurve, Fläche) Exception: {e}")
            raise InvalidParametrization(f"Kante auf Fläche nicht erzeugbar: {e}") from e

        if not maker.IsDone():
            raise InvalidParametrization(
                f"Kante auf Fläche nicht erzeugbar (Error {maker.Error()})"
            )

        edge_shape = maker.Edge()
        if not BRepLib.BuildCurves3d_s(edge_shape):
            raise InvalidParametrization("3D-Kurve der Kante konnte nicht berechnet werden")

        if is_enabled("kernel_debug_logging"):
            logger.debug(f"Edge.from_2d_curve: {curve2d!r} auf {surface!r}")
        return cls(edge_shape)

    def start_point(self) -> Point:
        return Point.from_gp(BRep_Tool.Pnt_s(TopExp.FirstVertex_s(self.wrapped, True)))

    def end_point(self) -> Point:
        return Point.from_gp(BRep_Tool.Pnt_s(TopExp.LastVertex_s(self.wrapped, True)))

    def length(self) -> float:
        return _linear_length(self.wrapped)

    def __repr__(self):
        return f"Edge({self.start_point()!r} -> {self.end_point()!r})"


# =============================================================================
# Wire
# =============================================================================

class Wire(_TopoEntity):
    """
    Geordnete, zusammenhängende Kantenkette.

    Wird ausschließlich über WireBuilder erzeugt (Wire.create / Wire.new).
    3D-Kurven aller Kanten sind beim Bau bereits vorhanden.
    """

    _topabs = TopAbs_WIRE
    _downcast = staticmethod(TopoDS.Wire_s)

    @classmethod
    def create(cls, builder) -> "Wire":
        """Verbraucht ``builder`` und liefert den fertigen Wire."""
        return builder.build()

    @classmethod
    def new(cls, fragments) -> "Wire":
        from ocpkit.builders import WireBuilder
        return WireBuilder().add_all(fragments).build()

    def is_closed(self) -> bool:
        return BRep_Tool.IsClosed_s(self.wrapped)

    def edges(self):
        from ocpkit.iterators import EdgeIterator
        return EdgeIterator(self.as_shape())

    def length(self) -> float:
        return _linear_length(self.wrapped)

    def build_curves_3d(self) -> "Wire":
        """
        Baut fehlende 3D-Kurven auf und liefert einen äquivalenten Wire.

        Kanten aus Edge.from_2d_curve tragen ihre 3D-Kurve bereits; der
        Aufruf ist daher idempotent und für bestehenden Code erhalten.
        """
        twin = self.clone()
        BRepLib.BuildCurves3d_s(twin.wrapped)
        return twin

    def face(self) -> "Face":
        """
        Planare Face mit diesem Wire als Rand.

        Raises:
            NonPlanarOrSelfIntersecting: Wire offen, nicht eben oder selbstschneidend
        """
        if not self.is_closed():
            raise NonPlanarOrSelfIntersecting("Wire ist nicht geschlossen")

        maker = BRepBuilderAPI_MakeFace(self.wrapped, True)  # OnlyPlane
        if not maker.IsDone():
            raise NonPlanarOrSelfIntersecting(
                f"Wire begrenzt keine ebene Fläche (Error {maker.Error()})"
            )

        face = Face(maker.Face())
        if not BRepCheck_Analyzer(face.wrapped).IsValid():
            raise NonPlanarOrSelfIntersecting("Face ungültig, Wire ist vermutlich selbstschneidend")
        return face

    def __repr__(self):
        return f"Wire(closed={self.is_closed()})"


# =============================================================================
# Face
# =============================================================================

class Face(_TopoEntity):
    _topabs = TopAbs_FACE
    _downcast = staticmethod(TopoDS.Face_s)

    def surface(self) -> Surface:
        """Trägerfläche (im globalen Koordinatensystem)."""
        return Surface(BRep_Tool.Surface_s(self.wrapped))

    def area(self) -> float:
        props = GProp_GProps()
        BRepGProp.SurfaceProperties_s(self.wrapped, props)
        return props.Mass()

    def outer_wire(self) -> Wire:
        from OCP.BRepTools import BRepTools
        return Wire(BRepTools.OuterWire_s(self.wrapped))

    def extrude(self, vector: Vector) -> "Shape":
        """
        Verschiebt die Face entlang ``vector`` zu einem Solid (BRepPrimAPI_MakePrism).

        Raises:
            DegenerateGeometry: Null-Vektor
        """
        if vector.is_zero():
            raise DegenerateGeometry("Extrusion mit Null-Vektor")

        prism = BRepPrimAPI_MakePrism(self.wrapped, vector.wrapped)
        prism.Build()
        if not prism.IsDone():
            raise DegenerateGeometry("BRepPrimAPI_MakePrism fehlgeschlagen")
        return Shape(prism.Shape())

    def __repr__(self):
        return f"Face({self.surface().kind.value}, area={self.area():.4g})"


# =============================================================================
# Shape
# =============================================================================

class Shape:
    """
    Universeller Container für alle Entitäten, getaggt mit ShapeType.

    Ein Shape kann null sein (``Shape()``); alle Operationen außer is_null()
    schlagen dann mit NullEntity fehl.
    """

    __slots__ = ("wrapped",)

    def __init__(self, topods: Optional[TopoDS_Shape] = None):
        self.wrapped = topods if topods is not None else TopoDS_Shape()

    # --- Factories ---

    @classmethod
    def wrap(cls, topods: TopoDS_Shape) -> "Shape":
        """Strikte Factory: lehnt null-Werte ab."""
        if topods is None or topods.IsNull():
            raise NullEntity("Shape.wrap: TopoDS-Wert ist null")
        return cls(topods)

    @classmethod
    def cylinder(cls, axis, radius: float, height: float) -> "Shape":
        """Zylinder-Solid entlang ``axis`` (PlaneAxis)."""
        if radius <= 0 or height <= 0:
            raise DegenerateGeometry(
                f"Zylinder: Radius und Höhe müssen positiv sein (r={radius}, h={height})"
            )
        return cls(BRepPrimAPI_MakeCylinder(axis.wrapped, float(radius), float(height)).Shape())

    @classmethod
    def box(cls, dx: float, dy: float, dz: float) -> "Shape":
        """Quader mit Ecke im Ursprung."""
        if min(dx, dy, dz) <= 0:
            raise DegenerateGeometry(f"Box: Kantenlängen müssen positiv sein ({dx}, {dy}, {dz})")
        return cls(BRepPrimAPI_MakeBox(float(dx), float(dy), float(dz)).Shape())

    @classmethod
    def from_build123d(cls, obj) -> "Shape":
        """Übernimmt ein Build123d-Objekt (Solid, Part, Face, ...)."""
        return cls.wrap(getattr(obj, "wrapped", None))

    def to_build123d(self):
        """Gibt das passende Build123d-Objekt zurück."""
        import build123d as bd

        self._require()
        lookup = {
            ShapeType.COMPOUND: (bd.Compound, TopoDS.Compound_s),
            ShapeType.COMPOUND_SOLID: (bd.Compound, lambda s: s),
            ShapeType.SOLID: (bd.Solid, TopoDS.Solid_s),
            ShapeType.SHELL: (bd.Shell, TopoDS.Shell_s),
            ShapeType.FACE: (bd.Face, TopoDS.Face_s),
            ShapeType.WIRE: (bd.Wire, TopoDS.Wire_s),
            ShapeType.EDGE: (bd.Edge, TopoDS.Edge_s),
            ShapeType.VERTEX: (bd.Vertex, TopoDS.Vertex_s),
        }
        wrapper, downcast = lookup[self.shape_type()]
        return wrapper(downcast(self.wrapped))

    # --- Basics ---

    def _require(self) -> None:
        if self.wrapped.IsNull():
            raise NullEntity("Operation auf null-Shape")

    def is_null(self) -> bool:
        return self.wrapped.IsNull()

    def shape_type(self) -> ShapeType:
        self._require()
        return _TOPABS_TO_TYPE[self.wrapped.ShapeType()]

    def as_shape(self) -> "Shape":
        return self

    def clone(self) -> "Shape":
        self._require()
        return Shape(self.wrapped.Oriented(self.wrapped.Orientation()))

    def is_same(self, other) -> bool:
        return self.wrapped.IsSame(other.wrapped)

    def is_valid(self) -> bool:
        self._require()
        return BRepCheck_Analyzer(self.wrapped).IsValid()

    def is_closed(self) -> bool:
        """
        Geschlossenheit je nach Dimension:
        - Solid/Compound: alle enthaltenen Shells geschlossen
        - Shell/Wire/Edge: BRep_Tool.IsClosed
        - Face: alle Wires geschlossen
        """
        self._require()
        st = self.shape_type()

        if st in (ShapeType.SHELL, ShapeType.WIRE, ShapeType.EDGE):
            return BRep_Tool.IsClosed_s(self.wrapped)

        if st is ShapeType.VERTEX:
            return False

        sub_type = TopAbs_WIRE if st is ShapeType.FACE else TopAbs_SHELL
        explorer = TopExp_Explorer(self.wrapped, sub_type)
        found = False
        while explorer.More():
            found = True
            if not BRep_Tool.IsClosed_s(explorer.Current()):
                return False
            explorer.Next()
        return found

    def mass(self) -> float:
        """
        Globale Eigenschaft passend zur Dimension:
        Volumen (Solids), Fläche (Faces/Shells), Länge (Edges/Wires), 0 für Vertices.
        """
        self._require()
        w = self.wrapped
        props = GProp_GProps()

        if _contains(w, TopAbs_SOLID):
            BRepGProp.VolumeProperties_s(w, props)
        elif _contains(w, TopAbs_FACE):
            BRepGProp.SurfaceProperties_s(w, props)
        elif _contains(w, TopAbs_EDGE):
            BRepGProp.LinearProperties_s(w, props)
        else:
            return 0.0
        return props.Mass()

    def transform(self, transformation) -> "Shape":
        self._require()
        return Shape(_transformed(self.wrapped, transformation))

    # --- Builders ---

    def fillet(self):
        from ocpkit.builders import FilletBuilder
        return FilletBuilder(self)

    def shell(self):
        from ocpkit.builders import ShellBuilder
        return ShellBuilder(self)

    # --- Iteration ---

    def edges(self):
        from ocpkit.iterators import EdgeIterator
        return EdgeIterator(self)

    def faces(self):
        from ocpkit.iterators import FaceIterator
        return FaceIterator(self)

    def vertices(self):
        from ocpkit.iterators import VertexIterator
        return VertexIterator(self)

    # --- Boolean Algebra ---

    def fuse(self, other) -> "Shape":
        from ocpkit.boolean_engine import BooleanEngine
        return BooleanEngine.execute(self, other.as_shape(), "fuse").unwrap()

    def subtract(self, other) -> "Shape":
        from ocpkit.boolean_engine import BooleanEngine
        return BooleanEngine.execute(self, other.as_shape(), "subtract").unwrap()

    def intersect(self, other) -> "Shape":
        from ocpkit.boolean_engine import BooleanEngine
        return BooleanEngine.execute(self, other.as_shape(), "intersect").unwrap()

    # --- Tessellation ---

    def mesh(self, linear_deflection: Optional[float] = None,
             angular_deflection: Optional[float] = None):
        from ocpkit.tessellator import Tessellator
        return Tessellator.mesh(self, linear_deflection, angular_deflection)

    def __repr__(self):
        if self.is_null():
            return "Shape(null)"
        return f"Shape({self.shape_type().value})"
