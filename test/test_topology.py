"""
Topologie Test Suite
====================

Vertex / Edge / Wire / Face / Shape:
- Konstruktion und Typ-Prüfung
- Kanten auf Flächen (2D-Kurve im Parameterraum)
- Masse je Dimension, Geschlossenheit
- Null-Shapes
- Build123d-Interop
"""
import math

import pytest
import build123d as bd
from OCP.BRep import BRep_Builder
from OCP.Geom2d import Geom2d_Line
from OCP.gp import gp_Dir2d, gp_Pnt2d
from OCP.TopAbs import TopAbs_SHELL
from OCP.TopExp import TopExp_Explorer
from OCP.TopoDS import TopoDS_CompSolid, TopoDS_Shape

from ocpkit.builders import CompoundBuilder
from ocpkit.errors import (
    DegenerateGeometry, InvalidParametrization, NonPlanarOrSelfIntersecting,
    NullEntity, TypeMismatch,
)
from ocpkit.geom import (
    Curve2D, CylindricalSurface, Direction, Point, Point2D, SurfaceKind,
    Transformation, TrimmedCurve2D, Vector,
)
from ocpkit.iterators import FaceIterator
from ocpkit.shape import Edge, Face, Shape, ShapeType, Vertex, Wire


# ============================================================================
# Vertex / Edge
# ============================================================================

class TestVertexAndEdge:

    def test_vertex_from_point(self):
        v = Vertex.from_point(Point(1, 2, 3))
        assert v.coordinates() == pytest.approx((1, 2, 3))
        assert v.as_shape().shape_type() is ShapeType.VERTEX

    def test_edge_line_length_and_endpoints(self):
        edge = Edge.line(Point(0, 0, 0), Point(3, 4, 0))
        assert edge.length() == pytest.approx(5.0)
        assert edge.start_point().is_equal(Point(0, 0, 0))
        assert edge.end_point().is_equal(Point(3, 4, 0))

    def test_edge_semicircle_length(self):
        edge = Edge.arc_of_circle(Point(-1, 0, 0), Point(0, 1, 0), Point(1, 0, 0))
        assert edge.length() == pytest.approx(math.pi, rel=1e-9)

    def test_edge_zero_length_fails(self):
        with pytest.raises(DegenerateGeometry):
            Edge.line(Point(0, 0, 0), Point(0, 0, 0))

    def test_wrong_topods_type(self, unit_cube):
        """Ein Solid ist keine Kante."""
        with pytest.raises(TypeMismatch):
            Edge(unit_cube.wrapped)

    def test_null_topods(self):
        with pytest.raises(NullEntity):
            Edge(TopoDS_Shape())


class TestEdgeOnSurface:
    """Kanten aus 2D-Kurven im Parameterraum einer Fläche."""

    def test_line_on_cylinder(self):
        cylinder = CylindricalSurface(Point.origin().plane_axis_with(Direction.z()), 1.0)
        seg = TrimmedCurve2D.line(Point2D(0, 0), Point2D(math.pi / 2, 1.0))
        edge = Edge.from_2d_curve(seg, cylinder)

        start, end = edge.start_point(), edge.end_point()
        assert math.hypot(start.x, start.y) == pytest.approx(1.0)
        assert start.z == pytest.approx(0.0, abs=1e-9)
        assert math.hypot(end.x, end.y) == pytest.approx(1.0)
        assert end.z == pytest.approx(1.0)
        # Schraubenlinie ist länger als der Höhenunterschied
        assert edge.length() > 1.0

    def test_curve_outside_bounded_direction(self):
        """Kugel: V ist auf [-pi/2, pi/2] beschränkt."""
        sphere = Shape.from_build123d(bd.Solid.make_sphere(1.0))
        surface = sphere.faces().first().surface()
        assert surface.kind is SurfaceKind.OTHER

        seg = TrimmedCurve2D.line(Point2D(0.0, 0.0), Point2D(0.0, 3.0))
        with pytest.raises(InvalidParametrization):
            Edge.from_2d_curve(seg, surface)

    def test_unbounded_curve_fails(self):
        cylinder = CylindricalSurface(Point.origin().plane_axis_with(Direction.z()), 1.0)
        infinite = Curve2D(Geom2d_Line(gp_Pnt2d(0.0, 0.0), gp_Dir2d(1.0, 0.0)))
        with pytest.raises(InvalidParametrization):
            Edge.from_2d_curve(infinite, cylinder)

    def test_wire_from_surface_edges_has_3d_curves(self):
        cylinder = CylindricalSurface(Point.origin().plane_axis_with(Direction.z()), 2.0)
        p0, p1, p2 = Point2D(0, 0), Point2D(1, 0), Point2D(1, 1)
        wire = Wire.new([
            Edge.from_2d_curve(TrimmedCurve2D.line(p0, p1), cylinder),
            Edge.from_2d_curve(TrimmedCurve2D.line(p1, p2), cylinder),
            Edge.from_2d_curve(TrimmedCurve2D.line(p2, p0), cylinder),
        ])
        assert wire.is_closed()
        assert wire.length() > 0
        # Nachträglicher Aufruf ist idempotent
        assert wire.build_curves_3d().length() == pytest.approx(wire.length())


# ============================================================================
# Wire / Face
# ============================================================================

class TestWireAndFace:

    def test_square_wire(self, square_wire):
        assert square_wire.is_closed()
        assert square_wire.length() == pytest.approx(8.0)
        assert len(square_wire.edges().to_list()) == 4

    def test_face_from_square(self, square_wire):
        face = square_wire.face()
        assert face.area() == pytest.approx(4.0)
        assert face.surface().is_plane()
        assert face.outer_wire().length() == pytest.approx(8.0)

    def test_open_wire_has_no_face(self):
        open_wire = Wire.new([
            Edge.line(Point(0, 0, 0), Point(1, 0, 0)),
            Edge.line(Point(1, 0, 0), Point(1, 1, 0)),
        ])
        assert not open_wire.is_closed()
        with pytest.raises(NonPlanarOrSelfIntersecting):
            open_wire.face()

    def test_non_planar_wire_has_no_face(self):
        p = [Point(0, 0, 0), Point(1, 0, 0), Point(1, 1, 1), Point(0, 1, 0)]
        wire = Wire.new([Edge.line(p[i], p[(i + 1) % 4]) for i in range(4)])
        with pytest.raises(NonPlanarOrSelfIntersecting):
            wire.face()

    def test_extrude(self, square_wire):
        body = square_wire.face().extrude(Vector(0, 0, 3))
        assert body.shape_type() is ShapeType.SOLID
        assert body.mass() == pytest.approx(12.0)
        assert len(body.faces().to_list()) == 6

    def test_extrude_zero_vector(self, square_wire):
        with pytest.raises(DegenerateGeometry):
            square_wire.face().extrude(Vector(0, 0, 0))

    def test_half_disc_round_trip(self):
        """Bogen + Sehne -> Face -> Extrusion -> ebene Deckflächen."""
        wire = Wire.new([
            Edge.arc_of_circle(Point(-1, 0, 0), Point(0, 1, 0), Point(1, 0, 0)),
            Edge.line(Point(1, 0, 0), Point(-1, 0, 0)),
        ])
        assert wire.is_closed()

        body = wire.face().extrude(Vector(0, 0, 1))
        assert body.shape_type() is ShapeType.SOLID
        assert body.mass() == pytest.approx(math.pi / 2, rel=1e-6)

        faces = FaceIterator(body).to_list()
        assert len(faces) == 4
        assert sum(1 for f in faces if f.surface().is_plane()) == 3


# ============================================================================
# Shape
# ============================================================================

class TestShape:

    def test_cylinder_mass(self, unit_cylinder):
        """Zylinder r=1, h=2: Volumen 2*pi."""
        assert unit_cylinder.shape_type() is ShapeType.SOLID
        assert unit_cylinder.mass() == pytest.approx(6.283185, abs=1e-4)

    def test_box_mass(self, unit_cube):
        assert unit_cube.mass() == pytest.approx(1.0)

    def test_degenerate_primitives(self):
        axis = Point.origin().plane_axis_with(Direction.z())
        with pytest.raises(DegenerateGeometry):
            Shape.cylinder(axis, 0.0, 1.0)
        with pytest.raises(DegenerateGeometry):
            Shape.box(1.0, 0.0, 1.0)

    def test_mass_by_dimension(self, square_wire):
        """Volumen, Fläche, Länge oder 0 je nach Dimension."""
        assert square_wire.face().as_shape().mass() == pytest.approx(4.0)
        assert square_wire.as_shape().mass() == pytest.approx(8.0)
        assert Vertex.from_point(Point(1, 1, 1)).as_shape().mass() == 0.0

    def test_is_closed(self, unit_cube, square_wire):
        assert unit_cube.is_closed()
        assert square_wire.as_shape().is_closed()
        assert square_wire.face().as_shape().is_closed()

    def test_clone_preserves_type(self, unit_cube, square_wire):
        entities = [
            unit_cube,
            square_wire.as_shape(),
            square_wire.face().as_shape(),
            Edge.line(Point(0, 0, 0), Point(1, 0, 0)).as_shape(),
            Vertex.from_point(Point(0, 0, 0)).as_shape(),
        ]
        for shape in entities:
            twin = shape.clone()
            assert twin.shape_type() is shape.shape_type()
            assert twin.is_same(shape)

    def test_clone_container_types(self, unit_cube, unit_cylinder):
        """Shell, Compound und CompSolid behalten beim Klonen ihren Typ."""
        shell = Shape.wrap(TopExp_Explorer(unit_cube.wrapped, TopAbs_SHELL).Current())
        compound = CompoundBuilder().add(unit_cube).add(unit_cylinder).build()

        comp_solid = TopoDS_CompSolid()
        builder = BRep_Builder()
        builder.MakeCompSolid(comp_solid)
        builder.Add(comp_solid, unit_cube.wrapped)

        expected = [
            (shell, ShapeType.SHELL),
            (compound, ShapeType.COMPOUND),
            (Shape.wrap(comp_solid), ShapeType.COMPOUND_SOLID),
        ]
        for shape, shape_type in expected:
            twin = shape.clone()
            assert twin.shape_type() is shape_type
            assert twin.is_same(shape)

    def test_entity_clone(self, square_wire):
        twin = square_wire.clone()
        assert isinstance(twin, Wire)
        assert twin.is_same(square_wire)

    def test_transform_keeps_original(self, unit_cube):
        mirror = Transformation.mirrored(Point.origin().axis_with(Direction.x()))
        mirrored = unit_cube.transform(mirror)
        assert mirrored.mass() == pytest.approx(1.0)
        assert not mirrored.is_same(unit_cube)
        # Original unverändert: Ecke (1,1,1) existiert weiterhin
        corners = [v.coordinates() for v in unit_cube.vertices()]
        assert any(c == pytest.approx((1, 1, 1)) for c in corners)

    def test_is_valid(self, unit_cube):
        assert unit_cube.is_valid()

    def test_face_entity_repr(self, square_wire):
        face = square_wire.face()
        assert isinstance(face, Face)
        assert "plane" in repr(face)


class TestNullShape:

    def test_default_shape_is_null(self):
        shape = Shape()
        assert shape.is_null()
        assert repr(shape) == "Shape(null)"

    @pytest.mark.parametrize("operation", [
        "shape_type", "mass", "clone", "is_valid", "is_closed",
    ])
    def test_operations_on_null_fail(self, operation):
        with pytest.raises(NullEntity):
            getattr(Shape(), operation)()

    def test_wrap_rejects_null(self):
        with pytest.raises(NullEntity):
            Shape.wrap(TopoDS_Shape())

    def test_builders_reject_null(self):
        with pytest.raises(NullEntity):
            Shape().fillet()


# ============================================================================
# Build123d Interop
# ============================================================================

class TestBuild123dInterop:

    def test_from_build123d(self):
        shape = Shape.from_build123d(bd.Solid.make_box(1, 2, 3))
        assert shape.shape_type() is ShapeType.SOLID
        assert shape.mass() == pytest.approx(6.0)

    def test_from_build123d_part(self):
        shape = Shape.from_build123d(bd.Box(1, 2, 3))
        assert shape.mass() == pytest.approx(6.0)

    def test_to_build123d(self, unit_cube):
        solid = unit_cube.to_build123d()
        assert isinstance(solid, bd.Solid)
        assert solid.volume == pytest.approx(1.0)

    def test_to_build123d_face(self, square_wire):
        face = square_wire.face().as_shape().to_build123d()
        assert isinstance(face, bd.Face)
        assert face.area == pytest.approx(4.0)

    def test_from_build123d_without_wrapped(self):
        with pytest.raises(NullEntity):
            Shape.from_build123d(object())
