"""
ocpkit - Referenzmodell "Bottle"
================================

Die klassische OCCT-Flasche als Ende-zu-Ende-Modell über die Fassade:
Profil-Wire, Spiegelung, Face, Extrusion, Fillet, Zylinder-Hals, Fuse,
Shell, Gewinde aus Ellipsen-Bögen auf Zylinderflächen und Loft.

Usage:
    from ocpkit.bottle import make_bottle

    bottle = make_bottle(50.0, 70.0, 30.0)   # ShapeType.COMPOUND
"""

import math

from loguru import logger

from ocpkit.builders import CompoundBuilder, Loft, WireBuilder
from ocpkit.errors import NullEntity
from ocpkit.geom import (
    CylindricalSurface, Direction, Direction2D, Ellipse2D, Point, Point2D,
    Transformation, TrimmedCurve2D, Vector,
)
from ocpkit.shape import Edge, Face, Shape, Wire


def _profile(width: float, thickness: float) -> Wire:
    """Volles, geschlossenes Profil: Halbprofil + Spiegelung an der X-Achse."""
    point1 = Point(-width / 2.0, 0.0, 0.0)
    point2 = Point(-width / 2.0, -thickness / 4.0, 0.0)
    point3 = Point(0.0, -thickness / 2.0, 0.0)
    point4 = Point(width / 2.0, -thickness / 4.0, 0.0)
    point5 = Point(width / 2.0, 0.0, 0.0)

    half = Wire.new([
        Edge.line(point1, point2),
        Edge.arc_of_circle(point2, point3, point4),
        Edge.line(point4, point5),
    ])

    mirror = Transformation.mirrored(Point.origin().axis_with(Direction.x()))
    mirrored = mirror.apply(half)

    return Wire.create(WireBuilder().add(half).add(mirrored))


def _highest_planar_face(body: Shape) -> Face:
    best, best_z = None, -math.inf
    for face in body.faces():
        surface = face.surface()
        if not surface.is_plane():
            continue
        z = surface.as_plane().location().z
        if z > best_z:
            best, best_z = face, z
    if best is None:
        raise NullEntity("Bottle: keine ebene Face zum Öffnen gefunden")
    return best


def _threading(neck_axis, neck_radius: float, neck_height: float) -> Shape:
    cylinder1 = CylindricalSurface(neck_axis, neck_radius * 0.99)
    cylinder2 = CylindricalSurface(neck_axis, neck_radius * 1.05)

    axis2d = Point2D(2.0 * math.pi, neck_height / 2.0).axis2d_with(
        Direction2D(2.0 * math.pi, neck_height / 4.0)
    )
    major = 2.0 * math.pi
    minor = neck_height / 10.0

    ellipse1 = Ellipse2D(axis2d, major, minor)
    ellipse2 = Ellipse2D(axis2d, major, minor / 4.0)
    arc1 = ellipse1.curve().trim(0.0, math.pi)
    arc2 = ellipse2.curve().trim(0.0, math.pi)
    segment = TrimmedCurve2D.line(ellipse1.value(0.0), ellipse1.value(math.pi))

    wire1 = Wire.new([
        Edge.from_2d_curve(arc1, cylinder1),
        Edge.from_2d_curve(segment, cylinder1),
    ])
    wire2 = Wire.new([
        Edge.from_2d_curve(arc2, cylinder2),
        Edge.from_2d_curve(segment, cylinder2),
    ])

    return (
        Loft.new_solid()
        .add_wires([wire1, wire2])
        .ensure_wire_compatibility(False)
        .build()
    )


def make_bottle(width: float = 50.0, height: float = 70.0, thickness: float = 30.0) -> Shape:
    """
    Baut die Flasche.

    Args:
        width: Breite des Körpers (X)
        height: Höhe des Körpers ohne Hals (Z)
        thickness: Tiefe des Körpers (Y)

    Returns:
        Compound aus ausgehöhltem Körper und Gewinde
    """
    logger.info(f"Bottle: width={width}, height={height}, thickness={thickness}")

    body = _profile(width, thickness).face().extrude(Vector(0.0, 0.0, height))

    body = body.fillet().add_all(thickness / 12.0, body.edges()).build()

    neck_axis = Point(0.0, 0.0, height).plane_axis_with(Direction.z())
    neck_radius = thickness / 4.0
    neck_height = height / 10.0
    body = body.fuse(Shape.cylinder(neck_axis, neck_radius, neck_height))

    body = (
        body.shell()
        .faces_to_remove([_highest_planar_face(body)])
        .offset(-thickness / 50.0)
        .tolerance(1.0e-3)
        .build()
    )

    threading = _threading(neck_axis, neck_radius, neck_height)

    return CompoundBuilder().add(body).add(threading).build()
