"""
ocpkit - Topologie-Iteratoren
=============================

EdgeIterator / FaceIterator / VertexIterator über einem Shape.

Protokoll:
- more(): idempotenter Peek, True solange noch ein Element aussteht
- next(): liefert das aktuelle Element und rückt vor;
          IteratorExhausted wenn more() False ist
- zusätzlich das Python-Iterator-Protokoll (for edge in shape.edges(): ...)

Reihenfolge = TopExp_Explorer-Reihenfolge, Duplikate entfernt (eine Kante,
die zwei Faces begrenzt, kommt genau einmal, beim ersten Auftreten).
Deterministisch für ein gegebenes Shape, nicht über verschiedene
Konstruktionswege hinweg.

Der Iterator hält eine eigene Kopie des Eltern-Shapes; Entitäten werden beim
Ausliefern herauskopiert und referenzieren das Eltern-Shape nicht.
"""

from typing import Optional

from OCP.TopAbs import TopAbs_EDGE, TopAbs_FACE, TopAbs_VERTEX
from OCP.TopExp import TopExp_Explorer
from OCP.TopTools import TopTools_MapOfShape

from ocpkit.errors import IteratorExhausted
from ocpkit.shape import Edge, Face, Shape, Vertex


class _TopologyIterator:
    """Lazy, endlich, nicht neu startbar."""

    _topabs = None
    _entity_type = None

    def __init__(self, shape: Shape):
        shape = shape.as_shape()
        shape._require()
        # Eigene Kopie: das Eltern-Shape darf danach verworfen werden
        self._source = shape.clone()
        self._explorer = TopExp_Explorer(self._source.wrapped, self._topabs)
        self._seen = TopTools_MapOfShape()
        self._yielded = 0

    def _skip_seen(self) -> None:
        while self._explorer.More() and self._seen.Contains(self._explorer.Current()):
            self._explorer.Next()

    def more(self) -> bool:
        self._skip_seen()
        return self._explorer.More()

    def next(self):
        if not self.more():
            raise IteratorExhausted(
                f"{type(self).__name__}: keine weiteren Elemente ({self._yielded} geliefert)"
            )
        current = self._explorer.Current()
        self._seen.Add(current)
        self._explorer.Next()
        self._yielded += 1
        return self._entity_type(current.Oriented(current.Orientation()))

    @property
    def yielded(self) -> int:
        return self._yielded

    def __iter__(self):
        return self

    def __next__(self):
        if not self.more():
            raise StopIteration
        return self.next()

    def to_list(self) -> list:
        return list(self)

    def first(self) -> Optional[object]:
        return self.next() if self.more() else None


class EdgeIterator(_TopologyIterator):
    _topabs = TopAbs_EDGE
    _entity_type = Edge


class FaceIterator(_TopologyIterator):
    _topabs = TopAbs_FACE
    _entity_type = Face


class VertexIterator(_TopologyIterator):
    _topabs = TopAbs_VERTEX
    _entity_type = Vertex
